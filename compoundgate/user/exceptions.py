"""User domain exceptions.

User-related exceptions for not found, inactive, and conflict scenarios.
"""

from compoundgate.core.exceptions import AuthorizationError, ConflictError, NotFoundError


class UserNotFoundError(NotFoundError):
    """Raised when no owner record matches the supplied identity hints."""

    error_type = "user_not_found"

    def __init__(self, message: str = "Owner profile not found"):
        super().__init__(message)


class PhoneNotRegisteredError(NotFoundError):
    """Raised when an OTP flow starts for a phone no admin has registered."""

    error_type = "phone_not_registered"

    def __init__(self, message: str = "Phone not registered by admin"):
        super().__init__(message)


class UserInactiveError(AuthorizationError):
    """Raised when user is deactivated in the local database."""

    error_type = "user_inactive"

    def __init__(self, message: str = "User is inactive"):
        super().__init__(message)


class PhoneInUseError(ConflictError):
    """Raised when a phone number is already bound to another user.

    Reported as 400 like the other request-level conflicts.
    """

    status_code = 400
    error_type = "phone_in_use"

    def __init__(self, message: str = "Phone number already in use"):
        super().__init__(message)
