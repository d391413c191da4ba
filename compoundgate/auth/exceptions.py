"""Auth domain exceptions.

Authentication and authorization related exceptions.
"""

from compoundgate.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ValidationError,
)


# Authentication errors (401)
class InvalidCredentialsError(AuthenticationError):
    """Raised for unknown accounts and wrong passwords alike."""

    error_type = "invalid_credentials"

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class InvalidTokenError(AuthenticationError):
    """Raised when authentication token is invalid or expired."""

    error_type = "invalid_token"

    def __init__(self, message: str = "Invalid authentication token"):
        super().__init__(message)


class NotAuthenticatedError(AuthenticationError):
    """Raised when a route needs a verified identity and none was sent."""

    error_type = "not_authenticated"

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class SessionCookieError(AuthenticationError):
    """Raised when session cookie operations fail."""

    error_type = "session_cookie_error"

    def __init__(self, message: str = "Session cookie error"):
        super().__init__(message)


# Authorization errors (403)
class UserDisabledError(AuthorizationError):
    """Raised when user account is disabled in Firebase."""

    error_type = "user_disabled"

    def __init__(self, message: str = "User account is disabled"):
        super().__init__(message)


class IdentityMismatchError(AuthorizationError):
    """Raised when a verified identity may not act on an owner record."""

    error_type = "identity_mismatch"

    def __init__(self, message: str = "Owner is linked to a different account"):
        super().__init__(message)


# Validation errors (400) - auth specific
class InvalidOtpError(ValidationError):
    """Raised when the phone verification code is wrong or expired."""

    error_type = "invalid_otp"

    def __init__(self, message: str = "Invalid or expired verification code"):
        super().__init__(message)


class PasswordMismatchError(ValidationError):
    error_type = "password_mismatch"

    def __init__(self, message: str = "Passwords do not match"):
        super().__init__(message)


class PasswordPolicyError(ValidationError):
    """Raised when password does not meet policy requirements."""

    error_type = "password_policy_error"

    def __init__(
        self,
        message: str = "Password does not meet requirements",
        requirements: list[str] | None = None,
    ):
        self.requirements = requirements or []
        super().__init__(message)
