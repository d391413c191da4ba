"""Invite domain exceptions."""

from compoundgate.core.exceptions import ConflictError, NotFoundError


class InviteNotFoundError(NotFoundError):
    error_type = "invite_not_found"

    def __init__(self, message: str = "Invite not found"):
        super().__init__(message)


class InviteUnavailableError(ConflictError):
    """Raised for invites that are missing, used, revoked or expired.

    Reported as 400 so unknown and consumed tokens look the same.
    """

    status_code = 400
    error_type = "invite_unavailable"

    def __init__(self, message: str = "Invalid or used invite"):
        super().__init__(message)
