"""Compound domain exceptions."""

from compoundgate.core.exceptions import AuthorizationError, NotFoundError


class CompoundNotFoundError(NotFoundError):
    error_type = "compound_not_found"

    def __init__(self, message: str = "Compound not found"):
        super().__init__(message)


class CompoundAccessError(AuthorizationError):
    """Raised when the caller is not the admin who owns the compound."""

    error_type = "compound_access_denied"

    def __init__(self, message: str = "You do not manage this compound"):
        super().__init__(message)
