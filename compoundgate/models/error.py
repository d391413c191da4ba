"""Error response schema shared by every route's OpenAPI docs."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Body of every error response.

    ``type`` is the exception's ``error_type`` (e.g. ``phone_not_registered``);
    ``details`` lists unmet password rules when present.
    """

    type: str
    message: str
    details: list[str] | None = None
