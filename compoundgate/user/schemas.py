"""User domain schemas.

Response schemas for owner profile lookups.

Security notes:
- password_hash and external_auth_id are internal-only, never exposed
- OwnerBase contains only fields safe for API responses
"""

import uuid
from datetime import UTC, datetime

from pydantic import field_serializer
from sqlmodel import SQLModel

from compoundgate.user.models import PaymentStatus, UserType


class OwnerBase(SQLModel):
    """Owner properties safe for API responses."""

    first_name: str
    last_name: str
    email: str
    phone: str | None
    property_unit: str | None


class CompoundRead(SQLModel):
    id: uuid.UUID
    name: str
    address: str


class OwnerRead(OwnerBase):
    id: uuid.UUID
    compound_id: uuid.UUID
    type: UserType
    is_active: bool
    has_password: bool
    is_first_time_login: bool
    payment_status: PaymentStatus | None
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    def serialize_datetime(self, value: datetime) -> str:
        """Format datetime as ISO 8601 string in UTC with Z suffix."""
        # Naive datetimes come back from SQLite; TimestampMixin stores UTC
        if value.tzinfo is not None:
            utc_value = value.astimezone(UTC)
        else:
            utc_value = value.replace(tzinfo=UTC)
        return utc_value.replace(microsecond=0).isoformat().replace("+00:00", "Z")


class OwnerProfile(SQLModel):
    owner: OwnerRead
    compound: CompoundRead | None
