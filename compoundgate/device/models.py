"""Device domain models."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from compoundgate.core.mixins import TimestampMixin, utc_now


class DeviceSession(TimestampMixin, SQLModel, table=True):
    """A (user, device fingerprint) pairing.

    Created inactive when a password login comes from an unknown device and
    activated once the owner confirms an OTP (or sets up a password) on it.
    """

    __tablename__: str = "device_sessions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    device_fingerprint: str = Field(index=True, max_length=64)
    user_agent: str = Field(default="", max_length=512)
    ip_address: str = Field(default="unknown", max_length=64)
    is_active: bool = Field(default=False)
    last_used_at: datetime = Field(default_factory=utc_now)
