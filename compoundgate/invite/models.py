"""Invite domain models."""

import uuid
from datetime import datetime
from enum import Enum

from sqlmodel import Field, SQLModel

from compoundgate.core.mixins import TimestampMixin


class InviteStatus(str, Enum):
    """Owner invite lifecycle.

    - pending: created by an admin, not yet used
    - accepted: consumed, the owner record exists
    - expired: expires_at passed before acceptance
    - revoked: withdrawn by the admin
    """

    pending = "pending"
    accepted = "accepted"
    expired = "expired"
    revoked = "revoked"


class OwnerInvite(TimestampMixin, SQLModel, table=True):
    """Single-use invitation for a property owner to join a compound."""

    __tablename__: str = "owner_invites"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    token: str = Field(index=True, unique=True, max_length=64)
    compound_id: uuid.UUID = Field(foreign_key="compounds.id", index=True)
    phone: str = Field(max_length=32)
    email: str | None = Field(default=None, max_length=255)
    first_name: str | None = Field(default=None, max_length=50)
    last_name: str | None = Field(default=None, max_length=50)
    property_unit: str | None = Field(default=None, max_length=50)
    status: InviteStatus = Field(default=InviteStatus.pending)
    created_by: str = Field(max_length=128)
    accepted_by_uid: str | None = Field(default=None, max_length=128)
    accepted_at: datetime | None = Field(default=None)
    expires_at: datetime | None = Field(default=None)
