"""Invite domain schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from compoundgate.invite.models import InviteStatus


class InviteCreate(BaseModel):
    compound_id: uuid.UUID
    phone: str = Field(min_length=1, max_length=32)
    email: EmailStr | None = None
    first_name: str | None = Field(default=None, max_length=50)
    last_name: str | None = Field(default=None, max_length=50)
    property_unit: str | None = Field(default=None, max_length=50)
    expires_at: datetime | None = None


class InviteCreated(BaseModel):
    id: uuid.UUID
    token: str
    email_sent: bool = False


class InviteRead(BaseModel):
    """Invite as shown on the accept screen (the token itself is omitted)."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    compound_id: uuid.UUID
    phone: str
    email: str | None
    first_name: str | None
    last_name: str | None
    property_unit: str | None
    status: InviteStatus
    expires_at: datetime | None


class InviteAccept(BaseModel):
    token: str = Field(min_length=1)
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)


class InviteMessage(BaseModel):
    message: str
