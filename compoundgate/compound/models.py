"""Compound domain models."""

import uuid

from sqlmodel import Field, SQLModel

from compoundgate.core.mixins import TimestampMixin


class Compound(TimestampMixin, SQLModel, table=True):
    """A residential compound, owned by exactly one admin identity.

    ``admin_id`` is the Firebase UID of the administrator; it is the
    authorization boundary for invites and owner management.
    """

    __tablename__: str = "compounds"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(max_length=120)
    address: str = Field(default="", max_length=255)
    admin_id: str = Field(index=True, max_length=128)
    admin_email: str = Field(default="", max_length=255)
