"""User domain models.

SQLModel table definition for User (owners, employees and managers of a
compound).
"""

import uuid
from enum import Enum

from sqlalchemy import event
from sqlmodel import Field, SQLModel

from compoundgate.core.mixins import TimestampMixin
from compoundgate.user.phone import phone_key as normalized_phone_key


class UserType(str, Enum):
    """Role of a user inside a compound."""

    owner = "owner"
    employee = "employee"
    manager = "manager"


class PaymentStatus(str, Enum):
    """Maintenance-fee payment status, enforced by entry points when enabled."""

    paid = "paid"
    pending = "pending"
    overdue = "overdue"


class User(TimestampMixin, SQLModel, table=True):
    """User database model.

    Note: external_auth_id (Firebase UID) and password_hash are internal-only
    and must never be exposed in API responses.

    ``phone`` keeps the value as entered by the admin; ``phone_key`` is its
    normalized form and carries the system-wide uniqueness constraint.
    """

    __tablename__: str = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    compound_id: uuid.UUID = Field(foreign_key="compounds.id", index=True)
    type: UserType = Field(default=UserType.owner)
    first_name: str = Field(default="", max_length=50)
    last_name: str = Field(default="", max_length=50)
    email: str = Field(default="", index=True, max_length=255)
    phone: str | None = Field(default=None, index=True, max_length=32)
    phone_key: str | None = Field(default=None, unique=True, max_length=32)
    property_unit: str | None = Field(default=None, max_length=50)
    is_active: bool = Field(default=True)
    has_password: bool = Field(default=False)
    password_hash: str | None = Field(default=None, max_length=255)
    is_first_time_login: bool = Field(default=True)
    external_auth_id: str | None = Field(default=None, index=True, max_length=128)
    payment_status: PaymentStatus | None = Field(default=None)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@event.listens_for(User, "before_insert")
@event.listens_for(User, "before_update")
def _sync_phone_key(_mapper, _connection, target: User) -> None:
    """Keep the uniqueness key in step with ``phone`` on every write path.

    Covers the admin panel as well as the identity store.
    """
    target.phone_key = normalized_phone_key(target.phone)
