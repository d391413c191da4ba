"""Reusable model mixins.

Provides common field patterns for SQLModel table definitions.
"""

from datetime import UTC, datetime

from sqlalchemy import text
from sqlmodel import Field


def utc_now() -> datetime:
    """Return current UTC time without microseconds."""
    return datetime.now(UTC).replace(microsecond=0)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from the database."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps.

    Timestamps are stored without microseconds for cleaner output.
    ``IdentityStore.update`` stamps ``updated_at`` explicitly as well, so
    the value also moves for stores that bypass the ORM ``onupdate`` hook.

    Usage:
        class MyModel(TimestampMixin, SQLModel, table=True):
            id: int = Field(primary_key=True)
            name: str
    """

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={
            "server_default": text("CURRENT_TIMESTAMP"),
            "onupdate": utc_now,
        },
    )
