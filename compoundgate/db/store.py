"""Identity store adapter.

A narrow keyed-collection contract over the SQL database: ``create``,
``read``, ``update``, ``delete`` and equality ``query``. Table models act as
the collection handles (``users``, ``device_sessions``, ``owner_invites``,
``compounds``). Everything above this module talks to persistence through it.
"""

import logging
import uuid
from typing import Annotated, Any, TypeVar

from fastapi import Depends
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from compoundgate.core.exceptions import ConflictError, InternalError
from compoundgate.core.mixins import utc_now
from compoundgate.db.engine import get_session

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=SQLModel)


def _collection_name(model: type[SQLModel]) -> str:
    return str(getattr(model, "__tablename__", model.__name__))


class IdentityStore:
    """Document-style access to the identity tables for a single request."""

    def __init__(self, session: Session):
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    def _commit(self, collection: str, *records: SQLModel) -> None:
        try:
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            logger.info("Uniqueness violation writing %s", collection)
            raise ConflictError(f"Duplicate value in {collection}") from e
        except SQLAlchemyError as e:
            self._session.rollback()
            logger.error("Store write failed for %s", collection, exc_info=True)
            raise InternalError(
                f"Failed to write {collection}: {e.__class__.__name__}"
            ) from e
        for record in records:
            self._session.refresh(record)

    def create(self, record: T) -> T:
        """Insert a new document and return it with generated fields loaded."""
        self._session.add(record)
        self._commit(_collection_name(type(record)), record)
        return record

    def read(self, model: type[T], record_id: uuid.UUID | str) -> T | None:
        """Fetch a document by id; malformed ids read as missing."""
        if isinstance(record_id, str):
            try:
                record_id = uuid.UUID(record_id)
            except ValueError:
                return None
        return self._session.get(model, record_id)

    def update(self, record: T, **changes: Any) -> T:
        """Apply field changes, stamp ``updated_at`` and persist."""
        for field, value in changes.items():
            if field not in type(record).model_fields:
                raise ValueError(
                    f"Unknown field {field!r} for {_collection_name(type(record))}"
                )
            setattr(record, field, value)
        if "updated_at" in type(record).model_fields:
            setattr(record, "updated_at", utc_now())
        self._session.add(record)
        self._commit(_collection_name(type(record)), record)
        return record

    def delete(self, record: SQLModel) -> None:
        self._session.delete(record)
        self._commit(_collection_name(type(record)))

    def query(self, model: type[T], **predicates: Any) -> list[T]:
        """Return documents whose fields equal every given predicate.

        With no predicates the whole collection is returned.
        """
        statement = select(model)
        for field, value in predicates.items():
            if field not in model.model_fields:
                raise ValueError(
                    f"Unknown field {field!r} for {_collection_name(model)}"
                )
            statement = statement.where(getattr(model, field) == value)
        return list(self._session.exec(statement).all())

    def first(self, model: type[T], **predicates: Any) -> T | None:
        results = self.query(model, **predicates)
        return results[0] if results else None


def get_identity_store(session: Annotated[Session, Depends(get_session)]) -> IdentityStore:
    return IdentityStore(session)


StoreDep = Annotated[IdentityStore, Depends(get_identity_store)]
