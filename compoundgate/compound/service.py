"""Compound lookups shared by the invite and owner routes."""

import uuid

from compoundgate.compound.exceptions import CompoundAccessError, CompoundNotFoundError
from compoundgate.compound.models import Compound
from compoundgate.db.store import IdentityStore


def get_managed_compound(
    store: IdentityStore, compound_id: uuid.UUID | str, admin_uid: str
) -> Compound:
    """Return the compound if ``admin_uid`` is its admin.

    Raises:
        CompoundNotFoundError: If the compound does not exist
        CompoundAccessError: If another admin owns it
    """
    compound = store.read(Compound, compound_id)
    if compound is None:
        raise CompoundNotFoundError()
    if compound.admin_id != admin_uid:
        raise CompoundAccessError()
    return compound
