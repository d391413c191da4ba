"""Owner record management.

Creation enforces phone uniqueness twice: a read-then-write check that gives
callers a clear error, and the unique ``phone_key`` index that closes the
race between two concurrent writers.
"""

import logging
import uuid
from typing import Annotated

from fastapi import Depends

from compoundgate.auth.service import TokenClaims
from compoundgate.compound.models import Compound
from compoundgate.core.exceptions import ConflictError
from compoundgate.db.store import IdentityStore, StoreDep
from compoundgate.user.exceptions import PhoneInUseError, UserNotFoundError
from compoundgate.user.models import User, UserType
from compoundgate.user.phone import mask_phone
from compoundgate.user.resolver import PhoneIdentityResolver

logger = logging.getLogger(__name__)


class OwnerService:
    def __init__(self, store: IdentityStore):
        self._store = store
        self._resolver = PhoneIdentityResolver(store)

    @property
    def resolver(self) -> PhoneIdentityResolver:
        return self._resolver

    def ensure_phone_available(self, phone: str) -> None:
        """Raises PhoneInUseError if any user holds a variant of ``phone``."""
        if self._resolver.by_phone_variants(phone):
            raise PhoneInUseError()

    def create_owner(
        self,
        compound_id: uuid.UUID,
        phone: str,
        first_name: str,
        last_name: str,
        email: str | None = None,
        property_unit: str | None = None,
        external_auth_id: str | None = None,
    ) -> User:
        """Create an owner who still has to go through OTP and password setup.

        Raises:
            PhoneInUseError: If the phone is already bound to a user
        """
        self.ensure_phone_available(phone)
        try:
            owner = self._store.create(
                User(
                    compound_id=compound_id,
                    type=UserType.owner,
                    first_name=first_name,
                    last_name=last_name,
                    email=email or "",
                    phone=phone,
                    property_unit=property_unit,
                    has_password=False,
                    is_first_time_login=True,
                    external_auth_id=external_auth_id,
                )
            )
        except ConflictError as e:
            # Lost the race against a concurrent writer
            raise PhoneInUseError() from e

        logger.info(
            "Owner created for %s", mask_phone(phone), extra={"user_id": str(owner.id)}
        )
        return owner

    def get_profile(
        self,
        identity: TokenClaims,
        phone: str | None = None,
        email: str | None = None,
    ) -> tuple[User, Compound | None]:
        """Resolve the caller's owner record through the full lookup chain.

        Hints narrow the search; the record is only returned when it belongs to
        the verified identity.

        Raises:
            UserNotFoundError: If nothing matches, or the match is not the caller's
        """
        phone = phone or identity.phone_number
        resolution = self._resolver.resolve(
            phone=phone, email=email or identity.email, identity_id=identity.uid
        )
        owner = self._resolver.pick_best(
            resolution.users, phone=phone, identity_id=identity.uid
        )
        if owner is None or not self._resolver.belongs_to(
            owner, identity.uid, identity.phone_number, identity.email
        ):
            raise UserNotFoundError()
        return owner, self._store.read(Compound, owner.compound_id)


def get_owner_service(store: StoreDep) -> OwnerService:
    return OwnerService(store)


OwnerServiceDep = Annotated[OwnerService, Depends(get_owner_service)]
