"""Owner invite lifecycle.

An admin invites an owner by phone; the owner accepts once, which creates
their user record. Invites move pending -> accepted | expired | revoked and
never back.
"""

import logging
import secrets
import time
import uuid
from datetime import datetime, timedelta
from typing import Annotated

from fastapi import Depends

from compoundgate.compound.models import Compound
from compoundgate.compound.service import get_managed_compound
from compoundgate.core.deps import SettingsDep, StoreDep
from compoundgate.core.mixins import as_utc, utc_now
from compoundgate.db.store import IdentityStore
from compoundgate.invite.exceptions import InviteNotFoundError, InviteUnavailableError
from compoundgate.invite.models import InviteStatus, OwnerInvite
from compoundgate.user.models import User
from compoundgate.user.phone import mask_phone
from compoundgate.user.service import OwnerService

logger = logging.getLogger(__name__)

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(number: int) -> str:
    digits = []
    while True:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
        if not number:
            return "".join(reversed(digits))


def generate_invite_token() -> str:
    """Millisecond timestamp in base 36 followed by 16 random hex chars."""
    return f"{_base36(time.time_ns() // 1_000_000)}{secrets.token_hex(8)}"


class InviteService:
    def __init__(self, store: IdentityStore, expires_days: int | None = None):
        self._store = store
        self._expires_days = expires_days
        self._owners = OwnerService(store)

    def create_invite(
        self,
        admin_uid: str,
        compound_id: uuid.UUID,
        phone: str,
        email: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        property_unit: str | None = None,
        expires_at: datetime | None = None,
    ) -> tuple[OwnerInvite, Compound]:
        """Create a pending invite in a compound the admin manages.

        Without an explicit ``expires_at`` the configured lifetime applies.

        Raises:
            CompoundNotFoundError: If the compound does not exist
            CompoundAccessError: If the admin does not manage it
        """
        compound = get_managed_compound(self._store, compound_id, admin_uid)

        if expires_at is None and self._expires_days:
            expires_at = utc_now() + timedelta(days=self._expires_days)

        invite = self._store.create(
            OwnerInvite(
                token=generate_invite_token(),
                compound_id=compound.id,
                phone=phone,
                email=email,
                first_name=first_name,
                last_name=last_name,
                property_unit=property_unit,
                status=InviteStatus.pending,
                created_by=admin_uid,
                expires_at=expires_at,
            )
        )
        logger.info(
            "Invite created for %s in compound %s", mask_phone(phone), compound.id
        )
        return invite, compound

    def get_by_token(self, token: str) -> OwnerInvite:
        invite = self._store.first(OwnerInvite, token=token)
        if invite is None:
            raise InviteNotFoundError()
        return invite

    def _expire_if_due(self, invite: OwnerInvite) -> bool:
        if invite.expires_at is None or as_utc(invite.expires_at) > utc_now():
            return False
        self._store.update(invite, status=InviteStatus.expired)
        logger.info("Invite %s expired before acceptance", invite.id)
        return True

    def accept_invite(
        self,
        token: str,
        first_name: str,
        last_name: str,
        accepted_by_uid: str,
    ) -> User:
        """Consume a pending invite and create the owner it describes.

        Raises:
            InviteUnavailableError: If the invite is unknown, used, revoked or expired
            PhoneInUseError: If the invited phone already belongs to a user
        """
        invite = self._store.first(OwnerInvite, token=token)
        if invite is None or invite.status != InviteStatus.pending:
            raise InviteUnavailableError()
        if self._expire_if_due(invite):
            raise InviteUnavailableError()

        owner = self._owners.create_owner(
            compound_id=invite.compound_id,
            phone=invite.phone,
            first_name=first_name,
            last_name=last_name,
            email=invite.email,
            property_unit=invite.property_unit,
        )
        self._store.update(
            invite,
            status=InviteStatus.accepted,
            accepted_by_uid=accepted_by_uid,
            accepted_at=utc_now(),
        )
        logger.info("Invite %s accepted", invite.id, extra={"user_id": str(owner.id)})
        return owner

    def revoke_invite(self, admin_uid: str, invite_id: uuid.UUID) -> OwnerInvite:
        """Withdraw a pending invite.

        Raises:
            InviteNotFoundError: If the invite does not exist
            CompoundAccessError: If the admin does not manage its compound
            InviteUnavailableError: If it is no longer pending
        """
        invite = self._store.read(OwnerInvite, invite_id)
        if invite is None:
            raise InviteNotFoundError()
        get_managed_compound(self._store, invite.compound_id, admin_uid)
        if invite.status != InviteStatus.pending:
            raise InviteUnavailableError()
        return self._store.update(invite, status=InviteStatus.revoked)


def get_invite_service(store: StoreDep, settings: SettingsDep) -> InviteService:
    return InviteService(store, expires_days=settings.invite_expires_days)


InviteServiceDep = Annotated[InviteService, Depends(get_invite_service)]
