"""Device session manager.

Binds (user, fingerprint) pairs to an active/inactive trust flag. Several
devices per user may be active at once; activating one never deactivates
another.
"""

import logging
import uuid
from typing import Annotated

from fastapi import Depends

from compoundgate.core.mixins import utc_now
from compoundgate.db.store import IdentityStore, StoreDep
from compoundgate.device.models import DeviceSession

logger = logging.getLogger(__name__)


class DeviceSessionManager:
    def __init__(self, store: IdentityStore):
        self._store = store

    def get_by_user_and_device(
        self, user_id: uuid.UUID, fingerprint: str
    ) -> DeviceSession | None:
        """Exact match on both user and fingerprint."""
        return self._store.first(
            DeviceSession, user_id=user_id, device_fingerprint=fingerprint
        )

    def get_active_by_fingerprint(self, fingerprint: str) -> DeviceSession | None:
        return self._store.first(
            DeviceSession, device_fingerprint=fingerprint, is_active=True
        )

    def create(
        self,
        user_id: uuid.UUID,
        fingerprint: str,
        user_agent: str,
        ip_address: str,
        is_active: bool,
    ) -> DeviceSession:
        """Insert a new session row.

        No de-duplication happens here; callers check
        ``get_by_user_and_device`` first.
        """
        session = self._store.create(
            DeviceSession(
                user_id=user_id,
                device_fingerprint=fingerprint,
                user_agent=user_agent,
                ip_address=ip_address,
                is_active=is_active,
                last_used_at=utc_now(),
            )
        )
        logger.info(
            "Device session created (active=%s)",
            is_active,
            extra={"user_id": str(user_id)},
        )
        return session

    def activate(
        self, session: DeviceSession, user_agent: str | None = None
    ) -> DeviceSession:
        changes: dict = {"is_active": True, "last_used_at": utc_now()}
        if user_agent:
            changes["user_agent"] = user_agent
        return self._store.update(session, **changes)

    def touch(self, session: DeviceSession) -> DeviceSession:
        return self._store.update(session, last_used_at=utc_now())

    def create_or_activate(
        self,
        user_id: uuid.UUID,
        fingerprint: str,
        user_agent: str,
        ip_address: str,
    ) -> DeviceSession:
        existing = self.get_by_user_and_device(user_id, fingerprint)
        if existing is not None:
            return self.activate(existing, user_agent=user_agent)
        return self.create(user_id, fingerprint, user_agent, ip_address, True)

    def deactivate_all(self, user_id: uuid.UUID) -> int:
        """Mark every session of the user inactive. Returns how many changed."""
        changed = 0
        for session in self._store.query(DeviceSession, user_id=user_id, is_active=True):
            self._store.update(session, is_active=False)
            changed += 1
        logger.info(
            "Deactivated %d device session(s)", changed, extra={"user_id": str(user_id)}
        )
        return changed


def get_device_session_manager(store: StoreDep) -> DeviceSessionManager:
    return DeviceSessionManager(store)


DeviceManagerDep = Annotated[DeviceSessionManager, Depends(get_device_session_manager)]
