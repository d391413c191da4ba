"""Phone identity resolver.

Maps caller-supplied identity hints (an identity-provider uid, a phone in any
punctuation/prefix variant, an email) to candidate owner records. There is no
stable foreign key between the phone identity provider and the user table, so
the lookup is an explicit, ordered chain of strategies of decreasing
confidence. The first strategy that yields a match wins; results from
different strategies are never merged.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated

from fastapi import Depends

from compoundgate.core.mixins import as_utc
from compoundgate.db.store import IdentityStore, StoreDep
from compoundgate.user.models import User
from compoundgate.user.phone import (
    mask_phone,
    normalize_phone,
    phone_key,
    phone_suffix,
    phone_variants,
    same_phone,
)

logger = logging.getLogger(__name__)


class MatchStrategy(str, Enum):
    """Which step of the resolution chain produced a match."""

    id_match = "id_match"
    exact_phone = "exact_phone"
    suffix_phone = "suffix_phone"
    exact_email = "exact_email"
    partial_email = "partial_email"


@dataclass(frozen=True)
class Resolution:
    """Outcome of a resolution chain."""

    strategy: MatchStrategy | None = None
    users: list[User] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.users)

    @property
    def first(self) -> User | None:
        return self.users[0] if self.users else None


def _dedupe(users: Iterable[User]) -> list[User]:
    seen: set = set()
    unique: list[User] = []
    for user in users:
        if user.id in seen:
            continue
        seen.add(user.id)
        unique.append(user)
    return unique


def _split_email(email: str) -> tuple[str, str] | None:
    if "@" not in email:
        return None
    local, _, domain = email.rpartition("@")
    if not local or not domain:
        return None
    return local.lower(), domain.lower()


class PhoneIdentityResolver:
    """Ordered, logged strategy chain over the ``users`` collection."""

    def __init__(self, store: IdentityStore):
        self._store = store

    # Strategy 1
    def by_identity_id(self, identity_id: str | None) -> list[User]:
        if not identity_id:
            return []
        return self._store.query(User, external_auth_id=identity_id)

    # Strategy 2
    def by_phone_variants(self, phone: str | None) -> list[User]:
        """Exact equality on every variant, plus the normalized key column."""
        variants = phone_variants(phone)
        if not variants:
            return []

        matches: list[User] = []
        for variant in variants:
            matches.extend(self._store.query(User, phone=variant))

        keys = dict.fromkeys(k for k in (phone_key(v) for v in variants) if k)
        for key in keys:
            matches.extend(self._store.query(User, phone_key=key))

        return _dedupe(matches)

    # Strategy 3
    def by_phone_suffix(self, phone: str | None) -> list[User]:
        """Scan fallback: same last 10 digits, or same normalized string."""
        target = normalize_phone(phone)
        if not target:
            return []
        target_suffix = phone_suffix(phone)

        matches = []
        for user in self._store.query(User):
            if not user.phone:
                continue
            candidate = normalize_phone(user.phone)
            if candidate == target or phone_suffix(user.phone) == target_suffix:
                matches.append(user)
        return matches

    # Strategy 4
    def by_email(self, email: str | None) -> list[User]:
        if not email:
            return []
        return self._store.query(User, email=email)

    # Strategy 5
    def by_partial_email(self, email: str | None) -> list[User]:
        """Broadest fallback: shared local part or shared domain.

        Low precision by nature; callers only reach it when every stronger
        strategy came back empty.
        """
        if not email:
            return []
        parts = _split_email(email)
        if parts is None:
            return []
        local, domain = parts
        target = email.lower()

        matches = []
        for user in self._store.query(User):
            if not user.email:
                continue
            user_parts = _split_email(user.email)
            if user_parts is None:
                continue
            user_local, user_domain = user_parts
            candidate = user.email.lower()
            if local in candidate or user_local in target or domain == user_domain:
                matches.append(user)
        return matches

    def resolve(
        self,
        phone: str | None = None,
        email: str | None = None,
        identity_id: str | None = None,
        *,
        partial_email: bool = True,
    ) -> Resolution:
        """Run the chain id -> phone -> phone suffix -> email -> partial email.

        Flows that write to the resolved record pass ``partial_email=False``
        so a loose email match can never receive a password.
        """
        chain = [
            (MatchStrategy.id_match, lambda: self.by_identity_id(identity_id)),
            (MatchStrategy.exact_phone, lambda: self.by_phone_variants(phone)),
            (MatchStrategy.suffix_phone, lambda: self.by_phone_suffix(phone)),
            (MatchStrategy.exact_email, lambda: self.by_email(email)),
        ]
        if partial_email:
            chain.append(
                (MatchStrategy.partial_email, lambda: self.by_partial_email(email))
            )
        return self._run(chain, phone=phone)

    def resolve_phone(self, phone: str | None) -> Resolution:
        """Phone-only chain used by OTP flows (never falls back to email)."""
        chain = (
            (MatchStrategy.exact_phone, lambda: self.by_phone_variants(phone)),
            (MatchStrategy.suffix_phone, lambda: self.by_phone_suffix(phone)),
        )
        return self._run(chain, phone=phone)

    def _run(self, chain, *, phone: str | None) -> Resolution:
        for strategy, step in chain:
            users = step()
            if users:
                logger.info(
                    "Resolved %d user(s) via %s",
                    len(users),
                    strategy.value,
                    extra={"strategy": strategy.value, "user_id": str(users[0].id)},
                )
                return Resolution(strategy=strategy, users=users)

        logger.info("No user matched identity hints (phone=%s)", mask_phone(phone))
        return Resolution()

    @staticmethod
    def pick_best(
        users: list[User],
        phone: str | None = None,
        identity_id: str | None = None,
    ) -> User | None:
        """Disambiguate several candidates.

        Preference order: matches both identity id and phone, then active
        users, then the most recently updated record.
        """
        if not users:
            return None
        if len(users) == 1:
            return users[0]

        if identity_id and phone:
            target_suffix = phone_suffix(phone)
            for user in users:
                if user.external_auth_id == identity_id and (
                    normalize_phone(user.phone) == normalize_phone(phone)
                    or (user.phone and phone_suffix(user.phone) == target_suffix)
                ):
                    return user

        candidates = [u for u in users if u.is_active] or users
        return max(candidates, key=lambda u: as_utc(u.updated_at))

    @staticmethod
    def belongs_to(
        owner: User,
        identity_id: str,
        verified_phone: str | None = None,
        verified_email: str | None = None,
    ) -> bool:
        """Whether a verified identity may act on ``owner``.

        An owner bound to an identity belongs to that identity only. An unbound
        owner belongs to an identity whose verified phone (or, when given,
        verified email) is the owner's own. Client-supplied hints never count.
        """
        if owner.external_auth_id:
            return owner.external_auth_id == identity_id
        if same_phone(owner.phone, verified_phone):
            return True
        return bool(
            verified_email
            and owner.email
            and owner.email.strip().lower() == verified_email.strip().lower()
        )


def get_phone_identity_resolver(store: StoreDep) -> PhoneIdentityResolver:
    return PhoneIdentityResolver(store)


ResolverDep = Annotated[PhoneIdentityResolver, Depends(get_phone_identity_resolver)]
