"""Owner authentication state machine.

OTP over the registered phone is the trust anchor. A password plus a known,
active device is only a fast path once that anchor has been established on
the device:

    initial -> {otp_entry, password_login}
    otp_entry -> otp_verify -> {password_setup, authenticated}
    password_setup -> authenticated
    password_login -> {authenticated, otp_entry}

Every operation returns a result carrying the ``next_step`` the client
should move to. Verified identities are passed in explicitly.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Annotated

from fastapi import Depends

from compoundgate.auth.credentials import (
    hash_password,
    validate_password_strength,
    verify_password,
)
from compoundgate.auth.dependencies import FirebaseAuthDep
from compoundgate.auth.exceptions import (
    IdentityMismatchError,
    InvalidCredentialsError,
    PasswordMismatchError,
    PasswordPolicyError,
)
from compoundgate.auth.service import OtpChannel, TokenClaims
from compoundgate.core.exceptions import AppException, ValidationError
from compoundgate.db.store import IdentityStore, StoreDep
from compoundgate.device.models import DeviceSession
from compoundgate.device.service import DeviceManagerDep, DeviceSessionManager
from compoundgate.user.exceptions import PhoneNotRegisteredError, UserNotFoundError
from compoundgate.user.models import User
from compoundgate.user.phone import mask_phone, to_e164
from compoundgate.user.resolver import PhoneIdentityResolver, ResolverDep

logger = logging.getLogger(__name__)


class AuthStep(str, Enum):
    initial = "initial"
    otp_entry = "otp_entry"
    otp_verify = "otp_verify"
    password_setup = "password_setup"
    password_login = "password_login"
    authenticated = "authenticated"


@dataclass
class DeviceCheck:
    owner: User | None
    requires_otp: bool
    is_known_device: bool
    next_step: AuthStep
    last_used_at: datetime | None = None


@dataclass
class OtpSent:
    handle: str
    next_step: AuthStep = AuthStep.otp_verify


@dataclass
class OtpConfirmation:
    owner: User
    id_token: str
    next_step: AuthStep
    device_session: DeviceSession | None = None


@dataclass
class PasswordSetup:
    owner: User
    device_trusted: bool
    next_step: AuthStep = AuthStep.authenticated


@dataclass
class PasswordLogin:
    owner: User
    requires_otp: bool
    next_step: AuthStep
    device_session: DeviceSession


@dataclass
class DeviceActivation:
    owner: User
    device_session: DeviceSession
    next_step: AuthStep = AuthStep.authenticated


def _require(message: str, *values: str | None) -> None:
    if not all(values):
        raise ValidationError(message)


class OwnerAuthFlow:
    """Composes resolver, device sessions, credentials and the OTP channel."""

    def __init__(
        self,
        store: IdentityStore,
        otp: OtpChannel,
        resolver: PhoneIdentityResolver | None = None,
        devices: DeviceSessionManager | None = None,
    ):
        self._store = store
        self._otp = otp
        self._resolver = resolver or PhoneIdentityResolver(store)
        self._devices = devices or DeviceSessionManager(store)

    def _log_step(self, message: str, owner: User | None, step: AuthStep) -> None:
        logger.info(
            message,
            extra={
                "user_id": str(owner.id) if owner else None,
                "next_step": step.value,
            },
        )

    def check_device(
        self,
        fingerprint: str,
        user_agent: str,
        phone: str | None = None,
        identity: TokenClaims | None = None,
    ) -> DeviceCheck:
        """Decide whether this device may use the password fast path.

        Raises:
            ValidationError: If fingerprint or user agent is missing
            PhoneNotRegisteredError: If a phone was given but matches no owner
            UserNotFoundError: If an active session points at a deleted owner
        """
        _require(
            "Device fingerprint and user agent are required", fingerprint, user_agent
        )

        owner: User | None = None
        if phone:
            resolution = self._resolver.resolve_phone(phone)
            if not resolution.found:
                raise PhoneNotRegisteredError()
            owner = self._resolver.pick_best(
                resolution.users, phone=phone, identity_id=identity and identity.uid
            )
            if identity is not None and self._resolver.belongs_to(
                owner, identity.uid, identity.phone_number
            ):
                self._attach_identity(owner, identity.uid)
        elif identity is not None:
            owner = self._resolver.pick_best(
                self._resolver.by_identity_id(identity.uid), identity_id=identity.uid
            )

        device_session: DeviceSession | None
        # Fingerprint alone only stands in for an anonymous caller.
        if owner is None and not phone and identity is None:
            device_session = self._devices.get_active_by_fingerprint(fingerprint)
            if device_session is not None:
                owner = self._store.read(User, device_session.user_id)
                if owner is None:
                    raise UserNotFoundError()

        if owner is None:
            self._log_step("Device check: no owner context", None, AuthStep.otp_entry)
            return DeviceCheck(
                owner=None,
                requires_otp=True,
                is_known_device=False,
                next_step=AuthStep.otp_entry,
            )

        device_session = self._devices.get_by_user_and_device(owner.id, fingerprint)
        is_known_device = bool(device_session and device_session.is_active)
        requires_otp = (
            not owner.has_password or owner.is_first_time_login or not is_known_device
        )
        next_step = AuthStep.otp_entry if requires_otp else AuthStep.password_login
        self._log_step("Device check completed", owner, next_step)
        return DeviceCheck(
            owner=owner,
            requires_otp=requires_otp,
            is_known_device=is_known_device,
            next_step=next_step,
            last_used_at=device_session.last_used_at if device_session else None,
        )

    def _attach_identity(self, owner: User, uid: str) -> None:
        """Record a verified uid on an owner that has none yet (best-effort)."""
        if owner.external_auth_id:
            return
        try:
            self._store.update(owner, external_auth_id=uid)
        except AppException:
            logger.warning(
                "Failed to attach identity to owner",
                extra={"user_id": str(owner.id)},
                exc_info=True,
            )

    async def send_otp(
        self, phone: str, recaptcha_token: str | None = None
    ) -> OtpSent:
        """Send a verification code to a phone an admin registered.

        Raises:
            ValidationError: If phone is missing
            PhoneNotRegisteredError: If no owner has this phone
        """
        _require("Phone number is required", phone)
        if not self._resolver.resolve_phone(phone).found:
            raise PhoneNotRegisteredError()

        handle = await self._otp.send_verification_code(
            to_e164(phone), recaptcha_token=recaptcha_token
        )
        logger.info(
            "Verification code sent to %s",
            mask_phone(phone),
            extra={"next_step": AuthStep.otp_verify.value},
        )
        return OtpSent(handle=handle)

    async def confirm_otp(
        self,
        handle: str,
        code: str,
        fingerprint: str,
        user_agent: str,
        ip_address: str,
    ) -> OtpConfirmation:
        """Confirm a code and move the owner to setup or straight in.

        Raises:
            ValidationError: If any input is missing
            InvalidOtpError: If the provider rejects the code
            UserNotFoundError: If the verified phone matches no owner
        """
        _require(
            "Verification handle, code, device fingerprint and user agent are required",
            handle,
            code,
            fingerprint,
            user_agent,
        )

        verified = await self._otp.sign_in_with_phone_number(handle, code)

        resolution = self._resolver.resolve(
            phone=verified.phone_number, identity_id=verified.uid, partial_email=False
        )
        owner = self._resolver.pick_best(
            resolution.users, phone=verified.phone_number, identity_id=verified.uid
        )
        if owner is None:
            raise UserNotFoundError()

        if owner.external_auth_id != verified.uid:
            if owner.external_auth_id:
                logger.warning(
                    "Rebinding owner to phone-verified identity",
                    extra={"user_id": str(owner.id)},
                )
            owner = self._store.update(owner, external_auth_id=verified.uid)

        if owner.is_first_time_login or not owner.has_password:
            self._log_step("OTP confirmed", owner, AuthStep.password_setup)
            return OtpConfirmation(
                owner=owner,
                id_token=verified.id_token,
                next_step=AuthStep.password_setup,
            )

        device_session = self._devices.create_or_activate(
            owner.id, fingerprint, user_agent, ip_address
        )
        self._log_step("OTP confirmed", owner, AuthStep.authenticated)
        return OtpConfirmation(
            owner=owner,
            id_token=verified.id_token,
            next_step=AuthStep.authenticated,
            device_session=device_session,
        )

    def _resolve_for_identity(
        self,
        identity: TokenClaims,
        owner_id: uuid.UUID | str | None,
        phone: str | None,
        email: str | None,
    ) -> User:
        """Resolve the owner a verified identity is acting on.

        Order: explicit owner id, identity id, phone chain, exact email. The
        hints only pick a candidate; the owner must belong to the identity.

        Raises:
            UserNotFoundError: If no owner matches
            IdentityMismatchError: If the owner is bound to another identity, or
                is unbound and the identity's verified phone is not theirs
        """
        owner = self._store.read(User, owner_id) if owner_id else None
        if owner is None:
            resolution = self._resolver.resolve(
                phone=phone or identity.phone_number,
                email=email,
                identity_id=identity.uid,
                partial_email=False,
            )
            owner = self._resolver.pick_best(
                resolution.users, phone=phone, identity_id=identity.uid
            )
        if owner is None:
            raise UserNotFoundError()
        if not self._resolver.belongs_to(owner, identity.uid, identity.phone_number):
            logger.warning(
                "Identity does not own the requested owner record",
                extra={"user_id": str(owner.id)},
            )
            raise IdentityMismatchError()
        return owner

    def setup_password(
        self,
        password: str,
        confirm_password: str,
        fingerprint: str,
        user_agent: str,
        ip_address: str,
        identity: TokenClaims,
        owner_id: uuid.UUID | str | None = None,
        phone: str | None = None,
        email: str | None = None,
    ) -> PasswordSetup:
        """Store the owner's first password and trust this device.

        Raises:
            ValidationError: If required fields are missing
            PasswordMismatchError: If the two passwords differ
            PasswordPolicyError: If the password is too weak
            UserNotFoundError: If no owner matches
            IdentityMismatchError: If the owner belongs to another identity
        """
        _require(
            "Password, confirm password, device fingerprint, and user agent are required",
            password,
            confirm_password,
            fingerprint,
            user_agent,
        )
        if password != confirm_password:
            raise PasswordMismatchError()
        strength = validate_password_strength(password)
        if not strength.is_valid:
            raise PasswordPolicyError(requirements=strength.errors)

        owner = self._resolve_for_identity(identity, owner_id, phone, email)
        owner = self._store.update(
            owner,
            password_hash=hash_password(password),
            has_password=True,
            is_first_time_login=False,
            external_auth_id=identity.uid,
        )

        device_trusted = True
        try:
            self._devices.create_or_activate(
                owner.id, fingerprint, user_agent, ip_address
            )
        except AppException:
            device_trusted = False
            logger.warning(
                "Device trust after password setup failed",
                extra={"user_id": str(owner.id)},
                exc_info=True,
            )

        self._log_step("Password set up", owner, AuthStep.authenticated)
        return PasswordSetup(owner=owner, device_trusted=device_trusted)

    def login_with_password(
        self,
        password: str,
        fingerprint: str,
        user_agent: str,
        ip_address: str,
        email: str | None = None,
        phone: str | None = None,
    ) -> PasswordLogin:
        """Password fast path, valid only on an already trusted device.

        A correct password from an unknown device still routes to OTP.

        Raises:
            ValidationError: If required fields are missing
            InvalidCredentialsError: For unknown accounts and wrong passwords
        """
        _require(
            "Password, device fingerprint, and user agent are required",
            password,
            fingerprint,
            user_agent,
        )
        _require("Email or phone is required", email or phone)

        candidates = self._resolver.by_email(email) if email else []
        if not candidates and phone:
            candidates = self._resolver.by_phone_variants(phone)
        owner = self._resolver.pick_best(candidates, phone=phone)

        if (
            owner is None
            or not owner.has_password
            or not verify_password(password, owner.password_hash)
        ):
            raise InvalidCredentialsError()

        device_session = self._devices.get_by_user_and_device(owner.id, fingerprint)
        if device_session is not None and device_session.is_active:
            device_session = self._devices.touch(device_session)
            self._log_step("Password login", owner, AuthStep.authenticated)
            return PasswordLogin(
                owner=owner,
                requires_otp=False,
                next_step=AuthStep.authenticated,
                device_session=device_session,
            )

        if device_session is None:
            device_session = self._devices.create(
                owner.id, fingerprint, user_agent, ip_address, False
            )
        else:
            device_session = self._devices.touch(device_session)
        self._log_step("Password login from untrusted device", owner, AuthStep.otp_entry)
        return PasswordLogin(
            owner=owner,
            requires_otp=True,
            next_step=AuthStep.otp_entry,
            device_session=device_session,
        )

    def activate_device(
        self,
        fingerprint: str,
        user_agent: str,
        ip_address: str,
        identity: TokenClaims,
        owner_id: uuid.UUID | str | None = None,
        phone: str | None = None,
        email: str | None = None,
    ) -> DeviceActivation:
        _require(
            "Device fingerprint and user agent are required", fingerprint, user_agent
        )
        owner = self._resolve_for_identity(identity, owner_id, phone, email)
        device_session = self._devices.create_or_activate(
            owner.id, fingerprint, user_agent, ip_address
        )
        self._log_step("Device activated", owner, AuthStep.authenticated)
        return DeviceActivation(owner=owner, device_session=device_session)

    def revoke_devices(self, identity: TokenClaims) -> int:
        """Deactivate every device of the owners bound to this identity."""
        return sum(
            self._devices.deactivate_all(owner.id)
            for owner in self._resolver.by_identity_id(identity.uid)
        )


def get_owner_auth_flow(
    store: StoreDep,
    firebase_auth: FirebaseAuthDep,
    resolver: ResolverDep,
    devices: DeviceManagerDep,
) -> OwnerAuthFlow:
    return OwnerAuthFlow(store, otp=firebase_auth, resolver=resolver, devices=devices)


OwnerAuthFlowDep = Annotated[OwnerAuthFlow, Depends(get_owner_auth_flow)]
