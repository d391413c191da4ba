"""Auth domain router.

Owner authentication routes: device check, phone OTP, password setup and
login, device activation and sign-out. Thin HTTP handlers that delegate to
``OwnerAuthFlow`` for business logic and to ``FirebaseAuthService`` for
session cookies.
"""

import logging

from fastapi import APIRouter, Request, Response

from compoundgate.auth.dependencies import (
    FirebaseAuthDep,
    IdentityDep,
    OptionalIdentityDep,
)
from compoundgate.auth.exceptions import NotAuthenticatedError
from compoundgate.auth.flow import AuthStep, OwnerAuthFlowDep
from compoundgate.auth.schemas import (
    ActivateDeviceRequest,
    ActivateDeviceResponse,
    AuthMessage,
    CheckDeviceRequest,
    CheckDeviceResponse,
    ConfirmOtpRequest,
    ConfirmOtpResponse,
    DeviceFingerprintRequest,
    DeviceFingerprintResponse,
    DeviceSessionState,
    LoginPasswordRequest,
    LoginPasswordResponse,
    OwnerSummary,
    SendOtpRequest,
    SendOtpResponse,
    SetupPasswordRequest,
    SetupPasswordResponse,
)
from compoundgate.auth.service import FirebaseAuthService
from compoundgate.core.constants import SESSION_COOKIE_NAME, CommonResponses, Routes
from compoundgate.core.deps import SettingsDep
from compoundgate.core.request_logging import client_ip_from_request
from compoundgate.core.settings import Settings
from compoundgate.device.fingerprint import DeviceInfo, generate_device_fingerprint

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix=Routes.AUTH.prefix,
    tags=[Routes.AUTH.tag],
    responses={**CommonResponses.BAD_REQUEST},
)


def _set_session_cookie(
    response: Response,
    firebase_auth: FirebaseAuthService,
    settings: Settings,
    id_token: str,
) -> None:
    session_cookie = firebase_auth.create_session_cookie(
        id_token, expires_in=settings.session_expires_in
    )
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_cookie,
        max_age=int(settings.session_expires_in.total_seconds()),
        httponly=True,
        secure=settings.is_secure_cookie,
        samesite="lax",
    )


@router.post(
    "/check-device",
    response_model=CheckDeviceResponse,
    responses={**CommonResponses.UNAUTHORIZED, **CommonResponses.NOT_FOUND},
)
async def check_device(
    payload: CheckDeviceRequest,
    flow: OwnerAuthFlowDep,
    identity: OptionalIdentityDep,
):
    """Tell the client whether this device needs OTP or may use its password.

    The owner is resolved from the phone hint, then the verified identity,
    then an active session already bound to the fingerprint.
    """
    result = flow.check_device(
        payload.device_fingerprint,
        payload.user_agent,
        phone=payload.phone,
        identity=identity,
    )
    return CheckDeviceResponse(
        owner=OwnerSummary.model_validate(result.owner) if result.owner else None,
        device_session=DeviceSessionState(
            is_known_device=result.is_known_device,
            requires_otp=result.requires_otp,
            last_used_at=result.last_used_at,
        ),
        requires_otp=result.requires_otp,
        next_step=result.next_step,
    )


@router.post(
    "/send-otp",
    response_model=SendOtpResponse,
    responses={**CommonResponses.NOT_FOUND, **CommonResponses.BAD_GATEWAY},
)
async def send_otp(payload: SendOtpRequest, flow: OwnerAuthFlowDep):
    """Send an SMS code to a phone number registered by an admin."""
    result = await flow.send_otp(payload.phone, recaptcha_token=payload.recaptcha_token)
    return SendOtpResponse(verification_id=result.handle, next_step=result.next_step)


@router.post(
    "/confirm-otp",
    response_model=ConfirmOtpResponse,
    responses={**CommonResponses.NOT_FOUND, **CommonResponses.BAD_GATEWAY},
)
async def confirm_otp(
    payload: ConfirmOtpRequest,
    request: Request,
    response: Response,
    flow: OwnerAuthFlowDep,
    firebase_auth: FirebaseAuthDep,
    settings: SettingsDep,
):
    """Confirm the SMS code and set the Firebase session cookie.

    The cookie is what authorizes the follow-up password setup.
    """
    result = await flow.confirm_otp(
        payload.verification_id,
        payload.code,
        payload.device_fingerprint,
        payload.user_agent,
        client_ip_from_request(request),
    )
    _set_session_cookie(response, firebase_auth, settings, result.id_token)
    return ConfirmOtpResponse(
        owner=OwnerSummary.model_validate(result.owner), next_step=result.next_step
    )


@router.post(
    "/setup-password",
    response_model=SetupPasswordResponse,
    responses={
        **CommonResponses.UNAUTHORIZED,
        **CommonResponses.FORBIDDEN,
        **CommonResponses.NOT_FOUND,
    },
)
async def setup_password(
    payload: SetupPasswordRequest,
    request: Request,
    flow: OwnerAuthFlowDep,
    identity: IdentityDep,
):
    """Set the owner's first password and trust the current device."""
    result = flow.setup_password(
        payload.password,
        payload.confirm_password,
        payload.device_fingerprint,
        payload.user_agent,
        client_ip_from_request(request),
        identity,
        owner_id=payload.owner_id,
        phone=payload.phone,
        email=payload.email,
    )
    return SetupPasswordResponse(
        message="Password set up successfully",
        device_trusted=result.device_trusted,
        next_step=result.next_step,
    )


@router.post(
    "/login-password",
    response_model=LoginPasswordResponse,
    responses={**CommonResponses.UNAUTHORIZED},
)
async def login_password(
    payload: LoginPasswordRequest,
    request: Request,
    response: Response,
    flow: OwnerAuthFlowDep,
    firebase_auth: FirebaseAuthDep,
    settings: SettingsDep,
):
    """Password login; an untrusted device is sent back to OTP."""
    result = flow.login_with_password(
        payload.password,
        payload.device_fingerprint,
        payload.user_agent,
        client_ip_from_request(request),
        email=payload.email,
        phone=payload.phone,
    )

    if result.next_step == AuthStep.authenticated and result.owner.external_auth_id:
        id_token = await firebase_auth.id_token_for_uid(result.owner.external_auth_id)
        _set_session_cookie(response, firebase_auth, settings, id_token)

    return LoginPasswordResponse(
        owner=OwnerSummary.model_validate(result.owner),
        requires_otp=result.requires_otp,
        next_step=result.next_step,
    )


@router.post(
    "/activate-device",
    response_model=ActivateDeviceResponse,
    responses={
        **CommonResponses.UNAUTHORIZED,
        **CommonResponses.FORBIDDEN,
        **CommonResponses.NOT_FOUND,
    },
)
async def activate_device(
    payload: ActivateDeviceRequest,
    request: Request,
    flow: OwnerAuthFlowDep,
    identity: IdentityDep,
):
    """Trust the current device for an owner who just proved their phone."""
    result = flow.activate_device(
        payload.device_fingerprint,
        payload.user_agent,
        client_ip_from_request(request),
        identity,
        owner_id=payload.owner_id,
        phone=payload.phone,
        email=payload.email,
    )
    return ActivateDeviceResponse(
        message="Device activated successfully", next_step=result.next_step
    )


@router.post("/device-fingerprint", response_model=DeviceFingerprintResponse)
async def device_fingerprint(payload: DeviceFingerprintRequest):
    """Compute the fingerprint a browser would compute from the same signals."""
    info = DeviceInfo(**payload.model_dump())
    return DeviceFingerprintResponse(
        device_fingerprint=generate_device_fingerprint(info)
    )


@router.post(
    "/logout",
    response_model=AuthMessage,
    responses={**CommonResponses.UNAUTHORIZED},
)
async def logout(
    request: Request,
    response: Response,
    firebase_auth: FirebaseAuthDep,
):
    """Clear Firebase session cookie and revoke refresh tokens."""
    session_cookie = request.cookies.get(SESSION_COOKIE_NAME)
    if not session_cookie:
        raise NotAuthenticatedError()

    # Always clear cookie on logout
    response.delete_cookie(key=SESSION_COOKIE_NAME)
    firebase_auth.logout(session_cookie)

    return AuthMessage(message="Logout successful")


@router.post(
    "/revoke-tokens",
    response_model=AuthMessage,
    responses={**CommonResponses.UNAUTHORIZED},
)
async def revoke_tokens(
    response: Response,
    identity: IdentityDep,
    flow: OwnerAuthFlowDep,
    firebase_auth: FirebaseAuthDep,
):
    """Sign the owner out everywhere.

    Revokes refresh tokens and deactivates every trusted device, so the next
    login on any device goes through OTP again.
    """
    firebase_auth.revoke_refresh_tokens(identity.uid)
    deactivated = flow.revoke_devices(identity)
    response.delete_cookie(key=SESSION_COOKIE_NAME)
    logger.info("Revoked tokens and %d device session(s)", deactivated)

    return AuthMessage(message="All tokens have been revoked")
