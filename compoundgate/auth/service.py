"""Firebase Authentication Service.

This module provides a clean abstraction over Firebase Admin SDK and
Identity Toolkit REST API for the operations owner authentication needs:
phone verification (the OTP channel), token and session cookie
verification, and custom token exchange for password logins.
"""

import contextlib
import logging
import re
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import Any, Protocol

import httpx
from firebase_admin import auth as firebase_admin_auth
from firebase_admin.exceptions import FirebaseError

from compoundgate.auth.exceptions import (
    InvalidOtpError,
    InvalidTokenError,
    SessionCookieError,
    UserDisabledError,
)
from compoundgate.auth.identity_toolkit import (
    IDENTITY_TOOLKIT_ENDPOINTS,
    SendVerificationCodeResponse,
    SignInWithCustomTokenResponse,
    SignInWithPhoneNumberResponse,
)
from compoundgate.core.exceptions import (
    AppException,
    BadRequestError,
    ProviderError,
    RateLimitError,
)
from compoundgate.core.http import get_identity_toolkit_client
from compoundgate.core.retry import with_retry

logger = logging.getLogger(__name__)

_INVALID_OTP_MESSAGES = {
    "INVALID_CODE",
    "CODE_EXPIRED",
    "SESSION_EXPIRED",
    "INVALID_SESSION_INFO",
    "MISSING_CODE",
    "MISSING_SESSION_INFO",
}

_RATE_LIMIT_MESSAGES = {
    "TOO_MANY_ATTEMPTS_TRY_LATER",
    "QUOTA_EXCEEDED",
}


@dataclass(frozen=True)
class PhoneSignIn:
    """Result of a confirmed phone verification."""

    uid: str
    id_token: str
    phone_number: str | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Decoded token claims from Firebase."""

    uid: str
    email: str | None = None
    phone_number: str | None = None


class OtpChannel(Protocol):
    """Phone verification provider: send a code, then confirm it."""

    async def send_verification_code(
        self, phone_number: str, recaptcha_token: str | None = None
    ) -> str:
        """Send an SMS code and return the opaque confirmation handle."""
        ...

    async def sign_in_with_phone_number(
        self, session_info: str, code: str
    ) -> PhoneSignIn:
        """Confirm a code against its handle."""
        ...


class FirebaseAuthService:
    """Firebase Authentication Service implementation.

    Handles all Firebase authentication operations including:
    - Phone verification via Identity Toolkit REST API
    - Session cookie creation and verification
    - ID token verification
    - Custom token minting and exchange
    - Token revocation
    """

    def __init__(self, api_key: str | None):
        self._api_key = api_key

    def _ensure_api_key(self) -> str:
        """Ensure API key is configured."""
        if not self._api_key:
            raise AppException("Firebase API key not configured")
        return self._api_key

    async def _make_identity_toolkit_request(
        self, endpoint: str, payload: dict[str, Any], *, retry: bool = False
    ) -> dict[str, Any]:
        """Make a request to Identity Toolkit REST API.

        Args:
            endpoint: API endpoint path (e.g., "v1/accounts:sendVerificationCode")
            payload: Request payload
            retry: Whether to retry on transient network errors

        Returns:
            Response JSON data

        Raises:
            InvalidOtpError: If the verification code or handle is rejected
            RateLimitError: If rate limit exceeded
            ProviderError: If upstream returns unexpected response
        """
        api_key = self._ensure_api_key()
        client = get_identity_toolkit_client()

        async def do_request() -> httpx.Response:
            return await client.post(
                f"/{endpoint}", params={"key": api_key}, json=payload
            )

        # When retry=False, attempts=1 means no retries but still catches RequestError.
        try:
            response = await with_retry(
                do_request,
                # 2 attempts = 1 initial try + 1 retry on failure
                attempts=2 if retry else 1,
                exceptions=(httpx.RequestError,),
            )
        except httpx.RequestError as e:
            raise ProviderError("Authentication provider unavailable") from e

        if response.status_code != 200:
            self._handle_identity_toolkit_error(response)

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError() from e

    @staticmethod
    def _parse_retry_after(value: str | None) -> int | None:
        """Parse Retry-After header into seconds."""
        if not value:
            return None
        with contextlib.suppress(ValueError):
            parsed = int(value)
            if parsed >= 0:
                return parsed
        return None

    def _raise_rate_limit_error(
        self, response: httpx.Response, cause: BaseException | None = None
    ) -> None:
        """Raise RateLimitError with Retry-After header parsed from response."""
        retry_after = self._parse_retry_after(response.headers.get("Retry-After"))
        error = RateLimitError(
            "Too many attempts, try again later", retry_after=retry_after
        )
        if cause:
            raise error from cause
        raise error

    @staticmethod
    def _sanitize_error_code(error_message: str) -> str:
        """Extract a safe, non-sensitive error code for logging."""
        match = re.match(r"[A-Z0-9_]+", error_message)
        return match.group(0) if match else "UNKNOWN"

    def _handle_identity_toolkit_error(self, response: httpx.Response) -> None:
        """Handle error response from Identity Toolkit REST API."""
        try:
            error_data = response.json()
            error_message = error_data.get("error", {}).get("message", "Unknown error")
        except ValueError as e:
            if response.status_code == 429:
                self._raise_rate_limit_error(response, cause=e)
            raise ProviderError(
                "Authentication provider returned an invalid response"
            ) from e

        # Log sanitized error code for debugging (avoid sensitive data)
        error_code = self._sanitize_error_code(error_message)
        logger.info(
            "Identity Toolkit error: status=%s, code=%s",
            response.status_code,
            error_code,
        )

        if response.status_code == 429 or error_code in _RATE_LIMIT_MESSAGES:
            self._raise_rate_limit_error(response)

        if error_code in _INVALID_OTP_MESSAGES:
            raise InvalidOtpError()

        if error_code == "USER_DISABLED":
            raise UserDisabledError("User account is disabled")

        if error_code in {"INVALID_PHONE_NUMBER", "MISSING_PHONE_NUMBER"}:
            raise BadRequestError("Invalid phone number")

        if error_code in {"CAPTCHA_CHECK_FAILED", "MISSING_RECAPTCHA_TOKEN"}:
            raise BadRequestError("reCAPTCHA verification failed")

        if error_code in {"INVALID_CUSTOM_TOKEN", "CREDENTIAL_MISMATCH"}:
            raise ProviderError("Failed to exchange custom token")

        raise ProviderError(f"Authentication failed: {error_code}")

    async def send_verification_code(
        self, phone_number: str, recaptcha_token: str | None = None
    ) -> str:
        """Send an SMS verification code.

        Args:
            phone_number: Phone number in E.164 form
            recaptcha_token: Token from the client's reCAPTCHA widget, if any

        Returns:
            The sessionInfo handle to pass back on confirmation

        Raises:
            BadRequestError: If the phone number or reCAPTCHA is rejected
            RateLimitError: If rate limit exceeded
            ProviderError: If upstream returns unexpected response
        """
        payload: dict[str, Any] = {"phoneNumber": phone_number}
        if recaptcha_token:
            payload["recaptchaToken"] = recaptcha_token

        data: SendVerificationCodeResponse = await self._make_identity_toolkit_request(
            endpoint=IDENTITY_TOOLKIT_ENDPOINTS["sendVerificationCode"],
            payload=payload,
            retry=True,
        )

        session_info = data.get("sessionInfo")
        if not session_info:
            raise ProviderError("Failed to send verification code")
        return session_info

    async def sign_in_with_phone_number(
        self, session_info: str, code: str
    ) -> PhoneSignIn:
        """Confirm a verification code.

        Not retried: a replayed confirmation would consume the code twice.

        Raises:
            InvalidOtpError: If the code or handle is invalid or expired
            ProviderError: If upstream returns unexpected response
        """
        data: SignInWithPhoneNumberResponse = (
            await self._make_identity_toolkit_request(
                endpoint=IDENTITY_TOOLKIT_ENDPOINTS["signInWithPhoneNumber"],
                payload={"sessionInfo": session_info, "code": code},
            )
        )

        uid = data.get("localId")
        id_token = data.get("idToken")
        if not uid or not id_token:
            raise InvalidOtpError()

        return PhoneSignIn(
            uid=uid, id_token=id_token, phone_number=data.get("phoneNumber")
        )

    def create_custom_token(self, uid: str) -> str:
        try:
            token = firebase_admin_auth.create_custom_token(uid)
        except (ValueError, FirebaseError) as e:
            raise ProviderError("Failed to create custom token") from e
        return token.decode() if isinstance(token, bytes) else token

    async def sign_in_with_custom_token(self, custom_token: str) -> str:
        """Exchange a custom token for an ID token."""
        data: SignInWithCustomTokenResponse = (
            await self._make_identity_toolkit_request(
                endpoint=IDENTITY_TOOLKIT_ENDPOINTS["signInWithCustomToken"],
                payload={"token": custom_token, "returnSecureToken": True},
                retry=True,
            )
        )
        id_token = data.get("idToken")
        if not id_token:
            raise ProviderError("Failed to exchange custom token")
        return id_token

    async def id_token_for_uid(self, uid: str) -> str:
        """Mint an ID token for a user already verified by other means."""
        return await self.sign_in_with_custom_token(self.create_custom_token(uid))

    def create_session_cookie(self, id_token: str, expires_in: timedelta) -> str:
        """Create a session cookie from ID token.

        Args:
            id_token: Firebase ID token
            expires_in: Cookie expiration time (1 day to 2 weeks)

        Returns:
            Session cookie string

        Raises:
            SessionCookieError: If cookie creation fails
        """
        try:
            return firebase_admin_auth.create_session_cookie(
                id_token, expires_in=expires_in
            )
        except (ValueError, FirebaseError) as e:
            raise SessionCookieError("Failed to create session cookie") from e

    @staticmethod
    def _extract_token_claims(
        decoded: dict[str, Any], allow_sub: bool = False
    ) -> TokenClaims:
        """Extract uid, email and phone from decoded token claims.

        Raises:
            InvalidTokenError: If uid is missing
        """
        uid = decoded.get("uid")
        if allow_sub and not uid:
            uid = decoded.get("sub")

        if not uid:
            raise InvalidTokenError("Invalid token: missing uid")

        return TokenClaims(
            uid=uid,
            email=decoded.get("email"),
            phone_number=decoded.get("phone_number"),
        )

    def verify_session_cookie(
        self, session_cookie: str, check_revoked: bool = True
    ) -> TokenClaims:
        """Verify session cookie and return claims.

        Raises:
            SessionCookieError: If verification fails
        """
        try:
            decoded = firebase_admin_auth.verify_session_cookie(
                session_cookie, check_revoked=check_revoked
            )
            return self._extract_token_claims(decoded, allow_sub=True)
        except (ValueError, FirebaseError) as e:
            raise SessionCookieError("Invalid session cookie") from e
        except InvalidTokenError as e:
            raise SessionCookieError(e.message) from e

    def verify_id_token(self, id_token: str) -> TokenClaims:
        """Verify ID token and return claims.

        Raises:
            InvalidTokenError: If verification fails
        """
        try:
            decoded = firebase_admin_auth.verify_id_token(id_token)
        except (ValueError, FirebaseError) as e:
            raise InvalidTokenError() from e
        return self._extract_token_claims(decoded, allow_sub=False)

    def revoke_refresh_tokens(self, uid: str) -> None:
        """Revoke all refresh tokens for a user.

        Note:
            Silently ignores errors as this is typically best-effort.
        """
        try:
            firebase_admin_auth.revoke_refresh_tokens(uid)
        except FirebaseError:
            logger.warning("Failed to revoke refresh tokens", exc_info=True)

    def logout(self, session_cookie: str) -> None:
        """Logout user by revoking their refresh tokens.

        Cookie clearing is handled at the router level. Silently succeeds if
        the cookie is invalid (user already logged out).
        """
        try:
            claims = self.verify_session_cookie(session_cookie, check_revoked=False)
        except SessionCookieError:
            return
        self.revoke_refresh_tokens(claims.uid)


@lru_cache
def get_firebase_auth_service() -> FirebaseAuthService:
    """Get cached Firebase Auth Service instance.

    The service is cached for the application lifetime since
    its configuration doesn't change at runtime.
    """
    from compoundgate.core.settings import get_settings

    return FirebaseAuthService(api_key=get_settings().firebase_api_key)
