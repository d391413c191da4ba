"""Identity Toolkit REST payloads used for phone verification.

https://cloud.google.com/identity-platform/docs/reference/rest/v1/accounts
"""

from typing import NotRequired, TypedDict

IDENTITY_TOOLKIT_ENDPOINTS: dict[str, str] = {
    "sendVerificationCode": "v1/accounts:sendVerificationCode",
    "signInWithPhoneNumber": "v1/accounts:signInWithPhoneNumber",
    "signInWithCustomToken": "v1/accounts:signInWithCustomToken",
}


class SendVerificationCodeRequest(TypedDict, total=False):
    """Request schema for sendVerificationCode endpoint."""

    phoneNumber: str  # E.164
    recaptchaToken: NotRequired[str]
    tenantId: NotRequired[str]


class SendVerificationCodeResponse(TypedDict, total=False):
    sessionInfo: str  # Opaque handle echoed back on confirmation


class SignInWithPhoneNumberRequest(TypedDict, total=False):
    """Request schema for signInWithPhoneNumber endpoint."""

    sessionInfo: str
    code: str
    tenantId: NotRequired[str]


class SignInWithPhoneNumberResponse(TypedDict, total=False):
    """Response schema for signInWithPhoneNumber endpoint."""

    idToken: str
    refreshToken: str
    expiresIn: str
    localId: str  # The UID of the verified user
    isNewUser: bool
    phoneNumber: str


class SignInWithCustomTokenResponse(TypedDict, total=False):
    """Response schema for signInWithCustomToken endpoint."""

    kind: str
    idToken: str
    refreshToken: str
    expiresIn: str
    isNewUser: bool
