"""Auth domain schemas.

Request and response schemas for owner authentication operations.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from compoundgate.auth.flow import AuthStep


class OwnerSummary(BaseModel):
    """Owner fields the login screens need."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    phone: str | None
    has_password: bool
    is_first_time_login: bool


class CheckDeviceRequest(BaseModel):
    device_fingerprint: str = Field(min_length=1, max_length=64)
    user_agent: str = Field(min_length=1, max_length=512)
    phone: str | None = None


class DeviceSessionState(BaseModel):
    is_known_device: bool
    requires_otp: bool
    last_used_at: datetime | None = None


class CheckDeviceResponse(BaseModel):
    owner: OwnerSummary | None
    device_session: DeviceSessionState
    requires_otp: bool
    next_step: AuthStep


class SendOtpRequest(BaseModel):
    phone: str = Field(min_length=1)
    recaptcha_token: str | None = None


class SendOtpResponse(BaseModel):
    """``verification_id`` is the opaque handle to send back with the code."""

    verification_id: str
    next_step: AuthStep


class ConfirmOtpRequest(BaseModel):
    verification_id: str = Field(min_length=1)
    code: str = Field(min_length=1)
    device_fingerprint: str = Field(min_length=1, max_length=64)
    user_agent: str = Field(min_length=1, max_length=512)


class ConfirmOtpResponse(BaseModel):
    owner: OwnerSummary
    next_step: AuthStep


class OwnerHints(BaseModel):
    """Optional hints used to find the owner record."""

    owner_id: uuid.UUID | None = None
    phone: str | None = None
    email: str | None = None


class SetupPasswordRequest(OwnerHints):
    password: str
    confirm_password: str
    device_fingerprint: str = Field(min_length=1, max_length=64)
    user_agent: str = Field(min_length=1, max_length=512)


class SetupPasswordResponse(BaseModel):
    message: str
    device_trusted: bool
    next_step: AuthStep


class LoginPasswordRequest(BaseModel):
    password: str = Field(min_length=1)
    device_fingerprint: str = Field(min_length=1, max_length=64)
    user_agent: str = Field(min_length=1, max_length=512)
    email: EmailStr | None = None
    phone: str | None = None


class LoginPasswordResponse(BaseModel):
    owner: OwnerSummary
    requires_otp: bool
    next_step: AuthStep


class ActivateDeviceRequest(OwnerHints):
    device_fingerprint: str = Field(min_length=1, max_length=64)
    user_agent: str = Field(min_length=1, max_length=512)


class ActivateDeviceResponse(BaseModel):
    message: str
    next_step: AuthStep


class DeviceFingerprintRequest(BaseModel):
    """Browser environment signals, as collected on the client."""

    user_agent: str
    screen_resolution: str
    timezone: str
    language: str
    platform: str
    cookie_enabled: bool
    do_not_track: str | None = None
    color_depth: int
    pixel_ratio: float


class DeviceFingerprintResponse(BaseModel):
    device_fingerprint: str


class AuthMessage(BaseModel):
    """Generic auth message response."""

    message: str
