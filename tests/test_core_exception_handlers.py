"""Tests for compoundgate/core/exception_handlers.py - unified error bodies."""

from unittest.mock import MagicMock

from compoundgate.auth.exceptions import PasswordPolicyError
from compoundgate.core.exception_handlers import (
    app_exception_handler,
    unhandled_exception_handler,
)
from compoundgate.core.exceptions import ProviderError, RateLimitError
from compoundgate.user.exceptions import PhoneNotRegisteredError


def _request():
    request = MagicMock()
    request.method = "POST"
    request.url.path = "/auth/send-otp"
    return request


def test_app_exception_body():
    response = app_exception_handler(_request(), PhoneNotRegisteredError())

    assert response.status_code == 404
    assert response.body == (
        b'{"type":"phone_not_registered","message":"Phone not registered by admin"}'
    )


def test_password_policy_details():
    error = PasswordPolicyError(requirements=["Password must contain at least one number"])

    response = app_exception_handler(_request(), error)

    assert response.status_code == 400
    assert b'"details":["Password must contain at least one number"]' in response.body


def test_rate_limit_retry_after_header():
    response = app_exception_handler(_request(), RateLimitError(retry_after=30))

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "30"


def test_provider_error_is_bad_gateway():
    response = app_exception_handler(_request(), ProviderError())

    assert response.status_code == 502


def test_unhandled_exception_hides_details():
    response = unhandled_exception_handler(_request(), RuntimeError("db password=x"))

    assert response.status_code == 500
    assert b"db password" not in response.body
