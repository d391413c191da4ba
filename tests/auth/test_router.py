"""Tests for auth domain router."""

from fastapi.testclient import TestClient

from compoundgate.auth.credentials import hash_password
from compoundgate.auth.exceptions import InvalidOtpError
from compoundgate.auth.service import TokenClaims
from compoundgate.core.exceptions import RateLimitError
from compoundgate.device.models import DeviceSession
from compoundgate.device.service import DeviceSessionManager

PASSWORD = "S3cure!pass"
DEVICE = {"device_fingerprint": "fp-1", "user_agent": "Mozilla/5.0"}


def _with_password(store, owner, uid="owner-uid-1"):
    return store.update(
        owner,
        password_hash=hash_password(PASSWORD),
        has_password=True,
        is_first_time_login=False,
        external_auth_id=uid,
    )


class TestCheckDevice:
    def test_first_time_owner_needs_otp(self, client: TestClient, owner):
        response = client.post(
            "/auth/check-device", json={**DEVICE, "phone": "0100 123 4567"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["requires_otp"] is True
        assert data["next_step"] == "otp_entry"
        assert data["owner"]["id"] == str(owner.id)
        assert data["device_session"]["is_known_device"] is False
        assert "password_hash" not in data["owner"]

    def test_unknown_device_without_context(self, client: TestClient, owner):
        response = client.post("/auth/check-device", json=DEVICE)

        assert response.status_code == 200
        assert response.json()["owner"] is None
        assert response.json()["next_step"] == "otp_entry"

    def test_unregistered_phone(self, client: TestClient, owner):
        response = client.post(
            "/auth/check-device", json={**DEVICE, "phone": "+14155550000"}
        )

        assert response.status_code == 404
        assert response.json() == {
            "type": "phone_not_registered",
            "message": "Phone not registered by admin",
        }

    def test_trusted_device_may_use_password(self, client: TestClient, store, owner):
        owner = _with_password(store, owner)
        DeviceSessionManager(store).create_or_activate(
            owner.id, "fp-1", "Mozilla/5.0", "10.0.0.1"
        )

        response = client.post(
            "/auth/check-device", json={**DEVICE, "phone": owner.phone}
        )

        assert response.json()["requires_otp"] is False
        assert response.json()["next_step"] == "password_login"

    def test_missing_fingerprint_is_rejected(self, client: TestClient):
        response = client.post("/auth/check-device", json={"user_agent": "UA"})

        assert response.status_code == 422
        assert response.json()["type"] == "validation_error"


class TestOtp:
    def test_send_otp(self, client: TestClient, owner, mock_firebase_auth):
        response = client.post("/auth/send-otp", json={"phone": "01001234567"})

        assert response.status_code == 200
        assert response.json() == {
            "verification_id": "session-info-123",
            "next_step": "otp_verify",
        }
        mock_firebase_auth.send_verification_code.assert_awaited_once_with(
            "+201001234567", recaptcha_token=None
        )

    def test_send_otp_rate_limited(self, client: TestClient, owner, mock_firebase_auth):
        mock_firebase_auth.send_verification_code.side_effect = RateLimitError(
            "Too many attempts, try again later", retry_after=60
        )

        response = client.post("/auth/send-otp", json={"phone": owner.phone})

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        assert response.json()["type"] == "rate_limit_exceeded"

    def test_confirm_otp_sets_session_cookie(
        self, client: TestClient, owner, mock_firebase_auth
    ):
        response = client.post(
            "/auth/confirm-otp",
            json={**DEVICE, "verification_id": "session-info-123", "code": "123456"},
        )

        assert response.status_code == 200
        assert response.json()["next_step"] == "password_setup"
        assert response.cookies.get("session") == "mock-session-cookie"
        set_cookie = response.headers["set-cookie"].lower()
        assert "httponly" in set_cookie
        assert "samesite=lax" in set_cookie
        mock_firebase_auth.create_session_cookie.assert_called_once()
        assert mock_firebase_auth.create_session_cookie.call_args[0][0] == (
            "phone-id-token"
        )

    def test_confirm_otp_wrong_code(self, client: TestClient, owner, mock_firebase_auth):
        mock_firebase_auth.sign_in_with_phone_number.side_effect = InvalidOtpError()

        response = client.post(
            "/auth/confirm-otp",
            json={**DEVICE, "verification_id": "session-info-123", "code": "000000"},
        )

        assert response.status_code == 400
        assert response.json() == {
            "type": "invalid_otp",
            "message": "Invalid or expired verification code",
        }
        assert "session" not in response.cookies


class TestSetupPassword:
    def test_requires_authentication(self, client: TestClient, owner):
        response = client.post(
            "/auth/setup-password",
            json={**DEVICE, "password": PASSWORD, "confirm_password": PASSWORD},
        )

        assert response.status_code == 401
        assert response.json()["type"] == "not_authenticated"

    def test_sets_password_and_trusts_device(
        self, client: TestClient, store, owner, bearer
    ):
        # Phone OTP confirmation binds the owner before setup
        store.update(owner, external_auth_id="owner-uid-1")

        response = client.post(
            "/auth/setup-password",
            json={
                **DEVICE,
                "password": PASSWORD,
                "confirm_password": PASSWORD,
                "phone": owner.phone,
            },
            headers=bearer,
        )

        assert response.status_code == 200
        assert response.json() == {
            "message": "Password set up successfully",
            "device_trusted": True,
            "next_step": "authenticated",
        }
        store.session.refresh(owner)
        assert owner.has_password is True
        assert owner.external_auth_id == "owner-uid-1"

    def test_weak_password_lists_requirements(self, client: TestClient, owner, bearer):
        response = client.post(
            "/auth/setup-password",
            json={**DEVICE, "password": "weak", "confirm_password": "weak"},
            headers=bearer,
        )

        assert response.status_code == 400
        data = response.json()
        assert data["type"] == "password_policy_error"
        assert "Password must be at least 8 characters long" in data["details"]

    def test_other_identity_is_forbidden(
        self, client: TestClient, store, owner, bearer
    ):
        store.update(owner, external_auth_id="someone-else")

        response = client.post(
            "/auth/setup-password",
            json={
                **DEVICE,
                "password": PASSWORD,
                "confirm_password": PASSWORD,
                "owner_id": str(owner.id),
            },
            headers=bearer,
        )

        assert response.status_code == 403
        assert response.json()["type"] == "identity_mismatch"

    def test_foreign_identity_cannot_claim_unbound_owner(
        self, client: TestClient, store, owner, bearer, mock_firebase_auth
    ):
        mock_firebase_auth.verify_id_token.return_value = TokenClaims(
            uid="stranger-uid", phone_number="+15559990000"
        )

        response = client.post(
            "/auth/setup-password",
            json={
                **DEVICE,
                "password": PASSWORD,
                "confirm_password": PASSWORD,
                "phone": owner.phone,
            },
            headers=bearer,
        )

        assert response.status_code == 403
        assert response.json()["type"] == "identity_mismatch"
        store.session.refresh(owner)
        assert owner.external_auth_id is None
        assert owner.has_password is False


class TestLoginPassword:
    def test_trusted_device_signs_in(
        self, client: TestClient, store, owner, mock_firebase_auth
    ):
        owner = _with_password(store, owner)
        DeviceSessionManager(store).create_or_activate(
            owner.id, "fp-1", "Mozilla/5.0", "10.0.0.1"
        )

        response = client.post(
            "/auth/login-password",
            json={**DEVICE, "password": PASSWORD, "email": owner.email},
        )

        assert response.status_code == 200
        assert response.json()["next_step"] == "authenticated"
        assert response.cookies.get("session") == "mock-session-cookie"
        mock_firebase_auth.id_token_for_uid.assert_awaited_once_with("owner-uid-1")

    def test_untrusted_device_goes_to_otp(
        self, client: TestClient, store, owner, mock_firebase_auth
    ):
        owner = _with_password(store, owner)

        response = client.post(
            "/auth/login-password",
            json={**DEVICE, "password": PASSWORD, "phone": owner.phone},
        )

        assert response.status_code == 200
        assert response.json()["requires_otp"] is True
        assert response.json()["next_step"] == "otp_entry"
        assert "session" not in response.cookies
        mock_firebase_auth.id_token_for_uid.assert_not_called()
        assert store.first(DeviceSession, user_id=owner.id).is_active is False

    def test_wrong_password_and_unknown_owner_match(
        self, client: TestClient, store, owner
    ):
        _with_password(store, owner)

        wrong = client.post(
            "/auth/login-password",
            json={**DEVICE, "password": "Wr0ng!pass", "email": owner.email},
        )
        unknown = client.post(
            "/auth/login-password",
            json={**DEVICE, "password": PASSWORD, "email": "nobody@example.com"},
        )

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json() == {
            "type": "invalid_credentials",
            "message": "Invalid credentials",
        }


class TestActivateDevice:
    def test_activates_device(self, client: TestClient, store, owner, bearer):
        owner = _with_password(store, owner)

        response = client.post("/auth/activate-device", json=DEVICE, headers=bearer)

        assert response.status_code == 200
        assert response.json() == {
            "message": "Device activated successfully",
            "next_step": "authenticated",
        }
        assert DeviceSessionManager(store).get_active_by_fingerprint("fp-1") is not None


def test_device_fingerprint(client: TestClient):
    response = client.post(
        "/auth/device-fingerprint",
        json={
            "user_agent": "Mozilla/5.0",
            "screen_resolution": "1920x1080",
            "timezone": "Africa/Cairo",
            "language": "en-US",
            "platform": "Linux x86_64",
            "cookie_enabled": True,
            "color_depth": 24,
            "pixel_ratio": 1,
        },
    )

    assert response.status_code == 200
    fingerprint = response.json()["device_fingerprint"]
    assert fingerprint.isalnum()
    assert fingerprint == fingerprint.lower()


class TestSignOut:
    def test_logout_requires_cookie(self, client: TestClient):
        response = client.post("/auth/logout")

        assert response.status_code == 401

    def test_logout(self, client: TestClient, mock_firebase_auth):
        client.cookies.set("session", "mock-session-cookie")

        response = client.post("/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"message": "Logout successful"}
        mock_firebase_auth.logout.assert_called_once_with("mock-session-cookie")

    def test_revoke_tokens_deactivates_devices(
        self, client: TestClient, store, owner, bearer, mock_firebase_auth
    ):
        owner = _with_password(store, owner)
        DeviceSessionManager(store).create_or_activate(
            owner.id, "fp-1", "Mozilla/5.0", "10.0.0.1"
        )

        response = client.post("/auth/revoke-tokens", headers=bearer)

        assert response.status_code == 200
        assert response.json() == {"message": "All tokens have been revoked"}
        mock_firebase_auth.revoke_refresh_tokens.assert_called_once_with("owner-uid-1")
        assert DeviceSessionManager(store).get_active_by_fingerprint("fp-1") is None

    def test_revoke_tokens_requires_identity(self, client: TestClient):
        response = client.post("/auth/revoke-tokens")

        assert response.status_code == 401
