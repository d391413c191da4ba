"""Tests for invite domain router."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from compoundgate.auth.service import TokenClaims
from compoundgate.core.mixins import utc_now
from compoundgate.invite.models import InviteStatus, OwnerInvite
from compoundgate.user.models import User

ADMIN_UID = "admin-uid-1"
INVITEE_PHONE = "+201005555555"


@pytest.fixture
def as_admin(mock_firebase_auth, bearer):
    """Bearer headers that verify as the compound admin."""
    mock_firebase_auth.verify_id_token.return_value = TokenClaims(uid=ADMIN_UID)
    return bearer


@pytest.fixture
def pending_invite(store, compound) -> OwnerInvite:
    return store.create(
        OwnerInvite(
            token="tok-pending",
            compound_id=compound.id,
            phone=INVITEE_PHONE,
            email="invitee@example.com",
            property_unit="B-12",
            created_by=ADMIN_UID,
            expires_at=utc_now() + timedelta(days=7),
        )
    )


class TestCreateInvite:
    def test_admin_creates_invite(self, client: TestClient, store, compound, as_admin):
        response = client.post(
            "/owners/invites",
            json={
                "compound_id": str(compound.id),
                "phone": INVITEE_PHONE,
                "email": "invitee@example.com",
                "first_name": "Omar",
            },
            headers=as_admin,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email_sent"] is False
        invite = store.first(OwnerInvite, token=data["token"])
        assert invite.status == InviteStatus.pending
        assert invite.created_by == ADMIN_UID
        assert invite.expires_at is not None

    def test_sends_email_when_configured(
        self, client: TestClient, compound, as_admin, mock_settings
    ):
        mock_settings.resend_api_key = "re_test"

        with patch("compoundgate.invite.router.send_owner_invite_email") as mock_send:
            response = client.post(
                "/owners/invites",
                json={
                    "compound_id": str(compound.id),
                    "phone": INVITEE_PHONE,
                    "email": "invitee@example.com",
                },
                headers=as_admin,
            )

        assert response.json()["email_sent"] is True
        mock_send.assert_called_once()
        assert mock_send.call_args.kwargs["compound_name"] == "Palm Hills"

    def test_email_failure_still_returns_token(
        self, client: TestClient, compound, as_admin, mock_settings
    ):
        mock_settings.resend_api_key = "re_test"

        with patch(
            "compoundgate.invite.router.send_owner_invite_email",
            side_effect=RuntimeError("resend down"),
        ):
            response = client.post(
                "/owners/invites",
                json={
                    "compound_id": str(compound.id),
                    "phone": INVITEE_PHONE,
                    "email": "invitee@example.com",
                },
                headers=as_admin,
            )

        assert response.status_code == 201
        assert response.json()["email_sent"] is False
        assert response.json()["token"]

    def test_other_admin_is_forbidden(self, client: TestClient, compound, bearer):
        response = client.post(
            "/owners/invites",
            json={"compound_id": str(compound.id), "phone": INVITEE_PHONE},
            headers=bearer,
        )

        assert response.status_code == 403
        assert response.json()["message"] == "You do not manage this compound"

    def test_requires_authentication(self, client: TestClient, compound):
        response = client.post(
            "/owners/invites",
            json={"compound_id": str(compound.id), "phone": INVITEE_PHONE},
        )

        assert response.status_code == 401


class TestGetInvite:
    def test_by_token(self, client: TestClient, pending_invite):
        response = client.get("/owners/invites", params={"token": "tok-pending"})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "pending"
        assert data["phone"] == INVITEE_PHONE
        assert "token" not in data

    def test_unknown_token(self, client: TestClient):
        response = client.get("/owners/invites", params={"token": "missing"})

        assert response.status_code == 404
        assert response.json()["message"] == "Invite not found"


class TestAcceptInvite:
    def _accept(self, client, bearer, token="tok-pending"):
        return client.post(
            "/owners/invites/accept",
            json={"token": token, "first_name": "Omar", "last_name": "Said"},
            headers=bearer,
        )

    def test_creates_owner_once(self, client: TestClient, store, pending_invite, bearer):
        response = self._accept(client, bearer)

        assert response.status_code == 200
        assert response.json() == {"message": "Invite accepted"}
        owner = store.first(User, phone=INVITEE_PHONE)
        assert owner.first_name == "Omar"
        assert owner.property_unit == "B-12"
        assert owner.has_password is False
        assert owner.is_first_time_login is True
        store.session.refresh(pending_invite)
        assert pending_invite.status == InviteStatus.accepted
        assert pending_invite.accepted_by_uid == "owner-uid-1"

        again = self._accept(client, bearer)
        assert again.status_code == 400
        assert again.json()["message"] == "Invalid or used invite"

    def test_expired_invite_is_marked(
        self, client: TestClient, store, pending_invite, bearer
    ):
        store.update(pending_invite, expires_at=utc_now() - timedelta(minutes=1))

        response = self._accept(client, bearer)

        assert response.status_code == 400
        store.session.refresh(pending_invite)
        assert pending_invite.status == InviteStatus.expired
        assert store.first(User, phone=INVITEE_PHONE) is None

    def test_phone_already_registered(
        self, client: TestClient, store, make_owner, pending_invite, bearer
    ):
        make_owner(phone="0100 555 5555", email="taken@example.com")

        response = self._accept(client, bearer)

        assert response.status_code == 400
        assert response.json() == {
            "type": "phone_in_use",
            "message": "Phone number already in use",
        }
        store.session.refresh(pending_invite)
        assert pending_invite.status == InviteStatus.pending


class TestRevokeInvite:
    def test_admin_revokes(self, client: TestClient, pending_invite, as_admin):
        response = client.post(
            f"/owners/invites/{pending_invite.id}/revoke", headers=as_admin
        )

        assert response.status_code == 200
        assert response.json()["status"] == "revoked"

    def test_revoked_invite_cannot_be_accepted(
        self, client: TestClient, store, pending_invite, bearer
    ):
        store.update(pending_invite, status=InviteStatus.revoked)

        response = client.post(
            "/owners/invites/accept",
            json={"token": "tok-pending", "first_name": "Omar", "last_name": "Said"},
            headers=bearer,
        )

        assert response.status_code == 400

    def test_other_admin_cannot_revoke(self, client: TestClient, pending_invite, bearer):
        response = client.post(
            f"/owners/invites/{pending_invite.id}/revoke", headers=bearer
        )

        assert response.status_code == 403
