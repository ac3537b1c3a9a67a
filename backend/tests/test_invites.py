"""
QR invite tests.

Verifies:
- Only manager and sales_rep invites can be issued
- Tokens are 8 characters from A-Z0-9
- Invites expire 24 hours after creation
- Each invite can be redeemed exactly once
"""

from datetime import datetime, timedelta

import pytest

from homebake.models import Activity, QRInvite, User
from homebake.services import invite_service
from homebake.services.invite_service import InviteError


T0 = datetime(2026, 3, 2, 9, 0, 0)


def _freeze(monkeypatch, when):
    monkeypatch.setattr(invite_service, "utcnow", lambda: when)


class TestTokens:

    def test_token_shape(self):
        for _ in range(50):
            token = invite_service.generate_token()
            assert len(token) == 8
            assert set(token) <= set(invite_service.TOKEN_ALPHABET)


class TestCreateInvite:

    def test_owner_creates_sales_rep_invite(self, client, owner_headers):
        resp = client.post("/api/invites", json={"role": "sales_rep"}, headers=owner_headers)
        assert resp.status_code == 201
        invite = resp.get_json()["invite"]
        assert invite["role"] == "sales_rep"
        assert invite["invite_url"] == f"https://bake.test/signup?token={invite['token']}"
        assert invite["qr_code_url"].endswith("/qr.png")

    def test_owner_invite_rejected(self, client, owner_headers):
        resp = client.post("/api/invites", json={"role": "owner"}, headers=owner_headers)
        assert resp.status_code == 400

    def test_non_owner_cannot_create(self, db_session, manager):
        with pytest.raises(InviteError):
            invite_service.create_invite("sales_rep", manager)

    def test_expires_after_24_hours(self, db_session, owner, monkeypatch):
        _freeze(monkeypatch, T0)
        invite = invite_service.create_invite("manager", owner)
        assert invite.expires_at == T0 + timedelta(hours=24)

    def test_qr_code_is_png(self, client, owner, owner_headers):
        invite = invite_service.create_invite("sales_rep", owner)
        resp = client.get(f"/api/invites/{invite.token}/qr.png", headers=owner_headers)
        assert resp.status_code == 200
        assert resp.mimetype == "image/png"
        assert resp.data.startswith(b"\x89PNG")


class TestValidateInvite:

    def test_valid_until_expiry(self, db_session, owner, monkeypatch):
        _freeze(monkeypatch, T0)
        invite = invite_service.create_invite("sales_rep", owner)

        _freeze(monkeypatch, T0 + timedelta(hours=23, minutes=59))
        assert invite_service.validate_invite(invite.token) is not None

        _freeze(monkeypatch, T0 + timedelta(hours=24))
        assert invite_service.validate_invite(invite.token) is None

    def test_lowercase_token_accepted(self, db_session, owner):
        invite = invite_service.create_invite("sales_rep", owner)
        assert invite_service.validate_invite(invite.token.lower()).id == invite.id

    def test_validate_endpoint(self, client, owner):
        invite = invite_service.create_invite("manager", owner)
        resp = client.get(f"/api/invites/{invite.token}/validate")
        assert resp.status_code == 200
        assert resp.get_json() == {
            "valid": True,
            "role": "manager",
            "expires_at": invite.to_dict()["expires_at"],
        }

        assert client.get("/api/invites/ZZZZZZZZ/validate").status_code == 404


class TestRedeemInvite:

    def test_signup_creates_user_with_invite_role(self, client, db_session, owner):
        invite = invite_service.create_invite("sales_rep", owner)
        resp = client.post("/api/auth/signup", json={
            "token": invite.token,
            "name": "Ngozi",
            "email": "ngozi@homebake.test",
            "password": "Password123!",
        })
        assert resp.status_code == 201
        data = resp.get_json()
        assert data["user"]["role"] == "sales_rep"
        assert data["user"]["created_by_user_id"] == owner.id
        assert data["token"]

        db_session.expire_all()
        stored = db_session.get(QRInvite, invite.id)
        assert stored.is_used is True
        assert stored.used_by_user_id == data["user"]["id"]

        activity = db_session.query(Activity).filter_by(activity_type="created").one()
        assert activity.user_id == data["user"]["id"]

    def test_single_use(self, db_session, owner):
        invite = invite_service.create_invite("manager", owner)
        invite_service.redeem_invite(invite.token, "First", "first@homebake.test", "Password123!")

        with pytest.raises(InviteError, match="already been used"):
            invite_service.redeem_invite(invite.token, "Second", "second@homebake.test", "Password123!")
        assert db_session.query(User).filter_by(email="second@homebake.test").count() == 0

    def test_concurrent_redeem_claims_once(self, db_session, owner, monkeypatch):
        invite = invite_service.create_invite("sales_rep", owner)
        real_get = invite_service.get_invite

        def stale_get(token):
            # Another signup claims the invite after this one has read it
            loaded = real_get(token)
            db_session.query(QRInvite).filter_by(id=loaded.id).update(
                {"is_used": True}, synchronize_session=False
            )
            return loaded

        monkeypatch.setattr(invite_service, "get_invite", stale_get)
        with pytest.raises(InviteError, match="already been used"):
            invite_service.redeem_invite(invite.token, "Racer", "racer@homebake.test", "Password123!")
        assert db_session.query(User).filter_by(email="racer@homebake.test").count() == 0

    def test_expired_invite_rejected(self, db_session, owner, monkeypatch):
        _freeze(monkeypatch, T0)
        invite = invite_service.create_invite("sales_rep", owner)

        _freeze(monkeypatch, T0 + timedelta(hours=24, seconds=1))
        with pytest.raises(InviteError, match="expired"):
            invite_service.redeem_invite(invite.token, "Late", "late@homebake.test", "Password123!")

    def test_weak_password_leaves_invite_unused(self, client, db_session, owner):
        invite = invite_service.create_invite("sales_rep", owner)
        resp = client.post("/api/auth/signup", json={
            "token": invite.token,
            "name": "Short",
            "email": "short@homebake.test",
            "password": "abc",
        })
        assert resp.status_code == 400
        assert invite_service.validate_invite(invite.token) is not None


class TestRevokeInvite:

    def test_revoke_unused(self, client, db_session, owner, owner_headers):
        invite = invite_service.create_invite("sales_rep", owner)
        resp = client.delete(f"/api/invites/{invite.id}", headers=owner_headers)
        assert resp.status_code == 200
        assert invite_service.get_invite(invite.token) is None

    def test_used_invite_cannot_be_revoked(self, client, owner, owner_headers):
        invite = invite_service.create_invite("sales_rep", owner)
        invite_service.redeem_invite(invite.token, "Used", "used@homebake.test", "Password123!")
        resp = client.delete(f"/api/invites/{invite.id}", headers=owner_headers)
        assert resp.status_code == 400
