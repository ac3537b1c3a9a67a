"""
Bread type catalog and staff management tests.
"""

import pytest

from homebake.models import AuditEvent, BreadType, User
from homebake.services import bread_type_service, production_service, user_service
from homebake.services.user_service import UserManagementError

from conftest import auth_headers, token_for


class TestBreadTypes:

    def test_create(self, client, owner_headers):
        resp = client.post(
            "/api/bread-types",
            json={"name": "Coconut Bread", "size": "400g", "unit_price_cents": 80000},
            headers=owner_headers,
        )
        assert resp.status_code == 201
        assert resp.get_json()["bread_type"]["unit_price_cents"] == 80000

    def test_duplicate_name_conflicts(self, client, owner_headers, bread_type):
        resp = client.post(
            "/api/bread-types",
            json={"name": "family loaf", "unit_price_cents": 100},
            headers=owner_headers,
        )
        assert resp.status_code == 409

    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "Rye", "unit_price_cents": -1},
            {"name": "Rye", "unit_price_cents": 12.5},
            {"name": "", "unit_price_cents": 100},
            {"name": "Rye", "unit_price_cents": 100, "colour": "brown"},
        ],
    )
    def test_invalid_payloads(self, client, owner_headers, payload):
        resp = client.post("/api/bread-types", json=payload, headers=owner_headers)
        assert resp.status_code == 400

    def test_update_price(self, client, owner_headers, bread_type):
        resp = client.patch(
            f"/api/bread-types/{bread_type.id}",
            json={"unit_price_cents": 130000},
            headers=owner_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["bread_type"]["unit_price_cents"] == 130000

    def test_delete_unused(self, client, db_session, owner_headers, bread_type):
        resp = client.delete(f"/api/bread-types/{bread_type.id}", headers=owner_headers)
        assert resp.get_json() == {"result": "deleted"}
        assert db_session.query(BreadType).count() == 0

    def test_delete_with_history_deactivates(self, client, db_session, manager, owner_headers, bread_type):
        production_service.record_production({"bread_type_id": bread_type.id, "quantity": 3}, manager)

        resp = client.delete(f"/api/bread-types/{bread_type.id}", headers=owner_headers)
        assert resp.get_json() == {"result": "deactivated"}

        db_session.expire_all()
        assert db_session.get(BreadType, bread_type.id).is_active is False
        assert bread_type_service.list_bread_types() == []
        assert len(bread_type_service.list_bread_types(include_inactive=True)) == 1

    def test_seed_is_idempotent(self, db_session, owner):
        first = bread_type_service.seed_default_bread_types(owner.id)
        assert first == len(bread_type_service.DEFAULT_BREAD_TYPES)
        assert bread_type_service.seed_default_bread_types(owner.id) == 0


class TestUserManagement:

    def test_change_role(self, client, db_session, owner_headers, sales_rep):
        resp = client.patch(f"/api/users/{sales_rep.id}/role", json={"role": "manager"}, headers=owner_headers)
        assert resp.status_code == 200
        assert resp.get_json()["user"]["role"] == "manager"
        assert db_session.query(AuditEvent).filter_by(event_type="ROLE_CHANGED").count() == 1

    def test_cannot_change_owner_role(self, db_session, owner):
        with pytest.raises(UserManagementError):
            user_service.update_role(owner, owner.id, "manager")

    def test_deactivate_and_reactivate(self, client, db_session, owner_headers, sales_rep):
        rep_headers = auth_headers(token_for(sales_rep))

        resp = client.post(f"/api/users/{sales_rep.id}/deactivate", json={"reason": "left"}, headers=owner_headers)
        assert resp.get_json()["user"]["is_active"] is False
        assert client.get("/api/auth/me", headers=rep_headers).status_code == 401

        resp = client.post(f"/api/users/{sales_rep.id}/reactivate", headers=owner_headers)
        assert resp.get_json()["user"]["is_active"] is True

    def test_delete_without_history(self, client, db_session, owner_headers, sales_rep):
        resp = client.delete(f"/api/users/{sales_rep.id}", headers=owner_headers)
        assert resp.status_code == 200
        db_session.expire_all()
        assert db_session.get(User, sales_rep.id) is None

    def test_delete_with_history_conflicts(self, client, db_session, owner_headers, manager, bread_type):
        production_service.record_production({"bread_type_id": bread_type.id, "quantity": 3}, manager)
        resp = client.delete(f"/api/users/{manager.id}", headers=owner_headers)
        assert resp.status_code == 409

    def test_unknown_user(self, client, owner_headers):
        resp = client.get("/api/users/424242", headers=owner_headers)
        assert resp.status_code == 404


class TestStaffOnline:

    def test_counts_recent_sessions_only(self, client, db_session, owner, manager, sales_rep, manager_headers):
        resp = client.get("/api/users/staff-online", headers=manager_headers)
        data = resp.get_json()
        # Only the manager has a session; owners are never counted
        assert data["online"] == 1
        assert data["total"] == 2
        assert [s["name"] for s in data["staff"]] == ["Mary Manager"]

    def test_sales_rep_forbidden(self, client, sales_headers):
        resp = client.get("/api/users/staff-online", headers=sales_headers)
        assert resp.status_code == 403
