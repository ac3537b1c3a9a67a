"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Each role is denied the operations it does not own (403)
- Denials are written to the audit log
- Owners can perform privileged operations
"""

import pytest

from homebake.decorators import require_any_permission, require_permission
from homebake.models import AuditEvent
from homebake.permissions import DEFAULT_ROLE_PERMISSIONS, validate_permission_code
from homebake.services import activity_service, user_service

from conftest import TEST_PASSWORD


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("GET", "/api/users"),
            ("POST", "/api/invites"),
            ("GET", "/api/bread-types"),
            ("GET", "/api/batches"),
            ("POST", "/api/batches"),
            ("POST", "/api/sales"),
            ("GET", "/api/inventory/current"),
            ("GET", "/api/reports/range"),
            ("GET", "/api/activities"),
            ("GET", "/api/activities/feed"),
            ("GET", "/api/notifications/monitoring"),
            ("GET", "/api/dashboard/owner"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token_rejected(self, client, db_session):
        resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401


# =============================================================================
# SALES REP DENIED - 403
# =============================================================================


class TestSalesRepDenied:

    def test_cannot_list_users(self, client, sales_headers):
        resp = client.get("/api/users", headers=sales_headers)
        assert resp.status_code == 403
        assert resp.get_json()["required_permission"] == "VIEW_USERS"

    def test_cannot_create_batch(self, client, sales_headers, bread_type):
        resp = client.post("/api/batches", json={"bread_type_id": bread_type.id}, headers=sales_headers)
        assert resp.status_code == 403

    def test_cannot_view_reports(self, client, sales_headers):
        resp = client.get("/api/reports/range", headers=sales_headers)
        assert resp.status_code == 403

    def test_cannot_open_owner_dashboard(self, client, sales_headers):
        resp = client.get("/api/dashboard/owner", headers=sales_headers)
        assert resp.status_code == 403
        assert resp.get_json()["required_roles"] == ["owner"]

    def test_denial_is_audited(self, client, db_session, sales_rep, sales_headers):
        client.get("/api/users", headers=sales_headers)
        event = db_session.query(AuditEvent).filter_by(event_type="PERMISSION_DENIED").one()
        assert event.actor_user_id == sales_rep.id
        assert event.action == "VIEW_USERS"
        assert event.resource == "/api/users"
        assert event.success is False


# =============================================================================
# MANAGER LIMITS - 403
# =============================================================================


class TestManagerLimits:

    def test_cannot_create_invites(self, client, manager_headers):
        resp = client.post("/api/invites", json={"role": "sales_rep"}, headers=manager_headers)
        assert resp.status_code == 403

    def test_cannot_manage_bread_types(self, client, manager_headers):
        resp = client.post(
            "/api/bread-types",
            json={"name": "Rye", "unit_price_cents": 5000},
            headers=manager_headers,
        )
        assert resp.status_code == 403

    def test_cannot_list_activities(self, client, manager_headers):
        resp = client.get("/api/activities", headers=manager_headers)
        assert resp.status_code == 403

    def test_change_feed_has_no_details(self, client, manager_headers, sales_rep):
        activity_service.log_activity(sales_rep, "sale", "Recorded sale: 3x Family Loaf")
        resp = client.get("/api/activities/feed", headers=manager_headers)
        assert resp.status_code == 200
        [item] = resp.get_json()["items"]
        assert item["activity_type"] == "sale"
        assert "message" not in item
        assert "user_name" not in item

    def test_can_view_staff_online(self, client, manager_headers):
        resp = client.get("/api/users/staff-online", headers=manager_headers)
        assert resp.status_code == 200

    def test_can_open_manager_dashboard(self, client, manager_headers):
        resp = client.get("/api/dashboard/manager", headers=manager_headers)
        assert resp.status_code == 200
        assert "batch_stats" in resp.get_json()


# =============================================================================
# OWNER PRIVILEGES
# =============================================================================


class TestOwnerPrivileges:

    def test_can_list_users(self, client, owner_headers, manager, sales_rep):
        resp = client.get("/api/users", headers=owner_headers)
        assert resp.status_code == 200
        roles = sorted(u["role"] for u in resp.get_json()["items"])
        assert roles == ["manager", "owner", "sales_rep"]

    def test_cannot_end_shift(self, client, owner_headers):
        resp = client.post("/api/sales/end-shift", json={"shift": "morning"}, headers=owner_headers)
        assert resp.status_code == 403

    def test_cannot_open_sales_rep_dashboard(self, client, owner_headers):
        resp = client.get("/api/dashboard/sales-rep", headers=owner_headers)
        assert resp.status_code == 403

    def test_cannot_assign_owner_role(self, client, owner_headers, manager):
        resp = client.patch(f"/api/users/{manager.id}/role", json={"role": "owner"}, headers=owner_headers)
        assert resp.status_code == 400


# =============================================================================
# SESSIONS
# =============================================================================


class TestSessions:

    def test_login_returns_token_and_permissions(self, client, sales_rep):
        resp = client.post("/api/auth/login", json={"email": "SALES@homebake.test", "password": TEST_PASSWORD})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["token"]
        assert data["user"]["role"] == "sales_rep"
        assert "RECORD_SALE" in data["permissions"]
        assert "VIEW_USERS" not in data["permissions"]

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
        assert me.status_code == 200
        assert me.get_json()["user"]["email"] == "sales@homebake.test"

    def test_wrong_password_rejected(self, client, db_session, sales_rep):
        resp = client.post("/api/auth/login", json={"email": "sales@homebake.test", "password": "nope-nope"})
        assert resp.status_code == 401
        assert db_session.query(AuditEvent).filter_by(event_type="LOGIN_FAILED").count() == 1

    def test_logout_revokes_token(self, client, sales_headers):
        assert client.post("/api/auth/logout", headers=sales_headers).status_code == 200
        assert client.get("/api/auth/me", headers=sales_headers).status_code == 401

    def test_deactivation_revokes_sessions(self, client, owner, sales_rep, sales_headers):
        user_service.deactivate_user(owner, sales_rep.id, reason="left")
        assert client.get("/api/auth/me", headers=sales_headers).status_code == 401


# =============================================================================
# PERMISSION CODES
# =============================================================================


class TestPermissionCodes:

    def test_unknown_code_rejected_at_definition(self):
        with pytest.raises(ValueError, match="VIEW_EVERYTHING"):
            require_permission("VIEW_EVERYTHING")
        with pytest.raises(ValueError, match="SELL_CAKE"):
            require_any_permission("VIEW_SALES", "SELL_CAKE")

    @pytest.mark.parametrize("role", sorted(DEFAULT_ROLE_PERMISSIONS))
    def test_role_grants_are_defined(self, role):
        assert all(validate_permission_code(code) for code in DEFAULT_ROLE_PERMISSIONS[role])
