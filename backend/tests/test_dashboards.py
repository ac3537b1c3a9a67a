"""
Role dashboard and CLI tests.
"""

from homebake.models import BreadType, User
from homebake.services import batch_service, production_service, sales_service
from homebake.shifts import current_shift


class TestDashboards:

    def test_owner_dashboard(self, client, db_session, manager, sales_rep, owner_headers, bread_type):
        production_service.record_production({"bread_type_id": bread_type.id, "quantity": 8}, manager)
        sales_service.record_sale({"bread_type_id": bread_type.id, "quantity": 2}, sales_rep)

        resp = client.get("/api/dashboard/owner", headers=owner_headers)
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["today_revenue_cents"] == 240000
        assert data["today_items_sold"] == 2
        assert data["today_production"] == 8
        assert data["current_shift"]["shift"] == current_shift()
        assert [a["activity_type"] for a in data["recent_activities"]] == ["sale"]
        # 6 left with a threshold of 10
        assert [i["bread_type_name"] for i in data["low_stock"]] == ["Family Loaf"]

    def test_manager_dashboard(self, client, db_session, manager, manager_headers, bread_type):
        batch_service.create_batch({"bread_type_id": bread_type.id, "target_quantity": 50}, manager)

        resp = client.get("/api/dashboard/manager", headers=manager_headers)
        data = resp.get_json()
        assert [b["batch_number"] for b in data["active_batches"]] == ["001"]
        assert data["batch_stats"]["active_batches"] == 1
        assert data["production_by_bread_type"] == []

    def test_sales_rep_dashboard(self, client, db_session, manager, sales_rep, sales_headers, bread_type):
        production_service.record_production({"bread_type_id": bread_type.id, "quantity": 20}, manager)
        sales_service.record_sale({"bread_type_id": bread_type.id, "quantity": 3}, sales_rep)
        sales_service.record_sale({"bread_type_id": bread_type.id, "quantity": 1, "returned": True}, sales_rep)

        resp = client.get("/api/dashboard/sales-rep", headers=sales_headers)
        data = resp.get_json()
        assert len(data["my_sales"]) == 2
        assert data["my_items_sold"] == 3
        assert data["my_revenue_cents"] == 360000
        assert data["available_stock"][0]["available"] == 17

    def test_manager_cannot_open_owner_dashboard(self, client, manager_headers):
        assert client.get("/api/dashboard/owner", headers=manager_headers).status_code == 403


class TestCli:

    def test_seed_bread_types(self, app, db_session, owner):
        result = app.test_cli_runner().invoke(args=["bread-types", "seed"])
        assert result.exit_code == 0
        assert "Seeded 5 bread types" in result.output
        assert db_session.query(BreadType).count() == 5

    def test_create_owner(self, app, db_session):
        result = app.test_cli_runner().invoke(args=[
            "users", "create-owner",
            "--name", "Ada Owner",
            "--email", "ada@homebake.test",
            "--password", "Password123!",
        ])
        assert result.exit_code == 0, result.output
        assert db_session.query(User).filter_by(role="owner").count() == 1

    def test_create_owner_weak_password(self, app, db_session):
        result = app.test_cli_runner().invoke(args=[
            "users", "create-owner",
            "--name", "Ada Owner",
            "--email", "ada@homebake.test",
            "--password", "short",
        ])
        assert result.exit_code != 0

    def test_generate_vapid(self, app):
        result = app.test_cli_runner().invoke(args=["push", "generate-vapid"])
        assert result.exit_code == 0
        lines = dict(line.split("=", 1) for line in result.output.strip().splitlines())
        # Uncompressed P-256 point is 65 bytes -> 87 base64url characters
        assert len(lines["VAPID_PUBLIC_KEY"]) == 87
        assert len(lines["VAPID_PRIVATE_KEY"]) == 43


class TestHealth:

    def test_health_is_public(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["checks"]["database"]["status"] == "healthy"
        # No VAPID keys in tests
        assert data["status"] == "degraded"
