"""
Sales and inventory tests.

Verifies:
- available = produced - sold, clamped at zero
- Sales beyond available stock are rejected
- Returned sales do not count as sold
- Revenue is quantity * unit price - discount
- End of shift upserts one report per rep, shift and business date
"""

from homebake.models import Activity, RemainingBread, ShiftReport
from homebake.services import auth_service, inventory_service, production_service, sales_service
from homebake.services.sales_service import SalesError
from homebake.shifts import current_shift

import pytest

from conftest import auth_headers, token_for


def _produce(user, bread_type, quantity, shift=None):
    return production_service.record_production(
        {"bread_type_id": bread_type.id, "quantity": quantity, "shift": shift or current_shift()},
        user,
    )


def _sell(user, bread_type, quantity, **extra):
    payload = {"bread_type_id": bread_type.id, "quantity": quantity, "shift": current_shift()}
    payload.update(extra)
    return sales_service.record_sale(payload, user)


def _item(inventory, bread_type):
    return next(i for i in inventory["items"] if i["bread_type_id"] == bread_type.id)


class TestInventory:

    def test_available_is_produced_minus_sold(self, db_session, manager, sales_rep, bread_type):
        _produce(manager, bread_type, 50)
        _sell(sales_rep, bread_type, 20)

        item = _item(inventory_service.current_inventory(), bread_type)
        assert (item["produced"], item["sold"], item["available"]) == (50, 20, 30)

    def test_available_clamped_at_zero(self, app, db_session, manager, sales_rep, bread_type, monkeypatch):
        monkeypatch.setitem(app.config, "ENFORCE_STOCK_ON_SALE", False)
        _produce(manager, bread_type, 10)
        _sell(sales_rep, bread_type, 25)

        item = _item(inventory_service.current_inventory(), bread_type)
        assert item["sold"] == 25
        assert item["available"] == 0
        assert inventory_service.available_quantity(bread_type.id, current_shift()) == 0

    def test_other_shift_not_counted(self, db_session, manager, bread_type):
        other = "night" if current_shift() == "morning" else "morning"
        _produce(manager, bread_type, 30, shift=other)
        assert inventory_service.available_quantity(bread_type.id, current_shift()) == 0

    def test_low_stock_flag(self, db_session, manager, bread_type, other_bread_type):
        _produce(manager, bread_type, 5)

        inventory = inventory_service.current_inventory()
        assert _item(inventory, bread_type)["is_low_stock"] is True
        # Nothing produced yet is not flagged
        assert _item(inventory, other_bread_type)["is_low_stock"] is False
        assert [i["bread_type_id"] for i in inventory["low_stock"]] == [bread_type.id]

    def test_shift_endpoint_requires_valid_shift(self, client, sales_headers):
        resp = client.get("/api/inventory/shift?shift=afternoon", headers=sales_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Valid shift (morning or night) is required"

    def test_shift_endpoint(self, client, manager, sales_headers, bread_type):
        _produce(manager, bread_type, 12)
        resp = client.get(f"/api/inventory/shift?shift={current_shift()}", headers=sales_headers)
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["totals"]["available"] == 12


class TestRecordSale:

    def test_rejects_quantity_above_stock(self, client, manager, sales_headers, bread_type):
        _produce(manager, bread_type, 3)
        resp = client.post(
            "/api/sales",
            json={"bread_type_id": bread_type.id, "quantity": 4, "shift": current_shift()},
            headers=sales_headers,
        )
        assert resp.status_code == 409
        assert "Insufficient stock" in resp.get_json()["error"]

    def test_revenue_uses_discount(self, db_session, manager, sales_rep, bread_type):
        _produce(manager, bread_type, 10)
        sale = _sell(sales_rep, bread_type, 2, discount_cents=5000)
        assert sale.unit_price_cents == 120000
        assert sale.revenue_cents == 235000

        item = _item(inventory_service.current_inventory(), bread_type)
        assert item["revenue_cents"] == 235000

    def test_discount_cannot_exceed_line_total(self, db_session, manager, sales_rep, bread_type):
        _produce(manager, bread_type, 10)
        with pytest.raises(ValueError):
            _sell(sales_rep, bread_type, 1, discount_cents=200000)

    def test_returned_sale_not_counted(self, db_session, manager, sales_rep, bread_type):
        _produce(manager, bread_type, 10)
        _sell(sales_rep, bread_type, 4, returned=True)
        assert inventory_service.available_quantity(bread_type.id, current_shift()) == 10

    def test_sale_logs_activity(self, db_session, manager, sales_rep, bread_type):
        _produce(manager, bread_type, 10)
        _sell(sales_rep, bread_type, 1)
        activity = db_session.query(Activity).filter_by(activity_type="sale").one()
        assert activity.user_id == sales_rep.id
        assert activity.details["quantity"] == 1

    def test_rep_sees_only_own_sales(self, client, db_session, manager, sales_rep, sales_headers, bread_type):
        _produce(manager, bread_type, 10)
        _sell(sales_rep, bread_type, 1)
        _sell(manager, bread_type, 2)

        resp = client.get("/api/sales?recorded_by=%d" % manager.id, headers=sales_headers)
        assert resp.status_code == 200
        items = resp.get_json()["items"]
        assert [s["recorded_by_user_id"] for s in items] == [sales_rep.id]


class TestEndShift:

    def test_end_shift_creates_report(self, client, db_session, manager, sales_rep, sales_headers,
                                      bread_type, other_bread_type):
        _produce(manager, bread_type, 20)
        resp = client.post("/api/sales/end-shift", json={
            "shift": current_shift(),
            "sales": [
                {"bread_type_id": bread_type.id, "quantity": 5},
                {"bread_type_id": other_bread_type.id, "quantity": 0},
            ],
            "remaining": [{"bread_type_id": bread_type.id, "quantity": 3}],
            "feedback": "Quiet afternoon",
        }, headers=sales_headers)
        assert resp.status_code == 201
        report = resp.get_json()["report"]
        assert report["total_items_sold"] == 5
        assert report["total_revenue_cents"] == 5 * 120000
        assert report["total_remaining"] == 3
        assert report["feedback"] == "Quiet afternoon"
        assert [row["bread_type_id"] for row in report["sales_data"]] == [bread_type.id]

        assert db_session.query(RemainingBread).count() == 1
        assert db_session.query(Activity).filter_by(activity_type="end_shift").count() == 1

    def test_resubmission_replaces_report(self, db_session, manager, sales_rep, bread_type):
        _produce(manager, bread_type, 20)
        first = sales_service.end_shift({"sales": [{"bread_type_id": bread_type.id, "quantity": 4}]}, sales_rep)
        second = sales_service.end_shift({"sales": [{"bread_type_id": bread_type.id, "quantity": 2}]}, sales_rep)

        assert second.id == first.id
        assert db_session.query(ShiftReport).count() == 1
        assert second.total_items_sold == 6

    def test_end_shift_checks_stock_for_all_lines(self, db_session, manager, sales_rep, bread_type):
        _produce(manager, bread_type, 5)
        with pytest.raises(SalesError):
            sales_service.end_shift({"sales": [
                {"bread_type_id": bread_type.id, "quantity": 3},
                {"bread_type_id": bread_type.id, "quantity": 3},
            ]}, sales_rep)
        assert db_session.query(ShiftReport).count() == 0

    def test_rep_cannot_read_another_reps_report(self, client, db_session, owner, manager, sales_rep, bread_type):
        other = auth_service.create_user("Tayo", "tayo@homebake.test", "Password123!", "sales_rep", owner.id)
        _produce(manager, bread_type, 5)
        report = sales_service.end_shift({"sales": [{"bread_type_id": bread_type.id, "quantity": 1}]}, sales_rep)

        resp = client.get(f"/api/sales/shift-reports/{report.id}", headers=auth_headers(token_for(other)))
        assert resp.status_code == 404
