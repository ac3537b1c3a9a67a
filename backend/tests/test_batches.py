"""
Production batch tests.

Verifies:
- Batch numbers increment per (bread type, shift) and are zero-padded
- Number collisions are retried, then reported
- Completing a batch feeds inventory through a production log
- CSV export carries the header block and batch columns
"""

import csv
import io

import pytest

from homebake.models import Batch, ProductionLog
from homebake.services import batch_service, inventory_service
from homebake.services.batch_service import BatchError
from homebake.shifts import current_shift, record_business_date


def _create(user, bread_type, shift="morning", **extra):
    payload = {"bread_type_id": bread_type.id, "shift": shift}
    payload.update(extra)
    return batch_service.create_batch(payload, user)


class TestBatchNumbering:

    def test_increments_per_bread_type_and_shift(self, db_session, manager, bread_type, other_bread_type):
        assert _create(manager, bread_type).batch_number == "001"
        assert _create(manager, bread_type).batch_number == "002"
        assert _create(manager, bread_type, shift="night").batch_number == "001"
        assert _create(manager, other_bread_type).batch_number == "001"
        assert _create(manager, bread_type).batch_number == "003"

    def test_continues_past_999(self, db_session, manager, bread_type):
        db_session.add(Batch(
            bread_type_id=bread_type.id,
            batch_number="999",
            shift="morning",
            created_by_user_id=manager.id,
        ))
        db_session.commit()
        assert _create(manager, bread_type).batch_number == "1000"
        assert _create(manager, bread_type).batch_number == "1001"

    def test_collision_is_retried(self, db_session, manager, bread_type, monkeypatch):
        _create(manager, bread_type)
        real_next = batch_service.next_batch_number
        calls = []

        def stale_once(bread_type_id, shift):
            calls.append(shift)
            if len(calls) == 1:
                return "001"
            return real_next(bread_type_id, shift)

        monkeypatch.setattr(batch_service, "next_batch_number", stale_once)
        batch = _create(manager, bread_type)
        assert batch.batch_number == "002"
        assert len(calls) == 2

    def test_gives_up_after_five_attempts(self, db_session, manager, bread_type, monkeypatch):
        _create(manager, bread_type)
        monkeypatch.setattr(batch_service, "next_batch_number", lambda bread_type_id, shift: "001")
        with pytest.raises(BatchError):
            _create(manager, bread_type)

    def test_api_assigns_number(self, client, manager_headers, bread_type):
        resp = client.post(
            "/api/batches",
            json={"bread_type_id": bread_type.id, "shift": "night", "target_quantity": 120},
            headers=manager_headers,
        )
        assert resp.status_code == 201
        batch = resp.get_json()["batch"]
        assert batch["batch_number"] == "001"
        assert batch["status"] == "active"
        assert batch["target_quantity"] == 120

    def test_inactive_bread_type_rejected(self, client, db_session, manager_headers, bread_type):
        bread_type.is_active = False
        db_session.commit()
        resp = client.post("/api/batches", json={"bread_type_id": bread_type.id}, headers=manager_headers)
        assert resp.status_code == 400


class TestBatchLifecycle:

    def test_complete_writes_production_log(self, client, db_session, manager, manager_headers, bread_type):
        shift = current_shift()
        batch = _create(manager, bread_type, shift=shift, target_quantity=100)

        resp = client.post(f"/api/batches/{batch.id}/complete", json={"actual_quantity": 96}, headers=manager_headers)
        assert resp.status_code == 200
        data = resp.get_json()["batch"]
        assert data["status"] == "completed"
        assert data["actual_quantity"] == 96
        assert data["end_time"] is not None

        log = db_session.query(ProductionLog).filter_by(batch_id=batch.id).one()
        assert log.quantity == 96
        assert inventory_service.available_quantity(bread_type.id, shift) == 96

    def test_completed_batch_cannot_be_cancelled(self, client, manager, manager_headers, bread_type):
        batch = _create(manager, bread_type)
        batch_service.complete_batch(batch.id, manager, actual_quantity=10)
        resp = client.post(f"/api/batches/{batch.id}/cancel", headers=manager_headers)
        assert resp.status_code == 409

    def test_delete_removes_production(self, db_session, manager, bread_type):
        shift = current_shift()
        batch = _create(manager, bread_type, shift=shift)
        batch_service.complete_batch(batch.id, manager, actual_quantity=40)
        assert inventory_service.available_quantity(bread_type.id, shift) == 40

        batch_service.delete_batch(batch.id)
        assert db_session.query(ProductionLog).count() == 0
        assert inventory_service.available_quantity(bread_type.id, shift) == 0

    def test_delete_todays_batches(self, client, manager, manager_headers, bread_type):
        shift = current_shift()
        _create(manager, bread_type, shift=shift)
        _create(manager, bread_type, shift=shift)
        resp = client.delete(f"/api/batches/today?shift={shift}", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.get_json()["deleted"] == 2

    def test_stats(self, db_session, manager, bread_type):
        shift = current_shift()
        done = _create(manager, bread_type, shift=shift, target_quantity=50)
        batch_service.complete_batch(done.id, manager, actual_quantity=48)
        cancelled = _create(manager, bread_type, shift=shift, target_quantity=20)
        batch_service.cancel_batch(cancelled.id)
        _create(manager, bread_type, shift=shift, target_quantity=30)

        stats = batch_service.batch_stats(shift)
        assert stats["total_batches"] == 3
        assert (stats["active_batches"], stats["completed_batches"], stats["cancelled_batches"]) == (1, 1, 1)
        assert stats["total_target_quantity"] == 100
        assert stats["completed_quantity"] == 48


class TestBatchExport:

    def test_csv_header_block_and_columns(self, client, manager, manager_headers, bread_type):
        first = _create(manager, bread_type, shift="morning", actual_quantity=60, notes="first run")
        _create(manager, bread_type, shift="morning", actual_quantity=40)
        on_date = record_business_date(first.created_at, "morning")

        resp = client.get(
            f"/api/batches/export.csv?shift=morning&date={on_date.isoformat()}",
            headers=manager_headers,
        )
        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"

        rows = list(csv.reader(io.StringIO(resp.get_data(as_text=True))))
        assert rows[0] == ["HomeBake Production Report"]
        assert rows[1] == ["Date", on_date.isoformat()]
        assert rows[2] == ["Shift", "Morning"]
        assert rows[3] == ["Total Production", "100", "units"]
        assert rows[4] == ["Batch Count", "2"]
        assert rows[5] == []
        assert rows[6] == ["Batch ID", "Bread Type", "Quantity", "Status", "Manager", "Created Date", "Notes"]
        numbers = sorted(row[0] for row in rows[7:])
        assert numbers == ["001", "002"]
        assert any(row[-1] == "first run" and row[4] == "Mary Manager" for row in rows[7:])
