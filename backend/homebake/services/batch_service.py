# Overview: Service-layer operations for production batches.

"""
Production Batches

NUMBERING: batch_number is the next zero-padded 3-digit sequence for
(bread_type_id, shift): "001", "002", ... The unique constraint on
(bread_type_id, batch_number, shift) resolves races between managers:
the loser gets an IntegrityError and retries with a fresh number, up to
MAX_BATCH_NUMBER_ATTEMPTS times.

LIFECYCLE: active -> completed | cancelled. Completing writes a
production log for the actual quantity, which is what inventory counts.
"""

from __future__ import annotations

from datetime import date

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Batch, BreadType, ProductionLog, User
from ..models.production import BATCH_ACTIVE, BATCH_CANCELLED, BATCH_COMPLETED, BATCH_STATUSES
from ..shifts import business_date, current_shift, local_day_window, parse_shift, shift_query_window
from ..validation import MAX_QUANTITY, ValidationError, require_int, require_str
from . import activity_service
from .concurrency import run_with_retry
from homebake.time_utils import parse_iso_datetime, utcnow


MAX_BATCH_NUMBER_ATTEMPTS = 5
BATCH_NUMBER_WIDTH = 3


class BatchError(ValueError):
    """Raised when a batch operation violates lifecycle rules."""


class BatchNotFoundError(LookupError):
    pass


def format_batch_number(number: int) -> str:
    return str(number).zfill(BATCH_NUMBER_WIDTH)


def next_batch_number(bread_type_id: int, shift: str) -> str:
    """
    Next number for (bread type, shift).

    Ordered by length first so "1000" sorts after "999".
    """
    last = (
        db.session.query(Batch.batch_number)
        .filter(Batch.bread_type_id == bread_type_id, Batch.shift == shift)
        .order_by(func.length(Batch.batch_number).desc(), Batch.batch_number.desc())
        .first()
    )
    if last is None:
        return format_batch_number(1)
    try:
        return format_batch_number(int(last[0]) + 1)
    except ValueError:
        count = db.session.query(Batch).filter(
            Batch.bread_type_id == bread_type_id, Batch.shift == shift
        ).count()
        return format_batch_number(count + 1)


def get_batch(batch_id: int) -> Batch:
    batch = db.session.get(Batch, batch_id)
    if batch is None:
        raise BatchNotFoundError("Batch not found")
    return batch


def _active_bread_type(bread_type_id: int) -> BreadType:
    bread_type = db.session.get(BreadType, bread_type_id)
    if bread_type is None:
        raise ValidationError("Bread type not found")
    if not bread_type.is_active:
        raise ValidationError("Bread type is inactive")
    return bread_type


def create_batch(payload: dict, created_by: User) -> Batch:
    """
    Create an active batch with an auto-generated number.

    payload: bread_type_id (required), target_quantity, actual_quantity,
    notes, shift (defaults to the current shift), start_time (ISO-8601).
    """
    bread_type = _active_bread_type(require_int(payload, "bread_type_id", minimum=1))
    shift = parse_shift(payload.get("shift")) if payload.get("shift") else current_shift()
    target_quantity = require_int(payload, "target_quantity", minimum=0, maximum=MAX_QUANTITY, required=False)
    actual_quantity = require_int(payload, "actual_quantity", minimum=0, maximum=MAX_QUANTITY, default=0)
    notes = require_str(payload, "notes", max_length=2000, required=False)
    try:
        start_time = parse_iso_datetime(payload.get("start_time")) or utcnow()
    except ValueError:
        raise ValidationError("start_time must be an ISO-8601 datetime")

    def _insert() -> Batch:
        batch = Batch(
            bread_type_id=bread_type.id,
            batch_number=next_batch_number(bread_type.id, shift),
            shift=shift,
            start_time=start_time,
            target_quantity=target_quantity,
            actual_quantity=actual_quantity,
            status=BATCH_ACTIVE,
            notes=notes,
            created_by_user_id=created_by.id,
        )
        db.session.add(batch)
        db.session.commit()
        return batch

    def _log_conflict(attempt, exc):
        current_app.logger.warning(
            "Batch number conflict for bread type %s (%s shift), attempt %s/%s",
            bread_type.id, shift, attempt, MAX_BATCH_NUMBER_ATTEMPTS,
        )

    try:
        batch = run_with_retry(
            _insert,
            attempts=MAX_BATCH_NUMBER_ATTEMPTS,
            backoff_base=0,
            retry_on=(IntegrityError,),
            on_retry=_log_conflict,
        )
    except IntegrityError:
        raise BatchError("Could not allocate a unique batch number, please retry")

    activity_service.log_batch_activity(
        created_by,
        shift=shift,
        bread_type=bread_type.name,
        quantity=actual_quantity or target_quantity,
        batch_number=batch.batch_number,
    )
    return batch


def _window_filter(query, shift: str | None, on_date: date | None):
    if on_date is None:
        return query
    if shift:
        start, end = shift_query_window(shift, on_date)
    else:
        start, end = local_day_window(on_date)
    return query.filter(Batch.created_at >= start, Batch.created_at < end)


def list_batches(
    shift: str | None = None,
    status: str | None = None,
    on_date: date | None = None,
    bread_type_id: int | None = None,
    created_by_user_id: int | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[Batch], int]:
    """Newest first. Returns (batches, total)."""
    query = db.session.query(Batch)
    if shift:
        shift = parse_shift(shift)
        query = query.filter(Batch.shift == shift)
    if status:
        if status not in BATCH_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(BATCH_STATUSES)}")
        query = query.filter(Batch.status == status)
    if bread_type_id is not None:
        query = query.filter(Batch.bread_type_id == bread_type_id)
    if created_by_user_id is not None:
        query = query.filter(Batch.created_by_user_id == created_by_user_id)
    query = _window_filter(query, shift, on_date)

    total = query.count()
    batches = (
        query.order_by(Batch.created_at.desc(), Batch.id.desc())
        .offset(max(offset, 0))
        .limit(max(1, min(limit, 500)))
        .all()
    )
    return batches, total


def _complete(batch: Batch, actual_quantity: int | None, user: User) -> None:
    if batch.status != BATCH_ACTIVE:
        raise BatchError(f"Only active batches can be completed (batch is {batch.status})")
    if actual_quantity is not None:
        batch.actual_quantity = actual_quantity

    now = utcnow()
    batch.status = BATCH_COMPLETED
    batch.end_time = now
    if batch.actual_quantity > 0:
        db.session.add(ProductionLog(
            bread_type_id=batch.bread_type_id,
            batch_id=batch.id,
            quantity=batch.actual_quantity,
            shift=batch.shift,
            recorded_by_user_id=user.id,
            created_at=now,
        ))


def _cancel(batch: Batch) -> None:
    if batch.status != BATCH_ACTIVE:
        raise BatchError(f"Only active batches can be cancelled (batch is {batch.status})")
    batch.status = BATCH_CANCELLED
    batch.end_time = utcnow()


def update_batch(batch_id: int, payload: dict, user: User) -> Batch:
    """
    Patch target/actual quantity and notes; a status change routes through
    complete/cancel so the production log stays consistent.
    """
    batch = get_batch(batch_id)
    allowed = {"target_quantity", "actual_quantity", "notes", "status"}
    unknown = set(payload) - allowed
    if unknown:
        raise ValidationError(f"Unknown field(s): {', '.join(sorted(unknown))}")

    status = payload.get("status")
    if status is not None and status not in BATCH_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(BATCH_STATUSES)}")

    if batch.status != BATCH_ACTIVE and (set(payload) - {"notes"}):
        raise BatchError(f"Batch is {batch.status}; only notes can be changed")

    if "target_quantity" in payload:
        batch.target_quantity = require_int(payload, "target_quantity", minimum=0, maximum=MAX_QUANTITY, required=False)
    actual = None
    if "actual_quantity" in payload:
        actual = require_int(payload, "actual_quantity", minimum=0, maximum=MAX_QUANTITY)
        batch.actual_quantity = actual
    if "notes" in payload:
        batch.notes = require_str(payload, "notes", max_length=2000, required=False)

    if status == BATCH_COMPLETED:
        _complete(batch, actual, user)
    elif status == BATCH_CANCELLED:
        _cancel(batch)

    db.session.commit()
    return batch


def complete_batch(batch_id: int, user: User, actual_quantity: int | None = None) -> Batch:
    batch = get_batch(batch_id)
    _complete(batch, actual_quantity, user)
    db.session.commit()
    return batch


def cancel_batch(batch_id: int) -> Batch:
    batch = get_batch(batch_id)
    _cancel(batch)
    db.session.commit()
    return batch


def _delete_with_logs(batch: Batch) -> None:
    # Production recorded by a deleted batch no longer counts as stock
    db.session.query(ProductionLog).filter(ProductionLog.batch_id == batch.id).delete(synchronize_session=False)
    db.session.delete(batch)


def delete_batch(batch_id: int) -> None:
    batch = get_batch(batch_id)
    _delete_with_logs(batch)
    db.session.commit()


def delete_todays_batches(shift: str, on_date: date | None = None) -> int:
    """Delete every batch of `shift` on the current (or given) business date."""
    shift = parse_shift(shift)
    on_date = on_date or business_date()
    start, end = shift_query_window(shift, on_date)

    batches = db.session.query(Batch).filter(
        Batch.shift == shift,
        Batch.created_at >= start,
        Batch.created_at < end,
    ).all()
    for batch in batches:
        _delete_with_logs(batch)
    db.session.commit()

    current_app.logger.info("Deleted %s %s-shift batches for %s", len(batches), shift, on_date)
    return len(batches)


def batch_stats(shift: str | None = None, on_date: date | None = None) -> dict:
    """Counts by status and quantity totals for a shift/date (defaults: current shift, today)."""
    shift = parse_shift(shift) if shift else current_shift()
    on_date = on_date or business_date()
    start, end = shift_query_window(shift, on_date)

    rows = (
        db.session.query(
            Batch.status,
            func.count(Batch.id),
            func.coalesce(func.sum(Batch.actual_quantity), 0),
            func.coalesce(func.sum(Batch.target_quantity), 0),
        )
        .filter(Batch.shift == shift, Batch.created_at >= start, Batch.created_at < end)
        .group_by(Batch.status)
        .all()
    )

    by_status = {status: 0 for status in BATCH_STATUSES}
    total_actual = 0
    total_target = 0
    completed_quantity = 0
    for status, count, actual, target in rows:
        by_status[status] = count
        total_target += int(target)
        if status != BATCH_CANCELLED:
            total_actual += int(actual)
        if status == BATCH_COMPLETED:
            completed_quantity = int(actual)

    return {
        "shift": shift,
        "date": on_date.isoformat(),
        "total_batches": sum(by_status.values()),
        "active_batches": by_status[BATCH_ACTIVE],
        "completed_batches": by_status[BATCH_COMPLETED],
        "cancelled_batches": by_status[BATCH_CANCELLED],
        "total_actual_quantity": total_actual,
        "total_target_quantity": total_target,
        "completed_quantity": completed_quantity,
    }
