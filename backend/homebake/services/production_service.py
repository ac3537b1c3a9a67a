# Overview: Service-layer operations for production logs.

from __future__ import annotations

from datetime import date

from ..extensions import db
from ..models import BreadType, ProductionLog, User
from ..shifts import current_shift, local_day_window, parse_shift, shift_query_window
from ..validation import MAX_QUANTITY, ValidationError, require_int
from homebake.time_utils import utcnow


def record_production(payload: dict, recorded_by: User) -> ProductionLog:
    """Record produced quantity for a bread type; shift defaults to the current one."""
    bread_type_id = require_int(payload, "bread_type_id", minimum=1)
    quantity = require_int(payload, "quantity", minimum=1, maximum=MAX_QUANTITY)
    shift = parse_shift(payload.get("shift")) if payload.get("shift") else current_shift()

    bread_type = db.session.get(BreadType, bread_type_id)
    if bread_type is None:
        raise ValidationError("Bread type not found")
    if not bread_type.is_active:
        raise ValidationError("Bread type is inactive")

    log = ProductionLog(
        bread_type_id=bread_type.id,
        quantity=quantity,
        shift=shift,
        recorded_by_user_id=recorded_by.id,
        created_at=utcnow(),
    )
    db.session.add(log)
    db.session.commit()
    return log


def list_production(
    shift: str | None = None,
    on_date: date | None = None,
    bread_type_id: int | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[ProductionLog], int]:
    query = db.session.query(ProductionLog)
    if shift:
        shift = parse_shift(shift)
        query = query.filter(ProductionLog.shift == shift)
    if bread_type_id is not None:
        query = query.filter(ProductionLog.bread_type_id == bread_type_id)
    if on_date is not None:
        start, end = shift_query_window(shift, on_date) if shift else local_day_window(on_date)
        query = query.filter(ProductionLog.created_at >= start, ProductionLog.created_at < end)

    total = query.count()
    rows = (
        query.order_by(ProductionLog.created_at.desc(), ProductionLog.id.desc())
        .offset(max(offset, 0))
        .limit(max(1, min(limit, 500)))
        .all()
    )
    return rows, total
