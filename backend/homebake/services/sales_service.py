# Overview: Service-layer operations for sales, end-of-shift reports and feedback.

"""
Sales

RULES:
- Unit price defaults to the bread type's current price
- discount_cents is an absolute amount off the line, never more than the line total
- A sale may not exceed available stock for its shift (ENFORCE_STOCK_ON_SALE)
- Returned sales are recorded but do not consume stock or count as revenue

END OF SHIFT: one request carries the rep's last sales, remaining bread
counts and a feedback note. Zero-quantity entries are skipped. The shift
report is a snapshot of the rep's sales for the shift window plus the
remaining bread submitted; one report per (rep, shift, business date).
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date

from flask import current_app

from ..extensions import db
from ..models import BreadType, RemainingBread, SalesLog, ShiftFeedback, ShiftReport, User
from ..shifts import business_date, current_shift, local_day_window, parse_shift, shift_query_window
from ..validation import MAX_PRICE_CENTS, MAX_QUANTITY, ValidationError, require_int, require_str
from . import activity_service, inventory_service
from homebake.time_utils import utcnow


class SalesError(ValueError):
    """Raised when a sale breaks a business rule (e.g. insufficient stock)."""


class ShiftReportNotFoundError(LookupError):
    pass


def _bread_type(bread_type_id: int) -> BreadType:
    bread_type = db.session.get(BreadType, bread_type_id)
    if bread_type is None:
        raise ValidationError("Bread type not found")
    if not bread_type.is_active:
        raise ValidationError("Bread type is inactive")
    return bread_type


def _parse_line(entry: dict) -> tuple[BreadType, int, int, int]:
    """(bread_type, quantity, unit_price_cents, discount_cents) for a sale entry."""
    if not isinstance(entry, dict):
        raise ValidationError("Each sale entry must be an object")
    bread_type = _bread_type(require_int(entry, "bread_type_id", minimum=1))
    quantity = require_int(entry, "quantity", minimum=0, maximum=MAX_QUANTITY)
    unit_price = require_int(
        entry, "unit_price_cents", minimum=0, maximum=MAX_PRICE_CENTS,
        default=bread_type.unit_price_cents,
    )
    discount = require_int(entry, "discount_cents", minimum=0, default=0)
    if discount > quantity * unit_price:
        raise ValidationError("discount_cents cannot exceed the line total")
    return bread_type, quantity, unit_price, discount


def _check_stock(requested: dict[int, int], shift: str) -> None:
    if not current_app.config.get("ENFORCE_STOCK_ON_SALE", True):
        return
    for bread_type_id, quantity in requested.items():
        available = inventory_service.available_quantity(bread_type_id, shift)
        if quantity > available:
            bread_type = db.session.get(BreadType, bread_type_id)
            name = bread_type.name if bread_type else bread_type_id
            raise SalesError(f"Insufficient stock for {name}: {available} available, {quantity} requested")


def record_sale(payload: dict, recorded_by: User) -> SalesLog:
    shift = parse_shift(payload.get("shift")) if payload.get("shift") else current_shift()
    bread_type, quantity, unit_price, discount = _parse_line(payload)
    if quantity < 1:
        raise ValidationError("quantity must be at least 1")

    returned = payload.get("returned", False)
    if not isinstance(returned, bool):
        raise ValidationError("returned must be a boolean")
    leftovers = require_int(payload, "leftovers", minimum=0, maximum=MAX_QUANTITY, default=0)

    if not returned:
        _check_stock({bread_type.id: quantity}, shift)

    sale = SalesLog(
        bread_type_id=bread_type.id,
        quantity=quantity,
        unit_price_cents=unit_price,
        discount_cents=discount,
        returned=returned,
        leftovers=leftovers,
        shift=shift,
        recorded_by_user_id=recorded_by.id,
        created_at=utcnow(),
    )
    db.session.add(sale)
    db.session.commit()

    activity_service.log_sale_activity(
        recorded_by,
        shift=shift,
        bread_type=bread_type.name,
        quantity=quantity,
        revenue_cents=0 if returned else sale.revenue_cents,
    )
    return sale


def list_sales(
    shift: str | None = None,
    on_date: date | None = None,
    bread_type_id: int | None = None,
    recorded_by_user_id: int | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[SalesLog], int]:
    query = db.session.query(SalesLog)
    if shift:
        shift = parse_shift(shift)
        query = query.filter(SalesLog.shift == shift)
    if bread_type_id is not None:
        query = query.filter(SalesLog.bread_type_id == bread_type_id)
    if recorded_by_user_id is not None:
        query = query.filter(SalesLog.recorded_by_user_id == recorded_by_user_id)
    if on_date is not None:
        start, end = shift_query_window(shift, on_date) if shift else local_day_window(on_date)
        query = query.filter(SalesLog.created_at >= start, SalesLog.created_at < end)

    total = query.count()
    rows = (
        query.order_by(SalesLog.created_at.desc(), SalesLog.id.desc())
        .offset(max(offset, 0))
        .limit(max(1, min(limit, 500)))
        .all()
    )
    return rows, total


def _sales_snapshot(user_id: int, shift: str, on_date: date) -> list[dict]:
    start, end = shift_query_window(shift, on_date)
    sales = (
        db.session.query(SalesLog)
        .filter(
            SalesLog.recorded_by_user_id == user_id,
            SalesLog.shift == shift,
            SalesLog.returned.is_(False),
            SalesLog.created_at >= start,
            SalesLog.created_at < end,
        )
        .order_by(SalesLog.id.asc())
        .all()
    )

    grouped: dict[int, dict] = {}
    for sale in sales:
        row = grouped.setdefault(sale.bread_type_id, {
            "bread_type_id": sale.bread_type_id,
            "bread_type_name": sale.bread_type.name if sale.bread_type else None,
            "quantity": 0,
            "unit_price_cents": sale.unit_price_cents,
            "discount_cents": 0,
            "revenue_cents": 0,
        })
        row["quantity"] += sale.quantity
        row["discount_cents"] += sale.discount_cents or 0
        row["revenue_cents"] += sale.revenue_cents
    return list(grouped.values())


def end_shift(payload: dict, user: User) -> ShiftReport:
    """
    Close out the rep's shift.

    payload:
        shift: optional, defaults to the current shift
        sales: [{bread_type_id, quantity, unit_price_cents?, discount_cents?}]
        remaining: [{bread_type_id, quantity}]
        feedback: optional note
    """
    shift = parse_shift(payload.get("shift")) if payload.get("shift") else current_shift()
    report_date = business_date()
    feedback = require_str(payload, "feedback", max_length=2000, required=False)

    sales_entries = payload.get("sales") or []
    remaining_entries = payload.get("remaining") or []
    if not isinstance(sales_entries, list) or not isinstance(remaining_entries, list):
        raise ValidationError("sales and remaining must be lists")

    lines = [line for line in (_parse_line(entry) for entry in sales_entries) if line[1] > 0]

    requested: dict[int, int] = defaultdict(int)
    for bread_type, quantity, _, _ in lines:
        requested[bread_type.id] += quantity
    _check_stock(requested, shift)

    now = utcnow()
    for bread_type, quantity, unit_price, discount in lines:
        db.session.add(SalesLog(
            bread_type_id=bread_type.id,
            quantity=quantity,
            unit_price_cents=unit_price,
            discount_cents=discount,
            shift=shift,
            recorded_by_user_id=user.id,
            created_at=now,
        ))

    remaining_breads = []
    for entry in remaining_entries:
        if not isinstance(entry, dict):
            raise ValidationError("Each remaining entry must be an object")
        bread_type = _bread_type(require_int(entry, "bread_type_id", minimum=1))
        quantity = require_int(entry, "quantity", minimum=0, maximum=MAX_QUANTITY)
        if quantity == 0:
            continue
        db.session.add(RemainingBread(
            bread_type_id=bread_type.id,
            quantity=quantity,
            unit_price_cents=bread_type.unit_price_cents,
            shift=shift,
            recorded_by_user_id=user.id,
            created_at=now,
        ))
        remaining_breads.append({
            "bread_type_id": bread_type.id,
            "bread_type_name": bread_type.name,
            "quantity": quantity,
            "unit_price_cents": bread_type.unit_price_cents,
            "total_value_cents": quantity * bread_type.unit_price_cents,
        })

    if feedback:
        db.session.add(ShiftFeedback(user_id=user.id, shift=shift, note=feedback, created_at=now))

    db.session.flush()
    sales_data = _sales_snapshot(user.id, shift, report_date)

    report = db.session.query(ShiftReport).filter_by(
        user_id=user.id, shift=shift, report_date=report_date
    ).first()
    if report is None:
        report = ShiftReport(user_id=user.id, shift=shift, report_date=report_date, created_at=now)
        db.session.add(report)

    report.sales_data = sales_data
    report.remaining_breads = remaining_breads
    report.total_revenue_cents = sum(row["revenue_cents"] for row in sales_data)
    report.total_items_sold = sum(row["quantity"] for row in sales_data)
    report.total_remaining = sum(row["quantity"] for row in remaining_breads)
    report.feedback = feedback
    report.updated_at = now
    db.session.commit()

    activity_service.log_end_shift_activity(
        user,
        shift=shift,
        metadata={
            "report_id": report.id,
            "total_revenue_cents": report.total_revenue_cents,
            "total_items_sold": report.total_items_sold,
            "total_remaining": report.total_remaining,
        },
    )
    return report


def add_feedback(user: User, note: str, shift: str | None = None) -> ShiftFeedback:
    note = (note or "").strip()
    if not note:
        raise ValidationError("note is required")
    if len(note) > 2000:
        raise ValidationError("note must be at most 2000 characters")
    entry = ShiftFeedback(
        user_id=user.id,
        shift=parse_shift(shift) if shift else current_shift(),
        note=note,
        created_at=utcnow(),
    )
    db.session.add(entry)
    db.session.commit()
    return entry


def list_feedback(shift: str | None = None, on_date: date | None = None, limit: int = 100) -> list[ShiftFeedback]:
    query = db.session.query(ShiftFeedback)
    if shift:
        shift = parse_shift(shift)
        query = query.filter(ShiftFeedback.shift == shift)
    if on_date is not None:
        start, end = shift_query_window(shift, on_date) if shift else local_day_window(on_date)
        query = query.filter(ShiftFeedback.created_at >= start, ShiftFeedback.created_at < end)
    return query.order_by(ShiftFeedback.created_at.desc(), ShiftFeedback.id.desc()).limit(max(1, min(limit, 500))).all()


def list_remaining(shift: str | None = None, on_date: date | None = None) -> list[RemainingBread]:
    query = db.session.query(RemainingBread)
    if shift:
        shift = parse_shift(shift)
        query = query.filter(RemainingBread.shift == shift)
    if on_date is not None:
        start, end = shift_query_window(shift, on_date) if shift else local_day_window(on_date)
        query = query.filter(RemainingBread.created_at >= start, RemainingBread.created_at < end)
    return query.order_by(RemainingBread.created_at.desc(), RemainingBread.id.desc()).all()


def list_shift_reports(
    user_id: int | None = None,
    shift: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[ShiftReport], int]:
    query = db.session.query(ShiftReport)
    if user_id is not None:
        query = query.filter(ShiftReport.user_id == user_id)
    if shift:
        query = query.filter(ShiftReport.shift == parse_shift(shift))
    if start_date is not None:
        query = query.filter(ShiftReport.report_date >= start_date)
    if end_date is not None:
        query = query.filter(ShiftReport.report_date <= end_date)

    total = query.count()
    rows = (
        query.order_by(ShiftReport.report_date.desc(), ShiftReport.id.desc())
        .offset(max(offset, 0))
        .limit(max(1, min(limit, 500)))
        .all()
    )
    return rows, total


def get_shift_report(report_id: int) -> ShiftReport:
    report = db.session.get(ShiftReport, report_id)
    if report is None:
        raise ShiftReportNotFoundError("Shift report not found")
    return report
