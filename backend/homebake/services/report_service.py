# Overview: Service-layer operations for reporting; encapsulates business logic and database work.

"""
Shift and date-range sales reports.

A shift summary covers one (business date, shift) bucket:

    revenue per sale = quantity * unit_price_cents - discount_cents

Records are bucketed with the same windows inventory uses, so a night
shift that starts on the evening of D-1 reports under business date D.
Returned sales are excluded from sold and revenue.
"""

from __future__ import annotations

from datetime import date, timedelta

from ..extensions import db
from ..models import BreadType, ProductionLog, RemainingBread, SalesLog
from ..shifts import NIGHT, SHIFTS, business_date, parse_shift, record_business_date, shift_query_window
from homebake.time_utils import to_utc_z, utcnow


MAX_RANGE_DAYS = 365
DEFAULT_RANGE_DAYS = 30


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _empty_summary(on_date: date, shift: str) -> dict:
    return {
        "id": f"{on_date.isoformat()}-{shift}",
        "date": on_date.isoformat(),
        "shift": shift,
        "total_produced": 0,
        "total_sold": 0,
        "total_revenue_cents": 0,
        "total_leftover": 0,
        "total_discounts_cents": 0,
        "bread_type_breakdown": [],
    }


def _breakdown_row(summary: dict, bread_type: BreadType | None, bread_type_id: int) -> dict:
    for row in summary["bread_type_breakdown"]:
        if row["bread_type_id"] == bread_type_id:
            return row
    row = {
        "bread_type_id": bread_type_id,
        "bread_type_name": bread_type.name if bread_type else "Unknown",
        "unit_price_cents": bread_type.unit_price_cents if bread_type else 0,
        "produced": 0,
        "sold": 0,
        "revenue_cents": 0,
        "leftover": 0,
        "discounts_cents": 0,
    }
    summary["bread_type_breakdown"].append(row)
    return row


def _validate_range(start_date: date | None, end_date: date | None) -> tuple[date, date]:
    end_date = end_date or business_date()
    start_date = start_date or (end_date - timedelta(days=DEFAULT_RANGE_DAYS))
    if start_date > end_date:
        raise ReportError("start_date must be on or before end_date")
    if (end_date - start_date).days > MAX_RANGE_DAYS:
        raise ReportError(f"Date range cannot exceed {MAX_RANGE_DAYS} days")
    return start_date, end_date


def _collect(
    start_date: date,
    end_date: date,
    shift: str | None,
    bread_type_id: int | None,
    recorded_by_user_id: int | None,
) -> dict[tuple[date, str], dict]:
    # Widest UTC window covering every shift bucket in the range
    window_start = shift_query_window(NIGHT, start_date)[0]
    window_end = shift_query_window("morning", end_date)[1]

    bread_types = {bt.id: bt for bt in db.session.query(BreadType).all()}
    summaries: dict[tuple[date, str], dict] = {}

    def bucket(model):
        query = db.session.query(model).filter(
            model.created_at >= window_start,
            model.created_at < window_end,
        )
        if shift:
            query = query.filter(model.shift == shift)
        if bread_type_id is not None:
            query = query.filter(model.bread_type_id == bread_type_id)
        if recorded_by_user_id is not None:
            query = query.filter(model.recorded_by_user_id == recorded_by_user_id)

        for record in query.order_by(model.created_at.asc(), model.id.asc()).all():
            day = record_business_date(record.created_at, record.shift)
            if not (start_date <= day <= end_date):
                continue
            key = (day, record.shift)
            if key not in summaries:
                summaries[key] = _empty_summary(day, record.shift)
            yield summaries[key], _breakdown_row(summaries[key], bread_types.get(record.bread_type_id), record.bread_type_id), record

    for summary, row, log in bucket(ProductionLog):
        summary["total_produced"] += log.quantity
        row["produced"] += log.quantity

    for summary, row, sale in bucket(SalesLog):
        if sale.returned:
            continue
        discount = sale.discount_cents or 0
        revenue = sale.quantity * sale.unit_price_cents - discount
        summary["total_sold"] += sale.quantity
        summary["total_revenue_cents"] += revenue
        summary["total_leftover"] += sale.leftovers or 0
        summary["total_discounts_cents"] += discount
        row["sold"] += sale.quantity
        row["revenue_cents"] += revenue
        row["leftover"] += sale.leftovers or 0
        row["discounts_cents"] += discount

    for summary, row, remaining in bucket(RemainingBread):
        summary["total_leftover"] += remaining.quantity
        row["leftover"] += remaining.quantity

    for summary in summaries.values():
        summary["bread_type_breakdown"].sort(key=lambda r: r["bread_type_name"])
    return summaries


def shift_summary(shift: str, on_date: date | None = None) -> dict:
    """Totals and per-bread-type breakdown for one shift on one business date."""
    try:
        shift = parse_shift(shift)
    except ValueError as exc:
        raise ReportError(str(exc))
    on_date = on_date or business_date()
    summaries = _collect(on_date, on_date, shift, None, None)
    return summaries.get((on_date, shift)) or _empty_summary(on_date, shift)


def range_report(
    start_date: date | None = None,
    end_date: date | None = None,
    shift: str | None = None,
    bread_type_id: int | None = None,
    recorded_by_user_id: int | None = None,
) -> dict:
    """
    Shift summaries across a date range (newest first) with grand totals.

    Defaults to the last 30 days; ranges longer than 365 days are rejected.
    """
    start_date, end_date = _validate_range(start_date, end_date)
    if shift:
        try:
            shift = parse_shift(shift)
        except ValueError as exc:
            raise ReportError(str(exc))

    summaries = _collect(start_date, end_date, shift, bread_type_id, recorded_by_user_id)
    shift_order = {name: i for i, name in enumerate(SHIFTS)}
    shifts = sorted(
        summaries.values(),
        key=lambda s: (s["date"], shift_order[s["shift"]]),
        reverse=True,
    )

    total_revenue = sum(s["total_revenue_cents"] for s in shifts)
    unique_days = len({s["date"] for s in shifts})

    bread_revenue: dict[str, int] = {}
    shift_revenue: dict[str, int] = {}
    for s in shifts:
        shift_revenue[s["shift"]] = shift_revenue.get(s["shift"], 0) + s["total_revenue_cents"]
        for row in s["bread_type_breakdown"]:
            bread_revenue[row["bread_type_name"]] = bread_revenue.get(row["bread_type_name"], 0) + row["revenue_cents"]

    best_bread = max(bread_revenue.items(), key=lambda kv: kv[1])[0] if bread_revenue else None
    best_shift = max(shift_revenue.items(), key=lambda kv: kv[1])[0] if shift_revenue else None

    return {
        "start_date": start_date.isoformat(),
        "end_date": end_date.isoformat(),
        "shift": shift,
        "total_produced": sum(s["total_produced"] for s in shifts),
        "total_sold": sum(s["total_sold"] for s in shifts),
        "total_revenue_cents": total_revenue,
        "total_leftover": sum(s["total_leftover"] for s in shifts),
        "total_discounts_cents": sum(s["total_discounts_cents"] for s in shifts),
        "average_daily_revenue_cents": round(total_revenue / unique_days) if unique_days else 0,
        "best_performing_bread_type": best_bread,
        "best_performing_shift": best_shift,
        "shifts": shifts,
        "generated_at": to_utc_z(utcnow()),
    }
