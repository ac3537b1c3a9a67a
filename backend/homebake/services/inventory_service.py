# Overview: Service-layer operations for inventory; derives stock from production and sales.

"""
Derived Inventory

Stock is never stored. For a shift window:

    available = max(produced - sold, 0)

where produced sums production_logs and sold sums non-returned sales_logs,
each bucketed by the shift column and the shift query window (see shifts).
Both sides are single GROUP BY queries so one request sees a consistent
snapshot per side.
"""

from __future__ import annotations

from datetime import date, datetime

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import BreadType, ProductionLog, SalesLog
from ..shifts import business_date, current_shift, parse_shift, shift_query_window


def _window(shift: str, on_date: date | None) -> tuple[str, date, datetime, datetime]:
    shift = parse_shift(shift)
    on_date = on_date or business_date()
    start, end = shift_query_window(shift, on_date)
    return shift, on_date, start, end


def produced_by_bread_type(shift: str, start: datetime, end: datetime) -> dict[int, int]:
    rows = (
        db.session.query(
            ProductionLog.bread_type_id,
            func.coalesce(func.sum(ProductionLog.quantity), 0),
        )
        .filter(
            ProductionLog.shift == shift,
            ProductionLog.created_at >= start,
            ProductionLog.created_at < end,
        )
        .group_by(ProductionLog.bread_type_id)
        .all()
    )
    return {bread_type_id: int(qty) for bread_type_id, qty in rows}


def sold_by_bread_type(shift: str, start: datetime, end: datetime) -> dict[int, tuple[int, int]]:
    """{bread_type_id: (quantity_sold, revenue_cents)}; returned sales excluded."""
    rows = (
        db.session.query(
            SalesLog.bread_type_id,
            func.coalesce(func.sum(SalesLog.quantity), 0),
            func.coalesce(func.sum(SalesLog.quantity * SalesLog.unit_price_cents - SalesLog.discount_cents), 0),
        )
        .filter(
            SalesLog.shift == shift,
            SalesLog.returned.is_(False),
            SalesLog.created_at >= start,
            SalesLog.created_at < end,
        )
        .group_by(SalesLog.bread_type_id)
        .all()
    )
    return {bread_type_id: (int(qty), int(revenue)) for bread_type_id, qty, revenue in rows}


def available_quantity(bread_type_id: int, shift: str, on_date: date | None = None) -> int:
    shift, on_date, start, end = _window(shift, on_date)
    produced = produced_by_bread_type(shift, start, end).get(bread_type_id, 0)
    sold = sold_by_bread_type(shift, start, end).get(bread_type_id, (0, 0))[0]
    return max(produced - sold, 0)


def shift_inventory(shift: str, on_date: date | None = None) -> dict:
    """
    Per bread type: produced, sold, available (clamped at zero), revenue.

    Includes every active bread type plus inactive ones that still have
    records in the window.
    """
    shift, on_date, start, end = _window(shift, on_date)
    threshold = current_app.config.get("LOW_STOCK_THRESHOLD", 10)

    produced = produced_by_bread_type(shift, start, end)
    sold = sold_by_bread_type(shift, start, end)

    ids_with_records = set(produced) | set(sold)
    bread_types = (
        db.session.query(BreadType)
        .filter(db.or_(BreadType.is_active.is_(True), BreadType.id.in_(list(ids_with_records))))
        .order_by(BreadType.name.asc(), BreadType.id.asc())
        .all()
    )

    items = []
    for bread_type in bread_types:
        qty_produced = produced.get(bread_type.id, 0)
        qty_sold, revenue = sold.get(bread_type.id, (0, 0))
        available = max(qty_produced - qty_sold, 0)
        items.append({
            "bread_type_id": bread_type.id,
            "bread_type_name": bread_type.name,
            "size": bread_type.size,
            "unit_price_cents": bread_type.unit_price_cents,
            "produced": qty_produced,
            "sold": qty_sold,
            "available": available,
            "revenue_cents": revenue,
            # Nothing produced yet is not "low stock"
            "is_low_stock": qty_produced > 0 and available < threshold,
        })

    return {
        "shift": shift,
        "date": on_date.isoformat(),
        "low_stock_threshold": threshold,
        "items": items,
        "low_stock": [item for item in items if item["is_low_stock"]],
        "totals": {
            "produced": sum(item["produced"] for item in items),
            "sold": sum(item["sold"] for item in items),
            "available": sum(item["available"] for item in items),
            "revenue_cents": sum(item["revenue_cents"] for item in items),
        },
    }


def current_inventory() -> dict:
    return shift_inventory(current_shift(), business_date())
