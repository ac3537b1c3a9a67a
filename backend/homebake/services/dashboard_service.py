# Overview: Role dashboards; assembles view models from the other services.

from __future__ import annotations

from ..models import User
from ..models.production import BATCH_ACTIVE
from ..shifts import business_date, current_shift, shift_bounds
from . import activity_service, batch_service, inventory_service, report_service, sales_service, user_service


RECENT_ACTIVITY_LIMIT = 10


def owner_dashboard() -> dict:
    today = business_date()
    report = report_service.range_report(today, today)
    inventory = inventory_service.current_inventory()
    activities, _ = activity_service.list_activities(limit=RECENT_ACTIVITY_LIMIT)

    return {
        "date": today.isoformat(),
        "current_shift": shift_bounds().to_dict(),
        "today_revenue_cents": report["total_revenue_cents"],
        "today_items_sold": report["total_sold"],
        "today_production": report["total_produced"],
        "shifts": report["shifts"],
        "low_stock": inventory["low_stock"],
        "staff_online": user_service.staff_online(),
        "recent_activities": [a.to_dict() for a in activities],
    }


def manager_dashboard() -> dict:
    bounds = shift_bounds()
    batches, _ = batch_service.list_batches(
        shift=bounds.shift, status=BATCH_ACTIVE, on_date=bounds.business_date
    )
    inventory = inventory_service.shift_inventory(bounds.shift, bounds.business_date)

    return {
        "current_shift": bounds.to_dict(),
        "active_batches": [b.to_dict() for b in batches],
        "production_by_bread_type": [
            {
                "bread_type_id": item["bread_type_id"],
                "bread_type_name": item["bread_type_name"],
                "produced": item["produced"],
                "available": item["available"],
            }
            for item in inventory["items"]
            if item["produced"] > 0
        ],
        "batch_stats": batch_service.batch_stats(bounds.shift, bounds.business_date),
        "low_stock": inventory["low_stock"],
    }


def sales_rep_dashboard(user: User) -> dict:
    shift = current_shift()
    today = business_date()
    sales, _ = sales_service.list_sales(shift=shift, on_date=today, recorded_by_user_id=user.id, limit=500)
    counted = [s for s in sales if not s.returned]
    inventory = inventory_service.shift_inventory(shift, today)

    return {
        "current_shift": shift_bounds().to_dict(),
        "my_sales": [s.to_dict() for s in sales],
        "my_items_sold": sum(s.quantity for s in counted),
        "my_revenue_cents": sum(s.revenue_cents for s in counted),
        "available_stock": [
            {
                "bread_type_id": item["bread_type_id"],
                "bread_type_name": item["bread_type_name"],
                "unit_price_cents": item["unit_price_cents"],
                "available": item["available"],
                "is_low_stock": item["is_low_stock"],
            }
            for item in inventory["items"]
        ],
    }
