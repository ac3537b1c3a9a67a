# Overview: Service-layer operations for the staff activity feed.

"""
Activity Feed

Non-owner actions (sales, batches, reports, logins, shift close-outs,
account creation) are appended to `activities` and pushed to owners.

The table is append-only with monotonic ids, so it doubles as the change
feed that clients poll with an id cursor.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Activity, User
from ..models.auth import ROLE_OWNER
from ..models.activity import (
    ACTIVITY_BATCH,
    ACTIVITY_CREATED,
    ACTIVITY_END_SHIFT,
    ACTIVITY_LOGIN,
    ACTIVITY_REPORT,
    ACTIVITY_SALE,
)
from . import push_service
from homebake.time_utils import utcnow


MAX_FEED_PAGE = 200


def log_activity(
    user: User,
    activity_type: str,
    message: str,
    shift: str | None = None,
    metadata: dict | None = None,
) -> Activity | None:
    """
    Append an activity for `user` and push it to owners.

    Owner actions are not logged. The activity is committed before the push
    is attempted; push problems are logged and never raised.
    """
    if user.role == ROLE_OWNER:
        return None

    activity = Activity(
        user_id=user.id,
        user_name=user.name,
        user_role=user.role,
        activity_type=activity_type,
        shift=shift,
        message=message,
        details=metadata or {},
        created_at=utcnow(),
    )
    db.session.add(activity)
    db.session.commit()

    try:
        push_service.notify_owners(
            activity_type=activity_type,
            user_name=user.name,
            message=message,
            metadata=metadata,
            actor_role=user.role,
        )
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to push %s activity %s", activity_type, activity.id)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Unexpected push error for %s activity %s", activity_type, activity.id)

    return activity


def log_sale_activity(user: User, shift: str, bread_type: str, quantity: int, revenue_cents: int):
    return log_activity(
        user,
        ACTIVITY_SALE,
        f"Recorded sale: {quantity}x {bread_type}",
        shift=shift,
        metadata={"bread_type": bread_type, "quantity": quantity, "revenue_cents": revenue_cents},
    )


def log_batch_activity(user: User, shift: str, bread_type: str, quantity: int | None, batch_number: str):
    return log_activity(
        user,
        ACTIVITY_BATCH,
        f"Created batch: {quantity or 0}x {bread_type}",
        shift=shift,
        metadata={"bread_type": bread_type, "quantity": quantity, "batch_number": batch_number},
    )


def log_report_activity(user: User, shift: str | None, report_type: str):
    shift_label = f"{shift} shift" if shift else "all shifts"
    return log_activity(
        user,
        ACTIVITY_REPORT,
        f"Generated {report_type} report for {shift_label}",
        shift=shift,
        metadata={"report_type": report_type},
    )


def log_login_activity(user: User):
    return log_activity(user, ACTIVITY_LOGIN, f"{user.name} logged in")


def log_end_shift_activity(user: User, shift: str, metadata: dict | None = None):
    return log_activity(
        user,
        ACTIVITY_END_SHIFT,
        f"{user.name} ended {shift} shift",
        shift=shift,
        metadata=metadata,
    )


def log_account_created_activity(user: User):
    return log_activity(
        user,
        ACTIVITY_CREATED,
        f"New {user.role} account created: {user.name}",
    )


def list_activities(
    activity_type: str | None = None,
    user_id: int | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Activity], int]:
    """Newest first. Returns (activities, total)."""
    query = db.session.query(Activity)
    if activity_type:
        query = query.filter(Activity.activity_type == activity_type)
    if user_id is not None:
        query = query.filter(Activity.user_id == user_id)

    total = query.count()
    rows = (
        query.order_by(Activity.id.desc())
        .offset(max(offset, 0))
        .limit(max(1, min(limit, MAX_FEED_PAGE)))
        .all()
    )
    return rows, total


def feed_since(since_id: int = 0, limit: int = 100) -> tuple[list[Activity], int]:
    """
    Activities with id > since_id, oldest first.

    Returns (rows, next_cursor). next_cursor is the last returned id, or
    since_id unchanged when nothing is new.
    """
    rows = (
        db.session.query(Activity)
        .filter(Activity.id > since_id)
        .order_by(Activity.id.asc())
        .limit(max(1, min(limit, MAX_FEED_PAGE)))
        .all()
    )
    next_cursor = rows[-1].id if rows else since_id
    return rows, next_cursor


def latest_activity_id() -> int:
    latest = db.session.query(db.func.max(Activity.id)).scalar()
    return latest or 0
