# Overview: Service-layer operations for web push; subscriptions, delivery and monitoring.

"""
Web Push Notifications

WHY: Owners are not always at the bakery. Staff activity (sales, batches,
logins, shift close-outs) is pushed to every owner who opted in.

DELIVERY RULES:
- Owner activity is never pushed
- Recipients: owners with an enabled subscription holding endpoint and keys
- Title: "HomeBake <title for activity type>"
- Click target: /owner-dashboard, TTL from PUSH_TTL_SECONDS (24h)
- 404/410 from the push service means the subscription is gone:
  disable it and clear endpoint/keys
- Delivery failures never propagate to the caller; each attempt is
  recorded in notification_attempts for monitoring

Protocol details (encryption, VAPID JWT) are handled by pywebpush.
"""

from __future__ import annotations

import json
from datetime import timedelta

import requests
from flask import current_app
from pywebpush import WebPushException, webpush

from ..extensions import db
from ..models import User, PushSubscription, NotificationAttempt
from ..models.auth import ROLE_OWNER
from homebake.time_utils import to_utc_z, utcnow


ACTIVITY_TITLES = {
    "sale": "Sale Recorded",
    "batch": "Batch Created",
    "report": "Report Generated",
    "login": "Staff Login",
    "end_shift": "Shift Ended",
    "created": "Account Created",
}
DEFAULT_TITLE = "Activity Update"

OWNER_DASHBOARD_URL = "/owner-dashboard"

# success rate (percent) thresholds for the monitoring health status
HEALTHY_SUCCESS_RATE = 95.0
DEGRADED_SUCCESS_RATE = 80.0

# Subscription is gone for good
GONE_STATUS_CODES = (404, 410)


class PushError(ValueError):
    """Raised for invalid subscription payloads."""


def activity_title(activity_type: str) -> str:
    return ACTIVITY_TITLES.get(activity_type, DEFAULT_TITLE)


def is_configured() -> bool:
    cfg = current_app.config
    return bool(cfg.get("VAPID_PUBLIC_KEY") and cfg.get("VAPID_PRIVATE_KEY"))


def build_payload(activity_type: str, user_name: str, message: str, metadata: dict | None = None) -> dict:
    return {
        "title": f"HomeBake {activity_title(activity_type)}",
        "body": message,
        "activity_type": activity_type,
        "user_name": user_name,
        "metadata": metadata or {},
        "url": OWNER_DASHBOARD_URL,
        "timestamp": to_utc_z(utcnow()),
    }


# -- Subscriptions --

def get_subscription(user_id: int) -> PushSubscription | None:
    return db.session.query(PushSubscription).filter_by(user_id=user_id).first()


def save_subscription(user_id: int, subscription: dict, user_agent: str | None = None) -> PushSubscription:
    """
    Upsert the user's browser subscription and enable notifications.

    `subscription` is the browser PushSubscription JSON:
    {"endpoint": "...", "keys": {"p256dh": "...", "auth": "..."}}
    """
    if not isinstance(subscription, dict):
        raise PushError("subscription must be an object")
    endpoint = subscription.get("endpoint")
    keys = subscription.get("keys") or {}
    if not endpoint or not keys.get("p256dh") or not keys.get("auth"):
        raise PushError("subscription requires endpoint, keys.p256dh and keys.auth")

    record = get_subscription(user_id)
    if record is None:
        record = PushSubscription(user_id=user_id)
        db.session.add(record)

    record.enabled = True
    record.endpoint = endpoint
    record.p256dh_key = keys["p256dh"]
    record.auth_key = keys["auth"]
    record.user_agent = (user_agent or "")[:512] or None
    record.updated_at = utcnow()

    db.session.commit()
    return record


def set_enabled(user_id: int, enabled: bool) -> PushSubscription:
    """Toggle the preference; creates a preference row without a subscription if needed."""
    record = get_subscription(user_id)
    if record is None:
        record = PushSubscription(user_id=user_id)
        db.session.add(record)
    record.enabled = bool(enabled)
    record.updated_at = utcnow()
    db.session.commit()
    return record


def delete_subscription(user_id: int) -> bool:
    record = get_subscription(user_id)
    if record is None:
        return False
    db.session.delete(record)
    db.session.commit()
    return True


def _disable_gone_subscription(record: PushSubscription) -> None:
    record.enabled = False
    record.endpoint = None
    record.p256dh_key = None
    record.auth_key = None
    record.updated_at = utcnow()


# -- Delivery --

def _record_attempt(activity_type: str, recipient_user_id: int | None, status: str,
                    status_code: int | None = None, error: str | None = None) -> None:
    db.session.add(NotificationAttempt(
        activity_type=activity_type,
        recipient_user_id=recipient_user_id,
        status=status,
        status_code=status_code,
        error=error[:2000] if error else None,
        created_at=utcnow(),
    ))


def send_to_subscription(record: PushSubscription, payload: dict) -> tuple[bool, int | None, str | None]:
    """
    Deliver one payload. Returns (ok, status_code, error).

    Does not commit; callers record the outcome and commit once.
    """
    cfg = current_app.config
    try:
        response = webpush(
            subscription_info=record.subscription_info(),
            data=json.dumps(payload),
            vapid_private_key=cfg["VAPID_PRIVATE_KEY"],
            # pywebpush adds aud/exp to the claims dict, so pass a fresh one
            vapid_claims={"sub": cfg.get("VAPID_SUBJECT", "mailto:admin@homebake.app")},
            ttl=cfg.get("PUSH_TTL_SECONDS", 86400),
        )
    except WebPushException as exc:
        status_code = exc.response.status_code if exc.response is not None else None
        return False, status_code, str(exc)
    except requests.RequestException as exc:
        return False, None, str(exc)
    except Exception as exc:
        # pywebpush raises ValueError for unusable VAPID keys or subscription keys
        current_app.logger.exception("Push to user %s could not be built", record.user_id)
        return False, None, str(exc) or exc.__class__.__name__

    return True, getattr(response, "status_code", None), None


def notify_owners(
    activity_type: str,
    user_name: str,
    message: str,
    metadata: dict | None = None,
    actor_role: str | None = None,
) -> dict:
    """
    Push an activity to all opted-in owners.

    Returns a summary: {"sent", "total", "skipped"} where skipped names
    the reason nothing was attempted (owner activity, push not configured,
    no recipients).
    """
    if actor_role == ROLE_OWNER:
        return {"sent": 0, "total": 0, "skipped": "owner activity"}

    if not is_configured():
        current_app.logger.debug("Push not configured; skipping %s notification", activity_type)
        return {"sent": 0, "total": 0, "skipped": "push not configured"}

    recipients = (
        db.session.query(PushSubscription)
        .join(User, User.id == PushSubscription.user_id)
        .filter(
            User.role == ROLE_OWNER,
            User.is_active.is_(True),
            PushSubscription.enabled.is_(True),
            PushSubscription.endpoint.isnot(None),
        )
        .all()
    )
    recipients = [r for r in recipients if r.is_deliverable]
    if not recipients:
        return {"sent": 0, "total": 0, "skipped": "no recipients"}

    payload = build_payload(activity_type, user_name, message, metadata)
    sent = 0
    for record in recipients:
        ok, status_code, error = send_to_subscription(record, payload)
        if ok:
            sent += 1
            _record_attempt(activity_type, record.user_id, "success", status_code)
            continue

        current_app.logger.warning(
            "Push to user %s failed (status=%s): %s", record.user_id, status_code, error
        )
        _record_attempt(activity_type, record.user_id, "failed", status_code, error)
        if status_code in GONE_STATUS_CODES:
            _disable_gone_subscription(record)

    db.session.commit()
    current_app.logger.info("Push notifications sent: %s/%s", sent, len(recipients))
    return {"sent": sent, "total": len(recipients), "skipped": None}


# -- Monitoring --

def _health_status(success_rate: float, total: int) -> str:
    if total == 0 or success_rate >= HEALTHY_SUCCESS_RATE:
        return "healthy"
    if success_rate >= DEGRADED_SUCCESS_RATE:
        return "degraded"
    return "critical"


def get_metrics(hours: int = 24) -> dict:
    """Delivery totals, overall and for the trailing `hours` window."""
    base = db.session.query(NotificationAttempt)
    total = base.count()
    successful = base.filter(NotificationAttempt.status == "success").count()
    failed = base.filter(NotificationAttempt.status == "failed").count()
    recent = base.filter(NotificationAttempt.created_at >= utcnow() - timedelta(hours=hours)).count()

    success_rate = round(successful / total * 100, 2) if total else 0.0
    return {
        "total_attempts": total,
        "successful_attempts": successful,
        "failed_attempts": failed,
        "success_rate": success_rate,
        "last_24h_volume": recent,
        "health_status": _health_status(success_rate, total),
        "last_updated": to_utc_z(utcnow()),
    }


def get_failed_attempts(limit: int = 50) -> tuple[list[NotificationAttempt], int]:
    query = db.session.query(NotificationAttempt).filter(NotificationAttempt.status == "failed")
    total = query.count()
    rows = query.order_by(NotificationAttempt.created_at.desc(), NotificationAttempt.id.desc()).limit(limit).all()
    return rows, total


def health_check() -> dict:
    metrics = get_metrics()
    vapid_configured = is_configured()
    subscribed_owners = (
        db.session.query(PushSubscription)
        .join(User, User.id == PushSubscription.user_id)
        .filter(User.role == ROLE_OWNER, PushSubscription.enabled.is_(True), PushSubscription.endpoint.isnot(None))
        .count()
    )

    recommendations = []
    if not vapid_configured:
        recommendations.append("Set VAPID_PUBLIC_KEY and VAPID_PRIVATE_KEY (flask push generate-vapid)")
    if subscribed_owners == 0:
        recommendations.append("No owner has enabled push notifications")
    if metrics["health_status"] != "healthy":
        recommendations.append("Recent delivery success rate is low; inspect failed attempts")

    overall = metrics["health_status"]
    if not vapid_configured:
        overall = "critical"

    return {
        "overall_status": overall,
        "components": {
            "vapid_configured": vapid_configured,
            "subscribed_owners": subscribed_owners,
            "recent_success_rate": metrics["success_rate"],
        },
        "metrics": metrics,
        "recommendations": recommendations,
    }


def cleanup_attempts(older_than_hours: int = 24) -> int:
    cutoff = utcnow() - timedelta(hours=older_than_hours)
    deleted = (
        db.session.query(NotificationAttempt)
        .filter(NotificationAttempt.created_at < cutoff)
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return deleted
