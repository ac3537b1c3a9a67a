# Overview: Flask API routes for web push subscriptions and delivery monitoring; parses input and returns JSON responses.

"""
Notification API routes

Subscriptions (any signed-in user):
- GET/POST/DELETE /api/notifications/subscription
- PATCH /api/notifications/preferences   {enabled: bool}

Owner tooling:
- GET  /api/notifications/push            push health
- POST /api/notifications/push            manual trigger
- GET  /api/notifications/monitoring?action=metrics|failed|health|cleanup
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import push_service
from ..services.push_service import PushError
from ..decorators import require_auth, require_permission


notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")

MONITORING_ACTIONS = ("metrics", "failed", "health", "cleanup")


@notifications_bp.get("/subscription")
@require_auth
@require_permission("MANAGE_OWN_NOTIFICATIONS")
def get_subscription_route():
    record = push_service.get_subscription(g.current_user.id)
    return jsonify({
        "subscription": record.to_dict() if record else None,
        "vapid_public_key": current_app.config.get("VAPID_PUBLIC_KEY") or None,
    })


@notifications_bp.post("/subscription")
@require_auth
@require_permission("MANAGE_OWN_NOTIFICATIONS")
def save_subscription_route():
    """Body: {subscription: {endpoint, keys: {p256dh, auth}}}."""
    data = request.get_json(silent=True) or {}
    try:
        record = push_service.save_subscription(
            g.current_user.id,
            data.get("subscription"),
            user_agent=request.headers.get("User-Agent"),
        )
    except PushError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"subscription": record.to_dict()}), 201


@notifications_bp.delete("/subscription")
@require_auth
@require_permission("MANAGE_OWN_NOTIFICATIONS")
def delete_subscription_route():
    removed = push_service.delete_subscription(g.current_user.id)
    return jsonify({"removed": removed}), 200


@notifications_bp.patch("/preferences")
@require_auth
@require_permission("MANAGE_OWN_NOTIFICATIONS")
def update_preferences_route():
    data = request.get_json(silent=True) or {}
    enabled = data.get("enabled")
    if not isinstance(enabled, bool):
        return jsonify({"error": "enabled must be a boolean"}), 400
    record = push_service.set_enabled(g.current_user.id, enabled)
    return jsonify({"subscription": record.to_dict()})


@notifications_bp.get("/push")
@require_auth
@require_permission("VIEW_PUSH_MONITORING")
def push_health_route():
    return jsonify({
        "configured": push_service.is_configured(),
        "vapid_subject": current_app.config.get("VAPID_SUBJECT"),
    })


@notifications_bp.post("/push")
@require_auth
@require_permission("TRIGGER_PUSH")
def trigger_push_route():
    """
    Body: {activity_type, user_name, message, metadata?}

    Sends to owners as if a staff member had performed the activity.
    """
    data = request.get_json(silent=True) or {}
    activity_type = data.get("activity_type")
    user_name = data.get("user_name")
    message = data.get("message")
    if not all([activity_type, user_name, message]):
        return jsonify({"error": "activity_type, user_name and message required"}), 400

    try:
        result = push_service.notify_owners(activity_type, user_name, message, data.get("metadata"))
    except Exception:
        current_app.logger.exception("Failed to trigger push notification")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result)


@notifications_bp.get("/monitoring")
@require_auth
@require_permission("VIEW_PUSH_MONITORING")
def monitoring_route():
    action = request.args.get("action", "metrics")

    if action == "metrics":
        hours = request.args.get("hours", 24, type=int)
        return jsonify({"metrics": push_service.get_metrics(hours)})

    if action == "failed":
        limit = min(request.args.get("limit", 50, type=int), 500)
        rows, total = push_service.get_failed_attempts(limit)
        return jsonify({"failed_attempts": [r.to_dict() for r in rows], "total": total})

    if action == "health":
        return jsonify({"health": push_service.health_check()})

    if action == "cleanup":
        hours = request.args.get("older_than_hours", 24, type=int)
        deleted = push_service.cleanup_attempts(hours)
        return jsonify({"deleted": deleted, "message": f"Cleaned up {deleted} attempts older than {hours}h"})

    return jsonify({
        "error": "Invalid action",
        "available_actions": list(MONITORING_ACTIONS),
    }), 400
