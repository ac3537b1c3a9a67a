# Overview: Flask API routes for the activity log and change feed; parses input and returns JSON responses.

from flask import Blueprint, g, request, jsonify

from ..models.activity import ACTIVITY_TYPES
from ..services import activity_service, permission_service
from ..decorators import require_auth, require_permission


activities_bp = Blueprint("activities", __name__, url_prefix="/api/activities")


@activities_bp.get("")
@require_auth
@require_permission("VIEW_ACTIVITIES")
def list_activities_route():
    activity_type = request.args.get("type")
    if activity_type and activity_type not in ACTIVITY_TYPES:
        return jsonify({"error": f"type must be one of: {', '.join(ACTIVITY_TYPES)}"}), 400

    limit = request.args.get("limit", 50, type=int)
    offset = max(request.args.get("offset", 0, type=int), 0)
    rows, total = activity_service.list_activities(
        activity_type=activity_type,
        user_id=request.args.get("user_id", type=int),
        limit=limit,
        offset=offset,
    )
    return jsonify({
        "items": [a.to_dict() for a in rows],
        "count": len(rows),
        "total": total,
        "has_more": offset + len(rows) < total,
    })


@activities_bp.get("/feed")
@require_auth
@require_permission("VIEW_CHANGE_FEED")
def activity_feed_route():
    """
    Change feed for polling clients.

    Returns activities with id > since_id oldest first. Clients pass the
    returned next_cursor as since_id on the following poll. Callers
    without VIEW_ACTIVITIES get ids, types and shifts only.
    """
    since_id = max(request.args.get("since_id", 0, type=int), 0)
    limit = request.args.get("limit", 100, type=int)
    rows, next_cursor = activity_service.feed_since(since_id, limit)
    if permission_service.user_has_permission(g.current_user.id, "VIEW_ACTIVITIES"):
        items = [a.to_dict() for a in rows]
    else:
        items = [a.to_change_dict() for a in rows]
    return jsonify({
        "items": items,
        "next_cursor": next_cursor,
        "latest_id": activity_service.latest_activity_id(),
    })
