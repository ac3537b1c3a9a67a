# Overview: Flask API routes for staff accounts; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..services import permission_service, user_service
from ..services.user_service import UserManagementError, UserNotFoundError
from ..decorators import require_auth, require_permission


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def _request_ctx() -> dict:
    return {
        "ip_address": request.remote_addr,
        "user_agent": request.headers.get("User-Agent"),
    }


@users_bp.get("")
@require_auth
@require_permission("VIEW_USERS")
def list_users_route():
    include_inactive = request.args.get("include_inactive", "true").lower() != "false"
    users = user_service.list_users(include_inactive=include_inactive, role=request.args.get("role"))
    return jsonify({"items": [u.to_dict() for u in users], "count": len(users)})


@users_bp.get("/<int:user_id>")
@require_auth
@require_permission("VIEW_USERS")
def get_user_route(user_id: int):
    try:
        user = user_service.get_user(user_id)
    except UserNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"user": user.to_dict()})


@users_bp.patch("/<int:user_id>/role")
@require_auth
@require_permission("MANAGE_USERS")
def update_role_route(user_id: int):
    data = request.get_json(silent=True) or {}
    try:
        user = user_service.update_role(g.current_user, user_id, data.get("role"), _request_ctx())
    except UserNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except UserManagementError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"user": user.to_dict()})


@users_bp.post("/<int:user_id>/deactivate")
@require_auth
@require_permission("MANAGE_USERS")
def deactivate_user_route(user_id: int):
    data = request.get_json(silent=True) or {}
    try:
        user = user_service.deactivate_user(g.current_user, user_id, data.get("reason"), _request_ctx())
    except UserNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except UserManagementError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"user": user.to_dict()})


@users_bp.post("/<int:user_id>/reactivate")
@require_auth
@require_permission("MANAGE_USERS")
def reactivate_user_route(user_id: int):
    try:
        user = user_service.reactivate_user(g.current_user, user_id, _request_ctx())
    except UserNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except UserManagementError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"user": user.to_dict()})


@users_bp.delete("/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def delete_user_route(user_id: int):
    try:
        user_service.delete_user(g.current_user, user_id, _request_ctx())
    except UserNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except UserManagementError as e:
        return jsonify({"error": str(e)}), 409 if "history" in str(e) else 400
    return jsonify({"message": "User deleted"}), 200


@users_bp.get("/staff-online")
@require_auth
@require_permission("VIEW_STAFF_ONLINE")
def staff_online_route():
    return jsonify(user_service.staff_online())


@users_bp.get("/audit-events")
@require_auth
@require_permission("VIEW_AUDIT_LOG")
def audit_events_route():
    limit = min(request.args.get("limit", 100, type=int), 500)
    offset = max(request.args.get("offset", 0, type=int), 0)
    events, total = permission_service.list_audit_events(
        event_type=request.args.get("event_type"),
        actor_user_id=request.args.get("actor_user_id", type=int),
        limit=limit,
        offset=offset,
    )
    return jsonify({"items": [e.to_dict() for e in events], "count": len(events), "total": total})
