# Overview: Flask API routes for production logs; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g

from ..services import production_service
from ..validation import parse_date_param
from ..decorators import require_auth, require_permission


production_bp = Blueprint("production", __name__, url_prefix="/api/production")


@production_bp.post("")
@require_auth
@require_permission("RECORD_PRODUCTION")
def record_production_route():
    """Body: {bread_type_id, quantity, shift?}."""
    try:
        data = request.get_json(silent=True) or {}
        log = production_service.record_production(data, g.current_user)
        return jsonify({"production_log": log.to_dict()}), 201
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to record production")
        return jsonify({"error": "Internal server error"}), 500


@production_bp.get("")
@require_auth
@require_permission("VIEW_PRODUCTION")
def list_production_route():
    try:
        rows, total = production_service.list_production(
            shift=request.args.get("shift"),
            on_date=parse_date_param(request.args.get("date")),
            bread_type_id=request.args.get("bread_type_id", type=int),
            limit=request.args.get("limit", 100, type=int),
            offset=max(request.args.get("offset", 0, type=int), 0),
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"items": [r.to_dict() for r in rows], "count": len(rows), "total": total})
