# Overview: Flask API routes for the bread type catalog; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g

from ..services import bread_type_service
from ..services.bread_type_service import BreadTypeNotFoundError
from ..validation import ValidationError, ConflictError
from ..decorators import require_auth, require_permission


bread_types_bp = Blueprint("bread_types", __name__, url_prefix="/api/bread-types")


@bread_types_bp.get("")
@require_auth
@require_permission("VIEW_BREAD_TYPES")
def list_bread_types_route():
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"
    items = bread_type_service.list_bread_types(include_inactive=include_inactive)
    return jsonify({"items": [b.to_dict() for b in items], "count": len(items)})


@bread_types_bp.get("/<int:bread_type_id>")
@require_auth
@require_permission("VIEW_BREAD_TYPES")
def get_bread_type_route(bread_type_id: int):
    try:
        bread_type = bread_type_service.get_bread_type(bread_type_id)
    except BreadTypeNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"bread_type": bread_type.to_dict()})


@bread_types_bp.post("")
@require_auth
@require_permission("MANAGE_BREAD_TYPES")
def create_bread_type_route():
    """Body: {name, size?, unit_price_cents}."""
    try:
        data = request.get_json(silent=True) or {}
        bread_type = bread_type_service.create_bread_type(data, g.current_user)
        return jsonify({"bread_type": bread_type.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create bread type")
        return jsonify({"error": "Internal server error"}), 500


@bread_types_bp.patch("/<int:bread_type_id>")
@require_auth
@require_permission("MANAGE_BREAD_TYPES")
def update_bread_type_route(bread_type_id: int):
    try:
        data = request.get_json(silent=True) or {}
        bread_type = bread_type_service.update_bread_type(bread_type_id, data)
        return jsonify({"bread_type": bread_type.to_dict()})
    except BreadTypeNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update bread type")
        return jsonify({"error": "Internal server error"}), 500


@bread_types_bp.delete("/<int:bread_type_id>")
@require_auth
@require_permission("MANAGE_BREAD_TYPES")
def delete_bread_type_route(bread_type_id: int):
    """Bread types with production or sales history are deactivated instead of removed."""
    try:
        outcome = bread_type_service.delete_bread_type(bread_type_id)
    except BreadTypeNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"result": outcome}), 200
