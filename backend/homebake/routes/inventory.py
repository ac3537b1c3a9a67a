# Overview: Flask API routes for shift inventory; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..services import inventory_service
from ..shifts import parse_shift
from ..validation import parse_date_param
from ..decorators import require_auth, require_permission


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("/shift")
@require_auth
@require_permission("VIEW_INVENTORY")
def shift_inventory_route():
    """GET /api/inventory/shift?shift=morning&date=YYYY-MM-DD (date defaults to the current business date)."""
    try:
        shift = parse_shift(request.args.get("shift"))
        on_date = parse_date_param(request.args.get("date"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(inventory_service.shift_inventory(shift, on_date))


@inventory_bp.get("/current")
@require_auth
@require_permission("VIEW_INVENTORY")
def current_inventory_route():
    return jsonify(inventory_service.current_inventory())
