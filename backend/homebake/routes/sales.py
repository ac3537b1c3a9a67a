# Overview: Flask API routes for sales and end-of-shift reporting; parses input and returns JSON responses.

"""
Sales API routes

Sales reps record sales during the shift and close it with one end-shift
request. Reps only ever see their own sales and reports; owners and
managers see everyone's.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..models.auth import ROLE_SALES_REP
from ..services import permission_service, sales_service
from ..services.sales_service import SalesError, ShiftReportNotFoundError
from ..validation import parse_date_param
from ..decorators import require_auth, require_permission, require_any_permission


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _can_view_all() -> bool:
    return permission_service.user_has_permission(g.current_user.id, "VIEW_ALL_SALES")


@sales_bp.post("")
@require_auth
@require_permission("RECORD_SALE")
def record_sale_route():
    """
    Body: {bread_type_id, quantity, unit_price_cents?, discount_cents?, shift?, returned?, leftovers?}

    Returns 409 when the quantity exceeds the stock available this shift.
    """
    try:
        data = request.get_json(silent=True) or {}
        sale = sales_service.record_sale(data, g.current_user)
        return jsonify({"sale": sale.to_dict()}), 201
    except SalesError as e:
        return jsonify({"error": str(e)}), 409
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
@require_auth
@require_permission("VIEW_SALES")
def list_sales_route():
    recorded_by = request.args.get("recorded_by", type=int)
    if not _can_view_all():
        recorded_by = g.current_user.id

    try:
        rows, total = sales_service.list_sales(
            shift=request.args.get("shift"),
            on_date=parse_date_param(request.args.get("date")),
            bread_type_id=request.args.get("bread_type_id", type=int),
            recorded_by_user_id=recorded_by,
            limit=request.args.get("limit", 100, type=int),
            offset=max(request.args.get("offset", 0, type=int), 0),
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"items": [r.to_dict() for r in rows], "count": len(rows), "total": total})


@sales_bp.post("/end-shift")
@require_auth
@require_permission("END_SHIFT")
def end_shift_route():
    """
    Body:
    {
      "shift": "morning",
      "sales": [{bread_type_id, quantity, unit_price_cents?, discount_cents?}],
      "remaining": [{bread_type_id, quantity}],
      "feedback": "..."
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        report = sales_service.end_shift(data, g.current_user)
        return jsonify({"report": report.to_dict()}), 201
    except SalesError as e:
        return jsonify({"error": str(e)}), 409
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to end shift")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.post("/feedback")
@require_auth
@require_permission("RECORD_SALE")
def add_feedback_route():
    data = request.get_json(silent=True) or {}
    try:
        entry = sales_service.add_feedback(g.current_user, data.get("note"), data.get("shift"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"feedback": entry.to_dict()}), 201


@sales_bp.get("/feedback")
@require_auth
@require_permission("VIEW_SHIFT_REPORTS")
def list_feedback_route():
    try:
        rows = sales_service.list_feedback(
            shift=request.args.get("shift"),
            on_date=parse_date_param(request.args.get("date")),
            limit=request.args.get("limit", 100, type=int),
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"items": [r.to_dict() for r in rows], "count": len(rows)})


@sales_bp.get("/remaining")
@require_auth
@require_any_permission("VIEW_SHIFT_REPORTS", "VIEW_INVENTORY")
def list_remaining_route():
    try:
        rows = sales_service.list_remaining(
            shift=request.args.get("shift"),
            on_date=parse_date_param(request.args.get("date")),
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"items": [r.to_dict() for r in rows], "count": len(rows)})


@sales_bp.get("/shift-reports")
@require_auth
@require_any_permission("VIEW_SHIFT_REPORTS", "END_SHIFT")
def list_shift_reports_route():
    user_id = request.args.get("user_id", type=int)
    if g.current_user.role == ROLE_SALES_REP:
        user_id = g.current_user.id

    try:
        rows, total = sales_service.list_shift_reports(
            user_id=user_id,
            shift=request.args.get("shift"),
            start_date=parse_date_param(request.args.get("start_date"), "start_date"),
            end_date=parse_date_param(request.args.get("end_date"), "end_date"),
            limit=request.args.get("limit", 100, type=int),
            offset=max(request.args.get("offset", 0, type=int), 0),
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"items": [r.to_dict() for r in rows], "count": len(rows), "total": total})


@sales_bp.get("/shift-reports/<int:report_id>")
@require_auth
@require_any_permission("VIEW_SHIFT_REPORTS", "END_SHIFT")
def get_shift_report_route(report_id: int):
    try:
        report = sales_service.get_shift_report(report_id)
    except ShiftReportNotFoundError as e:
        return jsonify({"error": str(e)}), 404

    if g.current_user.role == ROLE_SALES_REP and report.user_id != g.current_user.id:
        return jsonify({"error": "Shift report not found"}), 404
    return jsonify({"report": report.to_dict()})
