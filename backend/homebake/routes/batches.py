# Overview: Flask API routes for production batches; parses input and returns JSON responses.

"""
Batch API routes

Managers and owners plan and close production runs. Completing a batch
writes a production log row for its actual quantity, which is what the
inventory view counts as produced stock.
"""

from flask import Blueprint, request, jsonify, current_app, g, Response

from ..services import batch_service, export_service
from ..services.batch_service import BatchError, BatchNotFoundError
from ..shifts import business_date, current_shift, parse_shift
from ..validation import MAX_QUANTITY, ValidationError, parse_date_param, require_int
from ..decorators import require_auth, require_permission


batches_bp = Blueprint("batches", __name__, url_prefix="/api/batches")


@batches_bp.get("")
@require_auth
@require_permission("VIEW_BATCHES")
def list_batches_route():
    try:
        batches, total = batch_service.list_batches(
            shift=request.args.get("shift"),
            status=request.args.get("status"),
            on_date=parse_date_param(request.args.get("date")),
            bread_type_id=request.args.get("bread_type_id", type=int),
            created_by_user_id=request.args.get("created_by", type=int),
            limit=request.args.get("limit", 100, type=int),
            offset=max(request.args.get("offset", 0, type=int), 0),
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"items": [b.to_dict() for b in batches], "count": len(batches), "total": total})


@batches_bp.post("")
@require_auth
@require_permission("MANAGE_BATCHES")
def create_batch_route():
    """
    Body: {bread_type_id, target_quantity?, actual_quantity?, shift?, notes?, start_time?}

    batch_number is assigned by the server.
    """
    try:
        data = request.get_json(silent=True) or {}
        batch = batch_service.create_batch(data, g.current_user)
        return jsonify({"batch": batch.to_dict()}), 201
    except BatchError as e:
        return jsonify({"error": str(e)}), 409
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create batch")
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.get("/stats")
@require_auth
@require_permission("VIEW_BATCHES")
def batch_stats_route():
    try:
        stats = batch_service.batch_stats(
            shift=request.args.get("shift"),
            on_date=parse_date_param(request.args.get("date")),
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(stats)


@batches_bp.get("/export.csv")
@require_auth
@require_permission("EXPORT_BATCHES")
def export_batches_route():
    try:
        shift = parse_shift(request.args.get("shift")) if request.args.get("shift") else current_shift()
        on_date = parse_date_param(request.args.get("date")) or business_date()
        batches, _ = batch_service.list_batches(shift=shift, on_date=on_date, limit=500)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    content = export_service.render_batches_csv(batches, shift, on_date)
    filename = f"homebake-production-{on_date.isoformat()}-{shift}.csv"
    return Response(
        content,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@batches_bp.delete("/today")
@require_auth
@require_permission("MANAGE_BATCHES")
def delete_todays_batches_route():
    """Clear every batch of ?shift= on the current business date."""
    try:
        deleted = batch_service.delete_todays_batches(request.args.get("shift"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"deleted": deleted}), 200


@batches_bp.get("/<int:batch_id>")
@require_auth
@require_permission("VIEW_BATCHES")
def get_batch_route(batch_id: int):
    try:
        batch = batch_service.get_batch(batch_id)
    except BatchNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"batch": batch.to_dict()})


@batches_bp.patch("/<int:batch_id>")
@require_auth
@require_permission("MANAGE_BATCHES")
def update_batch_route(batch_id: int):
    try:
        data = request.get_json(silent=True) or {}
        batch = batch_service.update_batch(batch_id, data, g.current_user)
        return jsonify({"batch": batch.to_dict()})
    except BatchNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except BatchError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update batch")
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.post("/<int:batch_id>/complete")
@require_auth
@require_permission("MANAGE_BATCHES")
def complete_batch_route(batch_id: int):
    """Body: {actual_quantity?}."""
    try:
        data = request.get_json(silent=True) or {}
        actual = require_int(data, "actual_quantity", minimum=0, maximum=MAX_QUANTITY, required=False)
        batch = batch_service.complete_batch(batch_id, g.current_user, actual_quantity=actual)
        return jsonify({"batch": batch.to_dict()})
    except BatchNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except BatchError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to complete batch")
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.post("/<int:batch_id>/cancel")
@require_auth
@require_permission("MANAGE_BATCHES")
def cancel_batch_route(batch_id: int):
    try:
        batch = batch_service.cancel_batch(batch_id)
        return jsonify({"batch": batch.to_dict()})
    except BatchNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except BatchError as e:
        return jsonify({"error": str(e)}), 409


@batches_bp.delete("/<int:batch_id>")
@require_auth
@require_permission("MANAGE_BATCHES")
def delete_batch_route(batch_id: int):
    try:
        batch_service.delete_batch(batch_id)
    except BatchNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"message": "Batch deleted"}), 200
