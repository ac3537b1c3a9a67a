# Overview: Flask API routes for reports and exports; parses input and returns JSON responses.

"""
Reports API routes

- GET /api/reports/shift?shift=&date=      one shift summary
- GET /api/reports/range?start_date=&end_date=&shift=&bread_type_id=&user_id=
- GET /api/reports/export?format=csv|json|text|xlsx&...   range report as a file

Every export is recorded in the activity log.
"""

from flask import Blueprint, request, jsonify, current_app, g, Response

from ..services import activity_service, export_service, report_service
from ..services.export_service import ExportError
from ..services.report_service import ReportError
from ..validation import ValidationError, parse_date_param
from ..decorators import require_auth, require_permission


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _range_from_args() -> dict:
    return report_service.range_report(
        start_date=parse_date_param(request.args.get("start_date"), "start_date"),
        end_date=parse_date_param(request.args.get("end_date"), "end_date"),
        shift=request.args.get("shift"),
        bread_type_id=request.args.get("bread_type_id", type=int),
        recorded_by_user_id=request.args.get("user_id", type=int),
    )


@reports_bp.get("/shift")
@require_auth
@require_permission("VIEW_REPORTS")
def shift_summary_route():
    try:
        summary = report_service.shift_summary(
            request.args.get("shift"),
            parse_date_param(request.args.get("date")),
        )
    except (ReportError, ValidationError) as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(summary)


@reports_bp.get("/range")
@require_auth
@require_permission("VIEW_REPORTS")
def range_report_route():
    try:
        report = _range_from_args()
    except (ReportError, ValidationError) as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(report)


@reports_bp.get("/export")
@require_auth
@require_permission("EXPORT_REPORTS")
def export_report_route():
    fmt = request.args.get("format", "csv")
    try:
        report = _range_from_args()
        export = export_service.export_report(
            report,
            fmt,
            title=request.args.get("title") or "HomeBake Report",
            currency=current_app.config.get("CURRENCY_CODE", "NGN"),
        )
    except (ReportError, ExportError, ValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to export report")
        return jsonify({"error": "Internal server error"}), 500

    activity_service.log_report_activity(g.current_user, request.args.get("shift"), fmt.lower())

    return Response(
        export.content,
        mimetype=export.mimetype,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )
