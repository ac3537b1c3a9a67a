# Overview: Flask API routes for role dashboards; parses input and returns JSON responses.

from flask import Blueprint, jsonify, current_app, g

from ..models.auth import ROLE_OWNER, ROLE_MANAGER, ROLE_SALES_REP
from ..services import dashboard_service
from ..decorators import require_auth, require_role


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/owner")
@require_auth
@require_role(ROLE_OWNER)
def owner_dashboard_route():
    try:
        return jsonify(dashboard_service.owner_dashboard())
    except Exception:
        current_app.logger.exception("Failed to build owner dashboard")
        return jsonify({"error": "Internal server error"}), 500


@dashboard_bp.get("/manager")
@require_auth
@require_role(ROLE_OWNER, ROLE_MANAGER)
def manager_dashboard_route():
    try:
        return jsonify(dashboard_service.manager_dashboard())
    except Exception:
        current_app.logger.exception("Failed to build manager dashboard")
        return jsonify({"error": "Internal server error"}), 500


@dashboard_bp.get("/sales-rep")
@require_auth
@require_role(ROLE_SALES_REP)
def sales_rep_dashboard_route():
    try:
        return jsonify(dashboard_service.sales_rep_dashboard(g.current_user))
    except Exception:
        current_app.logger.exception("Failed to build sales rep dashboard")
        return jsonify({"error": "Internal server error"}), 500
