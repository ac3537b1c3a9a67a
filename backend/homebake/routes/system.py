# Overview: System health and version endpoints.

"""
System health endpoint.

Returns 503 when the database is unreachable so load balancers can take
the instance out of rotation. Push delivery problems only degrade the
status.
"""

import os
import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import User, SessionToken, BreadType
from ..services import push_service
from homebake.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        bread_type_count = db.session.query(BreadType).count()
        active_sessions = db.session.query(SessionToken).filter_by(is_revoked=False).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "users": user_count,
                "bread_types": bread_type_count,
                "active_sessions": active_sessions,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_push_health() -> dict:
    if not push_service.is_configured():
        return {"status": "degraded", "warning": "VAPID keys not configured"}
    try:
        report = push_service.health_check()
    except Exception:
        current_app.logger.exception("Push health check failed")
        return {"status": "degraded", "error": "Push service error"}
    status = "healthy" if report["overall_status"] == "healthy" else "degraded"
    return {"status": status, "details": report}


@system_bp.get("/health")
def health():
    """
    - 200: healthy or degraded
    - 503: database unhealthy
    """
    start_time = time.time()

    database_health = check_database_health()
    push_health = check_push_health()

    if database_health["status"] == "unhealthy":
        overall_status = "unhealthy"
        http_status = 503
    elif push_health["status"] != "healthy":
        overall_status = "degraded"
        http_status = 200
    else:
        overall_status = "healthy"
        http_status = 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round(total_elapsed_ms, 2),
        "version": os.environ.get("APP_VERSION", "dev"),
        "checks": {
            "database": database_health,
            "push": push_health,
        }
    }

    return response, http_status
