# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- POST /api/auth/login: email + password -> bearer token
- POST /api/auth/logout: revoke the presented token
- GET  /api/auth/me: current user and permission codes
- POST /api/auth/signup: create an account from a QR invite token

Self-registration without an invite is not possible; owners are created
with `flask users create-owner`.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import activity_service, auth_service, invite_service, permission_service, session_service
from ..services.auth_service import AccountError, PasswordValidationError
from ..services.invite_service import InviteError
from ..decorators import bearer_token, require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_response(user, status: int = 200, message: str = "Login successful"):
    session, token = session_service.create_session(
        user_id=user.id,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    return jsonify({
        "user": user.to_dict(),
        "permissions": sorted(permission_service.get_user_permissions(user.id)),
        "token": token,
        "session": session.to_dict(),
        "message": message,
    }), status


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included as "Authorization: Bearer <token>" on protected routes.
    Failed attempts are written to the audit log.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            permission_service.log_audit_event(
                actor_user_id=None,
                event_type="LOGIN_FAILED",
                success=False,
                resource=request.path,
                reason="Invalid credentials",
                details={"email": auth_service.normalize_email(email)},
                ip_address=request.remote_addr,
                user_agent=request.headers.get("User-Agent"),
            )
            return jsonify({"error": "Invalid credentials"}), 401

        response = _session_response(user)
        activity_service.log_login_activity(user)
        return response

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """Revoke session token (logout). Expects Authorization: Bearer <token>."""
    try:
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authorization header required"}), 401

        if not session_service.revoke_session(token, reason="User logout"):
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    user = g.current_user
    return jsonify({
        "user": user.to_dict(),
        "permissions": sorted(permission_service.get_user_permissions(user.id)),
    }), 200


@auth_bp.post("/signup")
def signup_route():
    """
    Redeem a QR invite.

    Body: {token, name, email, password}. On success the new user is
    logged in immediately.
    """
    data = request.get_json(silent=True) or {}
    token = data.get("token")
    if not token:
        return jsonify({"error": "Invite token is required"}), 400

    try:
        user = invite_service.redeem_invite(
            token=token,
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
        )
    except InviteError as e:
        return jsonify({"error": str(e)}), 400
    except (AccountError, PasswordValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to redeem invite")
        return jsonify({"error": "Internal server error"}), 500

    return _session_response(user, status=201, message="Account created")
