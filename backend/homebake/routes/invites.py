# Overview: Flask API routes for QR invites; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, send_file

from ..services import invite_service
from ..services.invite_service import InviteError
from ..decorators import require_auth, require_permission


invites_bp = Blueprint("invites", __name__, url_prefix="/api/invites")


def _invite_payload(invite) -> dict:
    data = invite.to_dict()
    data["invite_url"] = invite_service.invite_url(invite.token)
    data["qr_code_url"] = f"/api/invites/{invite.token}/qr.png"
    return data


@invites_bp.post("")
@require_auth
@require_permission("CREATE_INVITES")
def create_invite_route():
    """Body: {role: "manager" | "sales_rep"}."""
    data = request.get_json(silent=True) or {}
    try:
        invite = invite_service.create_invite(data.get("role"), g.current_user)
    except InviteError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"invite": _invite_payload(invite)}), 201


@invites_bp.get("")
@require_auth
@require_permission("CREATE_INVITES")
def list_invites_route():
    include_used = request.args.get("include_used", "true").lower() != "false"
    invites = invite_service.list_invites(
        created_by_user_id=g.current_user.id,
        include_used=include_used,
    )
    return jsonify({"items": [_invite_payload(i) for i in invites], "count": len(invites)})


@invites_bp.delete("/<int:invite_id>")
@require_auth
@require_permission("CREATE_INVITES")
def revoke_invite_route(invite_id: int):
    try:
        invite_service.revoke_invite(invite_id, g.current_user)
    except InviteError as e:
        status = 404 if str(e) == "Invite not found" else 400
        return jsonify({"error": str(e)}), status
    return jsonify({"message": "Invite revoked"}), 200


@invites_bp.get("/<token>/validate")
def validate_invite_route(token: str):
    """Public: the signup page checks a token before showing the form."""
    invite = invite_service.validate_invite(token)
    if invite is None:
        return jsonify({"valid": False, "error": "Invalid or expired invite"}), 404
    return jsonify({
        "valid": True,
        "role": invite.role,
        "expires_at": invite.to_dict()["expires_at"],
    })


@invites_bp.get("/<token>/qr.png")
@require_auth
@require_permission("CREATE_INVITES")
def invite_qr_route(token: str):
    invite = invite_service.get_invite(token)
    if invite is None:
        return jsonify({"error": "Invite not found"}), 404

    buf = invite_service.render_qr_png(invite_service.invite_url(invite.token))
    return send_file(buf, mimetype="image/png", download_name=f"invite-{invite.token}.png")
