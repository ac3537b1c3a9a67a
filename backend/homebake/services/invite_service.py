# Overview: Service-layer operations for QR staff invites.

"""
QR Invites

Owners onboard staff by issuing a short-lived signup token, shown as a QR
code that encodes {APP_URL}/signup?token=<token>.

RULES:
- Only managers and sales reps can be invited (owners are bootstrapped via CLI)
- Tokens are 8 characters from A-Z0-9, drawn from the `secrets` CSPRNG
- Invites expire INVITE_TTL_HOURS (24) after creation
- Redeeming marks the invite used; a used or expired token is rejected
"""

from __future__ import annotations

import io
import secrets
import string
from datetime import timedelta

import qrcode
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import QRInvite, User
from ..models.auth import INVITABLE_ROLES
from . import activity_service, auth_service, permission_service
from homebake.time_utils import utcnow


TOKEN_ALPHABET = string.ascii_uppercase + string.digits
TOKEN_LENGTH = 8
MAX_TOKEN_ATTEMPTS = 5


class InviteError(ValueError):
    """Raised for invalid, expired or already-used invites."""


def generate_token(length: int = TOKEN_LENGTH) -> str:
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def invite_url(token: str) -> str:
    base = current_app.config.get("APP_URL", "http://localhost:3000").rstrip("/")
    return f"{base}/signup?token={token}"


def create_invite(role: str, created_by: User) -> QRInvite:
    """
    Issue a new invite for `role`.

    Retries on the (unlikely) token collision.
    """
    if not created_by.is_owner:
        raise InviteError("Only owners can create invites")
    if role not in INVITABLE_ROLES:
        raise InviteError("Role must be manager or sales_rep")

    ttl = timedelta(hours=current_app.config.get("INVITE_TTL_HOURS", 24))

    for attempt in range(MAX_TOKEN_ATTEMPTS):
        now = utcnow()
        invite = QRInvite(
            token=generate_token(),
            role=role,
            is_used=False,
            expires_at=now + ttl,
            created_by_user_id=created_by.id,
            created_at=now,
        )
        db.session.add(invite)
        try:
            db.session.flush()
        except IntegrityError:
            db.session.rollback()
            current_app.logger.warning("Invite token collision (attempt %s)", attempt + 1)
            continue

        permission_service.log_audit_event(
            actor_user_id=created_by.id,
            event_type="INVITE_CREATED",
            success=True,
            resource="qr_invites",
            action="create",
            details={"invite_id": invite.id, "role": role},
            commit=False,
        )
        db.session.commit()
        return invite

    raise InviteError("Could not generate a unique invite token")


def get_invite(token: str) -> QRInvite | None:
    token = (token or "").strip().upper()
    if not token:
        return None
    return db.session.query(QRInvite).filter_by(token=token).first()


def validate_invite(token: str) -> QRInvite | None:
    """The invite if it is unused and unexpired, else None."""
    invite = get_invite(token)
    if invite is None or not invite.is_valid(utcnow()):
        return None
    return invite


def redeem_invite(token: str, name: str, email: str, password: str) -> User:
    """
    Create a staff account from an invite.

    The new user gets the invite's role and records the inviting owner as
    creator. The invite is marked used in the same transaction.

    Raises:
        InviteError: token unknown, used or expired
        auth_service.AccountError / PasswordValidationError: bad signup data
    """
    invite = get_invite(token)
    if invite is None:
        raise InviteError("Invalid invite token")

    now = utcnow()
    if invite.is_used:
        raise InviteError("Invite has already been used")
    if invite.expires_at <= now:
        raise InviteError("Invite has expired")

    user = auth_service.create_user(
        name=name,
        email=email,
        password=password,
        role=invite.role,
        created_by_user_id=invite.created_by_user_id,
        commit=False,
    )

    # Claim the invite only if no concurrent signup got there first
    claimed = (
        db.session.query(QRInvite)
        .filter(QRInvite.id == invite.id, QRInvite.is_used.is_(False))
        .update(
            {"is_used": True, "used_at": now, "used_by_user_id": user.id},
            synchronize_session=False,
        )
    )
    if claimed != 1:
        db.session.rollback()
        raise InviteError("Invite has already been used")

    permission_service.log_audit_event(
        actor_user_id=user.id,
        target_user_id=user.id,
        event_type="USER_CREATED",
        success=True,
        resource="users",
        action="signup",
        details={"invite_id": invite.id, "role": invite.role},
        commit=False,
    )
    db.session.commit()

    activity_service.log_account_created_activity(user)
    return user


def list_invites(created_by_user_id: int | None = None, include_used: bool = True) -> list[QRInvite]:
    query = db.session.query(QRInvite)
    if created_by_user_id is not None:
        query = query.filter(QRInvite.created_by_user_id == created_by_user_id)
    if not include_used:
        query = query.filter(QRInvite.is_used.is_(False))
    return query.order_by(QRInvite.created_at.desc(), QRInvite.id.desc()).all()


def revoke_invite(invite_id: int, revoked_by: User) -> None:
    """Delete an unused invite. Used invites stay as signup history."""
    invite = db.session.get(QRInvite, invite_id)
    if invite is None:
        raise InviteError("Invite not found")
    if invite.is_used:
        raise InviteError("Cannot revoke an invite that has been used")

    permission_service.log_audit_event(
        actor_user_id=revoked_by.id,
        event_type="INVITE_REVOKED",
        success=True,
        resource="qr_invites",
        action="delete",
        details={"invite_id": invite.id, "role": invite.role},
        commit=False,
    )
    db.session.delete(invite)
    db.session.commit()


def cleanup_expired_invites() -> int:
    """Delete unused invites past their expiry."""
    deleted = db.session.query(QRInvite).filter(
        QRInvite.is_used.is_(False),
        QRInvite.expires_at < utcnow(),
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted


def render_qr_png(data: str) -> io.BytesIO:
    """PNG image of `data` as an in-memory buffer, rewound for send_file."""
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf
