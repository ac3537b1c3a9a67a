# Overview: Service-layer operations for staff account management.

"""
User Management

RULES:
- Only owners change roles, deactivate, reactivate or delete accounts
- An owner's role cannot be changed and nobody can be made owner
- Owners and yourself cannot be deactivated or deleted
- Role changes and deactivation revoke the user's sessions immediately
- Accounts with production or sales history cannot be deleted; deactivate them
- Every operation writes an audit event
"""

from __future__ import annotations

from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import (
    Activity,
    Batch,
    BreadType,
    ProductionLog,
    QRInvite,
    RemainingBread,
    SalesLog,
    SessionToken,
    ShiftFeedback,
    ShiftReport,
    User,
)
from ..models.auth import ROLE_OWNER, INVITABLE_ROLES
from . import permission_service, session_service
from homebake.time_utils import to_utc_z, utcnow


class UserManagementError(ValueError):
    """Raised when a user-management rule is violated."""


class UserNotFoundError(LookupError):
    pass


def _get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise UserNotFoundError("User not found")
    return user


def _require_owner(actor: User) -> None:
    if not actor.is_owner:
        raise UserManagementError("Only owners can manage users")


def _audit(actor: User, target: User, event_type: str, action: str, details: dict | None = None, request_ctx: dict | None = None):
    permission_service.log_audit_event(
        actor_user_id=actor.id,
        target_user_id=target.id,
        event_type=event_type,
        success=True,
        resource="users",
        action=action,
        details=details,
        commit=False,
        **(request_ctx or {}),
    )


def list_users(include_inactive: bool = True, role: str | None = None) -> list[User]:
    query = db.session.query(User)
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    if role:
        query = query.filter(User.role == role)
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def get_user(user_id: int) -> User:
    return _get_user(user_id)


def update_role(actor: User, user_id: int, new_role: str, request_ctx: dict | None = None) -> User:
    _require_owner(actor)
    target = _get_user(user_id)

    if target.is_owner:
        raise UserManagementError("Cannot change an owner's role")
    if new_role == ROLE_OWNER:
        raise UserManagementError("Cannot assign the owner role")
    if new_role not in INVITABLE_ROLES:
        raise UserManagementError("Role must be manager or sales_rep")
    if target.role == new_role:
        return target

    old_role = target.role
    target.role = new_role
    session_service.revoke_all_user_sessions(target.id, reason="Role changed", commit=False)
    _audit(actor, target, "ROLE_CHANGED", "update_role", {"from": old_role, "to": new_role}, request_ctx)
    db.session.commit()

    current_app.logger.info("User %s role changed %s -> %s by %s", target.id, old_role, new_role, actor.id)
    return target


def _guard_target(actor: User, target: User, verb: str) -> None:
    if target.id == actor.id:
        raise UserManagementError(f"You cannot {verb} your own account")
    if target.is_owner:
        raise UserManagementError(f"Cannot {verb} an owner account")


def deactivate_user(actor: User, user_id: int, reason: str | None = None, request_ctx: dict | None = None) -> User:
    _require_owner(actor)
    target = _get_user(user_id)
    _guard_target(actor, target, "deactivate")

    if not target.is_active:
        return target

    target.is_active = False
    revoked = session_service.revoke_all_user_sessions(target.id, reason="User deactivated", commit=False)
    _audit(actor, target, "USER_DEACTIVATED", "deactivate", {"reason": reason, "sessions_revoked": revoked}, request_ctx)
    db.session.commit()
    return target


def reactivate_user(actor: User, user_id: int, request_ctx: dict | None = None) -> User:
    _require_owner(actor)
    target = _get_user(user_id)

    if target.is_active:
        return target

    target.is_active = True
    _audit(actor, target, "USER_REACTIVATED", "reactivate", None, request_ctx)
    db.session.commit()
    return target


def _has_history(user_id: int) -> bool:
    checks = (
        (Batch, Batch.created_by_user_id),
        (ProductionLog, ProductionLog.recorded_by_user_id),
        (SalesLog, SalesLog.recorded_by_user_id),
        (RemainingBread, RemainingBread.recorded_by_user_id),
        (ShiftReport, ShiftReport.user_id),
        (ShiftFeedback, ShiftFeedback.user_id),
    )
    for model, column in checks:
        if db.session.query(model.id).filter(column == user_id).first() is not None:
            return True
    return False


def delete_user(actor: User, user_id: int, request_ctx: dict | None = None) -> None:
    """
    Permanently delete a staff account without history.

    References that only record provenance (invites, bread types, activities,
    created_by) are set to NULL; sessions and push subscriptions go with
    the user.
    """
    _require_owner(actor)
    target = _get_user(user_id)
    _guard_target(actor, target, "delete")

    if _has_history(target.id):
        raise UserManagementError(
            "User has production or sales history; deactivate the account instead"
        )

    db.session.query(QRInvite).filter(QRInvite.created_by_user_id == target.id).update(
        {QRInvite.created_by_user_id: None}, synchronize_session=False
    )
    db.session.query(QRInvite).filter(QRInvite.used_by_user_id == target.id).update(
        {QRInvite.used_by_user_id: None}, synchronize_session=False
    )
    db.session.query(BreadType).filter(BreadType.created_by_user_id == target.id).update(
        {BreadType.created_by_user_id: None}, synchronize_session=False
    )
    db.session.query(Activity).filter(Activity.user_id == target.id).update(
        {Activity.user_id: None}, synchronize_session=False
    )
    db.session.query(User).filter(User.created_by_user_id == target.id).update(
        {User.created_by_user_id: None}, synchronize_session=False
    )

    _audit(actor, target, "USER_DELETED", "delete", {"email": target.email, "role": target.role}, request_ctx)
    db.session.delete(target)
    db.session.commit()


def staff_online(window_minutes: int | None = None) -> dict:
    """
    Active non-owner staff with a session used within the window.

    Returns {"online", "total", "staff": [...], "window_minutes"}.
    """
    if window_minutes is None:
        window_minutes = current_app.config.get("STAFF_ONLINE_WINDOW_MINUTES", 15)
    since = utcnow() - timedelta(minutes=window_minutes)

    total = db.session.query(User).filter(
        User.role != ROLE_OWNER,
        User.is_active.is_(True),
    ).count()

    rows = (
        db.session.query(User, db.func.max(SessionToken.last_used_at))
        .join(SessionToken, SessionToken.user_id == User.id)
        .filter(
            User.role != ROLE_OWNER,
            User.is_active.is_(True),
            SessionToken.is_revoked.is_(False),
            SessionToken.last_used_at >= since,
        )
        .group_by(User.id)
        .order_by(User.name.asc())
        .all()
    )

    return {
        "online": len(rows),
        "total": total,
        "window_minutes": window_minutes,
        "staff": [
            {"id": user.id, "name": user.name, "role": user.role, "last_seen_at": to_utc_z(last_seen)}
            for user, last_seen in rows
        ],
    }
