# Overview: Service-layer operations for permission; encapsulates business logic and database work.

"""
Permission Checking and Audit Logging

WHY: Enforce role-based access control and create an audit trail.
Permission denials and user-management actions are logged for owners.

DESIGN PRINCIPLES:
- Fail closed: Deny by default, unknown roles get no permissions
- Log denials only: Permission grants are not logged
- Roles are fixed (owner, manager, sales_rep); the role table is static
  (see permissions.roles) so no per-request permission queries are needed
"""

from ..extensions import db
from ..models import User, AuditEvent
from ..permissions import get_role_permissions
from homebake.time_utils import utcnow


class PermissionDeniedError(Exception):
    """Raised when user lacks required permission."""
    pass


def log_audit_event(
    actor_user_id: int | None,
    event_type: str,
    success: bool,
    target_user_id: int | None = None,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    details: dict | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    commit: bool = True,
) -> AuditEvent:
    """
    Append an event to the audit trail.

    event_type examples:
    - PERMISSION_DENIED
    - LOGIN_FAILED
    - USER_CREATED
    - ROLE_CHANGED
    - USER_DEACTIVATED / USER_REACTIVATED / USER_DELETED
    - INVITE_CREATED / INVITE_REVOKED

    Pass commit=False to write the event in the caller's transaction.
    """
    event = AuditEvent(
        actor_user_id=actor_user_id,
        target_user_id=target_user_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        details=details,
        ip_address=ip_address,
        user_agent=(user_agent or "")[:512] or None,
        occurred_at=utcnow()
    )

    db.session.add(event)
    if commit:
        db.session.commit()

    return event


def get_user_permissions(user_id: int) -> set[str]:
    """
    Get all permission codes for a user.

    Inactive or missing users have no permissions.
    """
    user = db.session.get(User, user_id)
    if not user or not user.is_active:
        return set()
    return get_role_permissions(user.role)


def user_has_permission(user_id: int, permission_code: str) -> bool:
    return permission_code in get_user_permissions(user_id)


def require_permission(
    user_id: int,
    permission_code: str,
    resource: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    """
    Require user to have permission, raise PermissionDeniedError if not.

    Denials are logged to audit_events as PERMISSION_DENIED.

    Usage:
        require_permission(user.id, "MANAGE_BATCHES", resource="/api/batches")
    """
    if not user_has_permission(user_id, permission_code):
        log_audit_event(
            actor_user_id=user_id,
            event_type="PERMISSION_DENIED",
            success=False,
            resource=resource,
            action=permission_code,
            reason=f"Missing permission: {permission_code}",
            ip_address=ip_address,
            user_agent=user_agent,
        )
        raise PermissionDeniedError(f"Permission denied: {permission_code}")


def list_audit_events(
    event_type: str | None = None,
    actor_user_id: int | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[AuditEvent], int]:
    """Newest first. Returns (events, total)."""
    query = db.session.query(AuditEvent)
    if event_type:
        query = query.filter(AuditEvent.event_type == event_type)
    if actor_user_id is not None:
        query = query.filter(AuditEvent.actor_user_id == actor_user_id)

    total = query.count()
    events = (
        query.order_by(AuditEvent.occurred_at.desc(), AuditEvent.id.desc())
        .offset(max(offset, 0))
        .limit(max(1, min(limit, 500)))
        .all()
    )
    return events, total
