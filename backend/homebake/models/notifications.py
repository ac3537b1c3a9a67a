from __future__ import annotations

from ..extensions import db
from homebake.time_utils import to_utc_z, utcnow


class PushSubscription(db.Model):
    """
    A user's browser push subscription and notification preference.

    One row per user. endpoint/keys are cleared when the push service
    reports the subscription gone (HTTP 404/410).
    """
    __tablename__ = "push_subscriptions"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    enabled = db.Column(db.Boolean, nullable=False, default=True, index=True)
    endpoint = db.Column(db.Text, nullable=True)
    p256dh_key = db.Column(db.String(255), nullable=True)
    auth_key = db.Column(db.String(255), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", backref=db.backref("push_subscription", uselist=False, cascade="all, delete-orphan"))

    @property
    def is_deliverable(self) -> bool:
        return bool(self.enabled and self.endpoint and self.p256dh_key and self.auth_key)

    def subscription_info(self) -> dict:
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh_key, "auth": self.auth_key},
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "enabled": self.enabled,
            "has_subscription": bool(self.endpoint),
            "user_agent": self.user_agent,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class NotificationAttempt(db.Model):
    """Delivery outcome of one push message to one recipient, for monitoring."""
    __tablename__ = "notification_attempts"
    __table_args__ = (
        db.Index("ix_notification_attempts_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    activity_type = db.Column(db.String(32), nullable=False)
    recipient_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # success, failed
    status = db.Column(db.String(16), nullable=False)
    status_code = db.Column(db.Integer, nullable=True)
    error = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "activity_type": self.activity_type,
            "recipient_user_id": self.recipient_user_id,
            "status": self.status,
            "status_code": self.status_code,
            "error": self.error,
            "created_at": to_utc_z(self.created_at),
        }
