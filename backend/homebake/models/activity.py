from __future__ import annotations

from ..extensions import db
from homebake.time_utils import to_utc_z, utcnow


ACTIVITY_SALE = "sale"
ACTIVITY_BATCH = "batch"
ACTIVITY_REPORT = "report"
ACTIVITY_LOGIN = "login"
ACTIVITY_END_SHIFT = "end_shift"
ACTIVITY_CREATED = "created"
ACTIVITY_TYPES = (
    ACTIVITY_SALE,
    ACTIVITY_BATCH,
    ACTIVITY_REPORT,
    ACTIVITY_LOGIN,
    ACTIVITY_END_SHIFT,
    ACTIVITY_CREATED,
)


class Activity(db.Model):
    """
    Staff activity feed shown to owners.

    APPEND-ONLY: ids are monotonic, so clients page the feed with an
    id cursor (see GET /api/activities/feed).

    user_name and user_role are denormalized so the feed survives user
    deletion and role changes.
    """
    __tablename__ = "activities"
    __table_args__ = (
        db.Index("ix_activities_type_created", "activity_type", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    user_name = db.Column(db.String(100), nullable=False)
    user_role = db.Column(db.String(16), nullable=False)
    activity_type = db.Column(db.String(32), nullable=False, index=True)
    shift = db.Column(db.String(16), nullable=True)
    message = db.Column(db.Text, nullable=False)
    # "metadata" is reserved on declarative models
    details = db.Column("metadata", db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "user_role": self.user_role,
            "activity_type": self.activity_type,
            "shift": self.shift,
            "message": self.message,
            "metadata": self.details or {},
            "created_at": to_utc_z(self.created_at),
        }

    def to_change_dict(self) -> dict:
        """Just enough for a client to know which cached data went stale."""
        return {
            "id": self.id,
            "activity_type": self.activity_type,
            "shift": self.shift,
            "created_at": to_utc_z(self.created_at),
        }
