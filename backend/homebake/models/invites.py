from __future__ import annotations

from ..extensions import db
from homebake.time_utils import to_utc_z, utcnow


class QRInvite(db.Model):
    """
    Time-limited signup token, rendered as a QR code for onboarding staff.

    LIFECYCLE:
    - Created by an owner for role manager or sales_rep
    - Valid while is_used is False and expires_at is in the future
    - Redeemed exactly once at signup (is_used=True, used_by_user_id set)
    """
    __tablename__ = "qr_invites"
    __table_args__ = (
        db.Index("ix_qr_invites_token_used_expires", "token", "is_used", "expires_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(16), nullable=False, unique=True, index=True)
    role = db.Column(db.String(16), nullable=False)

    is_used = db.Column(db.Boolean, nullable=False, default=False, index=True)
    used_at = db.Column(db.DateTime(timezone=True), nullable=True)
    used_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    created_by = db.relationship("User", foreign_keys=[created_by_user_id])
    used_by = db.relationship("User", foreign_keys=[used_by_user_id])

    def is_valid(self, now) -> bool:
        return not self.is_used and self.expires_at > now

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "token": self.token,
            "role": self.role,
            "is_used": self.is_used,
            "used_at": to_utc_z(self.used_at) if self.used_at else None,
            "used_by_user_id": self.used_by_user_id,
            "expires_at": to_utc_z(self.expires_at),
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
