from __future__ import annotations

from ..extensions import db
from homebake.time_utils import to_utc_z, utcnow


class BreadType(db.Model):
    """
    A product the bakery produces and sells (e.g. "Family Loaf, 800g").

    Prices are stored in minor currency units (kobo for NGN).
    Bread types with history are deactivated rather than deleted.
    """
    __tablename__ = "bread_types"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, unique=True, index=True)
    size = db.Column(db.String(50), nullable=True)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "size": self.size,
            "unit_price_cents": self.unit_price_cents,
            "is_active": self.is_active,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
