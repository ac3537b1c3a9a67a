from __future__ import annotations

from ..extensions import db
from homebake.time_utils import to_utc_z, utcnow


BATCH_ACTIVE = "active"
BATCH_COMPLETED = "completed"
BATCH_CANCELLED = "cancelled"
BATCH_STATUSES = (BATCH_ACTIVE, BATCH_COMPLETED, BATCH_CANCELLED)


class Batch(db.Model):
    """
    A production run of one bread type during a shift.

    LIFECYCLE:
    - active: baking in progress
    - completed: actual_quantity final, end_time set, production log written
    - cancelled: end_time set, never counted as produced

    batch_number is a zero-padded sequence ("001", "002", ...) scoped to
    (bread_type_id, shift); the unique constraint guards concurrent creators.
    """
    __tablename__ = "batches"
    __table_args__ = (
        db.UniqueConstraint("bread_type_id", "batch_number", "shift", name="uq_batches_bread_number_shift"),
        db.Index("ix_batches_bread_type_shift", "bread_type_id", "shift"),
        db.Index("ix_batches_shift_created", "shift", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bread_type_id = db.Column(db.Integer, db.ForeignKey("bread_types.id"), nullable=False, index=True)
    batch_number = db.Column(db.String(16), nullable=False)
    shift = db.Column(db.String(16), nullable=False, index=True)

    start_time = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    end_time = db.Column(db.DateTime(timezone=True), nullable=True)

    target_quantity = db.Column(db.Integer, nullable=True)
    actual_quantity = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default=BATCH_ACTIVE, index=True)
    notes = db.Column(db.Text, nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    bread_type = db.relationship("BreadType", backref=db.backref("batches", lazy=True))
    created_by = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bread_type_id": self.bread_type_id,
            "bread_type_name": self.bread_type.name if self.bread_type else None,
            "batch_number": self.batch_number,
            "shift": self.shift,
            "start_time": to_utc_z(self.start_time),
            "end_time": to_utc_z(self.end_time) if self.end_time else None,
            "target_quantity": self.target_quantity,
            "actual_quantity": self.actual_quantity,
            "status": self.status,
            "notes": self.notes,
            "created_by_user_id": self.created_by_user_id,
            "created_by_name": self.created_by.name if self.created_by else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductionLog(db.Model):
    """
    Quantity of a bread type produced during a shift.

    Written directly by managers or automatically when a batch completes
    (batch_id set). Inventory "produced" totals are summed from this table.
    """
    __tablename__ = "production_logs"
    __table_args__ = (
        db.Index("ix_production_logs_shift_created", "shift", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bread_type_id = db.Column(db.Integer, db.ForeignKey("bread_types.id"), nullable=False, index=True)
    batch_id = db.Column(db.Integer, db.ForeignKey("batches.id", ondelete="SET NULL"), nullable=True, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    shift = db.Column(db.String(16), nullable=False, index=True)

    recorded_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    bread_type = db.relationship("BreadType")
    batch = db.relationship("Batch", backref=db.backref("production_logs", lazy=True))
    recorded_by = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bread_type_id": self.bread_type_id,
            "bread_type_name": self.bread_type.name if self.bread_type else None,
            "batch_id": self.batch_id,
            "quantity": self.quantity,
            "shift": self.shift,
            "recorded_by_user_id": self.recorded_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
