from __future__ import annotations

from ..extensions import db
from homebake.time_utils import to_utc_z, utcnow


class SalesLog(db.Model):
    """
    A sale of one bread type recorded by a sales representative.

    unit_price_cents is the actual price sold at (defaults to the bread
    type price). discount_cents is an absolute amount off the line, so
    revenue = quantity * unit_price_cents - discount_cents.
    """
    __tablename__ = "sales_logs"
    __table_args__ = (
        db.Index("ix_sales_logs_shift_created", "shift", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bread_type_id = db.Column(db.Integer, db.ForeignKey("bread_types.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    returned = db.Column(db.Boolean, nullable=False, default=False)
    leftovers = db.Column(db.Integer, nullable=False, default=0)
    shift = db.Column(db.String(16), nullable=False, index=True)

    recorded_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    bread_type = db.relationship("BreadType")
    recorded_by = db.relationship("User")

    @property
    def revenue_cents(self) -> int:
        return self.quantity * self.unit_price_cents - (self.discount_cents or 0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bread_type_id": self.bread_type_id,
            "bread_type_name": self.bread_type.name if self.bread_type else None,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "discount_cents": self.discount_cents,
            "revenue_cents": self.revenue_cents,
            "returned": self.returned,
            "leftovers": self.leftovers,
            "shift": self.shift,
            "recorded_by_user_id": self.recorded_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }


class RemainingBread(db.Model):
    """Unsold bread counted by a sales rep at the end of a shift."""
    __tablename__ = "remaining_bread"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    bread_type_id = db.Column(db.Integer, db.ForeignKey("bread_types.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False, default=0)
    shift = db.Column(db.String(16), nullable=False, index=True)
    recorded_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    bread_type = db.relationship("BreadType")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bread_type_id": self.bread_type_id,
            "bread_type_name": self.bread_type.name if self.bread_type else None,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_value_cents": self.quantity * self.unit_price_cents,
            "shift": self.shift,
            "recorded_by_user_id": self.recorded_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }


class ShiftFeedback(db.Model):
    __tablename__ = "shift_feedback"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    shift = db.Column(db.String(16), nullable=False)
    note = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user.name if self.user else None,
            "shift": self.shift,
            "note": self.note,
            "created_at": to_utc_z(self.created_at),
        }


class ShiftReport(db.Model):
    """
    End-of-shift report submitted by a sales rep.

    One report per (user, shift, report_date); submitting again replaces
    the snapshot. sales_data and remaining_breads are taken at submission
    time and are not recomputed when logs change later.
    """
    __tablename__ = "shift_reports"
    __table_args__ = (
        db.UniqueConstraint("user_id", "shift", "report_date", name="uq_shift_reports_user_shift_date"),
        db.Index("ix_shift_reports_date_shift", "report_date", "shift"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    shift = db.Column(db.String(16), nullable=False)
    report_date = db.Column(db.Date, nullable=False)

    total_revenue_cents = db.Column(db.Integer, nullable=False, default=0)
    total_items_sold = db.Column(db.Integer, nullable=False, default=0)
    total_remaining = db.Column(db.Integer, nullable=False, default=0)
    feedback = db.Column(db.Text, nullable=True)

    sales_data = db.Column(db.JSON, nullable=False, default=list)
    remaining_breads = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user.name if self.user else None,
            "shift": self.shift,
            "report_date": self.report_date.isoformat(),
            "total_revenue_cents": self.total_revenue_cents,
            "total_items_sold": self.total_items_sold,
            "total_remaining": self.total_remaining,
            "feedback": self.feedback,
            "sales_data": self.sales_data or [],
            "remaining_breads": self.remaining_breads or [],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
