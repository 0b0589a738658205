from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


def attendance_key(store_id, date: str, staff_id) -> str:
    """Deterministic attendance id: one record per (store, date, staff)."""
    return f"{store_id}_{date}_{staff_id}"


class AttendanceRecord(db.Model):
    """
    A staff member's attendance at a store on a date.

    INVARIANT: day_fraction is 0 when not present, 0.5 for a HALF day and
    1.0 for a FULL day. check_in is captured by the server; the
    time_modified_* columns are only set when a privileged role edits it.
    """
    __tablename__ = "attendance_records"
    __table_args__ = (
        db.UniqueConstraint("store_id", "date", "staff_id", name="uq_attendance_store_date_staff"),
        db.Index("ix_attendance_store_date", "store_id", "date"),
    )

    id = db.Column(db.String(128), primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    date = db.Column(db.String(10), nullable=False, index=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    staff_name = db.Column(db.String(120), nullable=True)
    staff_email = db.Column(db.String(255), nullable=True)

    present = db.Column(db.Boolean, nullable=False, default=False)
    check_in = db.Column(db.String(5), nullable=True)   # HH:MM
    check_out = db.Column(db.String(5), nullable=True)  # HH:MM

    # FULL or HALF
    day_type = db.Column(db.String(8), nullable=False, default="FULL")
    day_fraction = db.Column(db.Float, nullable=False, default=0)

    original_check_in = db.Column(db.String(5), nullable=True)
    time_modified_by = db.Column(db.String(255), nullable=True)
    time_modified_at = db.Column(db.DateTime(timezone=True), nullable=True)
    time_modification_reason = db.Column(db.Text, nullable=True)

    # Who recorded the row and how: SELF, STORE or AUTO_ABSENT
    marked_by = db.Column(db.String(255), nullable=True)
    marked_as = db.Column(db.String(16), nullable=True)

    submitted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    store = db.relationship("Store", backref=db.backref("attendance_records", lazy=True))
    staff = db.relationship("User", backref=db.backref("attendance_records", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "date": self.date,
            "staff_id": self.staff_id,
            "staff_name": self.staff_name,
            "staff_email": self.staff_email,
            "present": self.present,
            "check_in": self.check_in,
            "check_out": self.check_out,
            "day_type": self.day_type,
            "day_fraction": self.day_fraction,
            "original_check_in": self.original_check_in,
            "time_modified_by": self.time_modified_by,
            "time_modified_at": to_utc_z(self.time_modified_at) if self.time_modified_at else None,
            "time_modification_reason": self.time_modification_reason,
            "marked_by": self.marked_by,
            "marked_as": self.marked_as,
            "submitted_at": to_utc_z(self.submitted_at) if self.submitted_at else None,
            "updated_at": to_utc_z(self.updated_at) if self.updated_at else None,
        }
