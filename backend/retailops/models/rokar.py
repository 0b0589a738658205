from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


def ledger_key(store_id, date: str) -> str:
    """Deterministic Rokar row id: one row per (store, calendar date)."""
    return f"{store_id}_{date}"


class RokarEntry(db.Model):
    """
    Daily cash ledger ("Rokar") row for a store.

    The primary key is `{store_id}_{date}`, so a store can hold at most one
    row per date. Rows are created by bulk import or manual entry and only
    change through a deliberate overwrite, which replaces every field.
    """
    __tablename__ = "rokar_entries"
    __table_args__ = (
        db.UniqueConstraint("store_id", "date", name="uq_rokar_store_date"),
        db.Index("ix_rokar_store_date", "store_id", "date"),
    )

    # Scalar money columns, in the order they appear on the sheet
    AMOUNT_FIELDS = (
        "opening_balance",
        "closing_balance",
        "computer_sale",
        "manual_sale",
        "manual_billed",
        "total_sale",
        "customer_dues_paid",
        "dues_given",
        "total_cash_out",
        "expense_total",
        "staff_salary_total",
    )
    PAYMENT_FIELDS = ("paytm", "phonepe", "gpay", "bank_deposit", "home")

    # Unparsed legacy date text is kept up to DATE_MAX_LENGTH characters
    DATE_MAX_LENGTH = 255

    id = db.Column(db.String(288), primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)

    # ISO YYYY-MM-DD; legacy imports may carry unparsed text
    date = db.Column(db.String(DATE_MAX_LENGTH), nullable=False, index=True)

    opening_balance = db.Column(db.Float, nullable=False, default=0)
    closing_balance = db.Column(db.Float, nullable=False, default=0)

    computer_sale = db.Column(db.Float, nullable=False, default=0)
    manual_sale = db.Column(db.Float, nullable=False, default=0)
    manual_billed = db.Column(db.Float, nullable=False, default=0)
    total_sale = db.Column(db.Float, nullable=False, default=0)
    customer_dues_paid = db.Column(db.Float, nullable=False, default=0)

    paytm = db.Column(db.Float, nullable=False, default=0)
    phonepe = db.Column(db.Float, nullable=False, default=0)
    gpay = db.Column(db.Float, nullable=False, default=0)
    bank_deposit = db.Column(db.Float, nullable=False, default=0)
    home = db.Column(db.Float, nullable=False, default=0)

    dues_given = db.Column(db.Float, nullable=False, default=0)
    total_cash_out = db.Column(db.Float, nullable=False, default=0)

    # Fixed expense category name -> amount
    expense_breakup = db.Column(db.JSON, nullable=False, default=dict)
    expense_total = db.Column(db.Float, nullable=False, default=0)
    staff_salary_total = db.Column(db.Float, nullable=False, default=0)

    # Store snapshot at write time
    store_name = db.Column(db.String(120), nullable=True)
    brand = db.Column(db.String(120), nullable=True)
    city = db.Column(db.String(120), nullable=True)

    # Provenance: IMPORT or MANUAL
    source = db.Column(db.String(16), nullable=False, default="MANUAL")
    import_batch_id = db.Column(db.Integer, db.ForeignKey("rokar_import_batches.id"), nullable=True, index=True)
    imported_by = db.Column(db.String(255), nullable=True)
    imported_at = db.Column(db.DateTime(timezone=True), nullable=True)
    entered_by = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    store = db.relationship("Store", backref=db.backref("rokar_entries", lazy=True))

    def ledger_dict(self) -> dict:
        """The normalized ledger shape (same keys as an import preview row)."""
        return {
            "date": self.date,
            "opening_balance": self.opening_balance,
            "closing_balance": self.closing_balance,
            "computer_sale": self.computer_sale,
            "manual_sale": self.manual_sale,
            "manual_billed": self.manual_billed,
            "total_sale": self.total_sale,
            "customer_dues_paid": self.customer_dues_paid,
            "payments": {name: getattr(self, name) for name in self.PAYMENT_FIELDS},
            "dues_given": self.dues_given,
            "total_cash_out": self.total_cash_out,
            "expense_breakup": dict(self.expense_breakup or {}),
            "expense_total": self.expense_total,
            "staff_salary_total": self.staff_salary_total,
        }

    def to_dict(self) -> dict:
        data = self.ledger_dict()
        data.update({
            "id": self.id,
            "store_id": self.store_id,
            "store_name": self.store_name,
            "brand": self.brand,
            "city": self.city,
            "source": self.source,
            "import_batch_id": self.import_batch_id,
            "imported_by": self.imported_by,
            "imported_at": to_utc_z(self.imported_at) if self.imported_at else None,
            "entered_by": self.entered_by,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at) if self.created_at else None,
            "updated_at": to_utc_z(self.updated_at) if self.updated_at else None,
        })
        return data
