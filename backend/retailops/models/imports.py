from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class RokarImportBatch(db.Model):
    """
    One uploaded Rokar spreadsheet, staged between preview and commit.

    LIFECYCLE:
    1. PARSED: rows normalized and staged, preview returned to the operator
    2. COMPLETED: operator confirmed; every staged row has an outcome

    The target store and the overwrite choice are fixed at commit time.
    """
    __tablename__ = "rokar_import_batches"
    __table_args__ = (
        db.Index("ix_rokar_import_batches_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    status = db.Column(db.String(16), nullable=False, default="PARSED")

    source_file_name = db.Column(db.String(255), nullable=True)
    source_file_format = db.Column(db.String(16), nullable=True)  # XLSX, XLS, CSV

    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=True, index=True)
    overwrite = db.Column(db.Boolean, nullable=False, default=False)

    total_rows = db.Column(db.Integer, nullable=False, default=0)
    skipped_blank_rows = db.Column(db.Integer, nullable=False, default=0)
    missing_headers = db.Column(db.JSON, nullable=False, default=list)

    inserted_rows = db.Column(db.Integer, nullable=False, default=0)
    overwritten_rows = db.Column(db.Integer, nullable=False, default=0)
    skipped_rows = db.Column(db.Integer, nullable=False, default=0)
    error_rows = db.Column(db.Integer, nullable=False, default=0)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    store = db.relationship("Store")
    created_by = db.relationship("User", foreign_keys=[created_by_user_id])

    def summary(self) -> dict:
        return {
            "inserted": self.inserted_rows,
            "overwritten": self.overwritten_rows,
            "skipped": self.skipped_rows,
            "errors": self.error_rows,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "status": self.status,
            "source_file_name": self.source_file_name,
            "source_file_format": self.source_file_format,
            "store_id": self.store_id,
            "overwrite": self.overwrite,
            "total_rows": self.total_rows,
            "skipped_blank_rows": self.skipped_blank_rows,
            "missing_headers": list(self.missing_headers or []),
            "summary": self.summary(),
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "completed_at": to_utc_z(self.completed_at) if self.completed_at else None,
        }


class RokarImportRow(db.Model):
    """
    A normalized ledger row staged from an upload.

    outcome is PENDING until commit, then INSERTED, OVERWRITTEN, SKIPPED or ERROR.
    """
    __tablename__ = "rokar_import_rows"
    __table_args__ = (
        db.Index("ix_rokar_import_rows_batch_row", "batch_id", "row_number"),
        db.Index("ix_rokar_import_rows_batch_outcome", "batch_id", "outcome"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    batch_id = db.Column(db.Integer, db.ForeignKey("rokar_import_batches.id"), nullable=False, index=True)

    # 1-based sheet row number (row 1 is the banner, row 2 the header)
    row_number = db.Column(db.Integer, nullable=False)
    normalized_data = db.Column(db.JSON, nullable=False)

    outcome = db.Column(db.String(16), nullable=False, default="PENDING")
    ledger_id = db.Column(db.String(288), nullable=True)
    error_message = db.Column(db.Text, nullable=True)
    processed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    batch = db.relationship(
        "RokarImportBatch",
        backref=db.backref("rows", lazy=True, order_by="RokarImportRow.row_number"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "batch_id": self.batch_id,
            "row_number": self.row_number,
            "normalized_data": self.normalized_data,
            "outcome": self.outcome,
            "ledger_id": self.ledger_id,
            "error_message": self.error_message,
            "processed_at": to_utc_z(self.processed_at) if self.processed_at else None,
        }
