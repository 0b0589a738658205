# Overview: Pytest coverage for Rokar upload parsing, staging and upsert.

"""
Rokar Import Tests

Verifies:
- Sheet layout: banner row ignored, header row 2, blank-date rows skipped
- Conflict policy: skip by default, full replace with overwrite
- A failing row never aborts the batch
- Preview, staged row and committed entry carry the same values
- A batch cannot be committed twice or without a store
"""

import pytest

from retailops.extensions import db
from retailops.models import RokarEntry, RokarImportRow, ledger_key
from retailops.services import rokar_import_service
from retailops.services.rokar_import_schema import EXPENSE_CATEGORIES, HEADERS
from retailops.services.rokar_import_service import LedgerImportError

from conftest import LEDGER_HEADER_ROW, build_workbook, ledger_row


def three_row_sheet():
    """Two dates, the first repeated on the third row."""
    return build_workbook([
        ledger_row(Date="05/01/2024", **{HEADERS["total_sale"]: 1000}),
        ledger_row(Date="06/01/2024", **{HEADERS["total_sale"]: 2000}),
        ledger_row(Date="05/01/2024", **{HEADERS["total_sale"]: 3000}),
    ])


class TestParsing:

    def test_parse_xlsx(self):
        parsed = rokar_import_service.parse_ledger_file(three_row_sheet(), "march.xlsx")
        assert parsed.file_format == "XLSX"
        assert parsed.missing_headers == []
        assert [n for n, _ in parsed.rows] == [3, 4, 5]
        assert parsed.rows[0][1]["date"] == "2024-01-05"

    def test_blank_and_total_rows_are_skipped(self):
        data = build_workbook([
            ledger_row(Date="05/01/2024"),
            ledger_row(**{HEADERS["total_sale"]: 99999}),
            [None] * len(LEDGER_HEADER_ROW),
            ledger_row(Date="07/01/2024"),
        ])
        parsed = rokar_import_service.parse_ledger_file(data, "march.xlsx")
        assert [n for n, _ in parsed.rows] == [3, 6]
        assert parsed.skipped_blank == 2

    def test_sheet_without_data_rows_is_empty(self):
        data = build_workbook([])
        with pytest.raises(LedgerImportError, match="Sheet seems empty"):
            rokar_import_service.parse_ledger_file(data, "empty.xlsx")

    def test_parse_csv(self):
        lines = [
            "ROKAR MARCH",
            "Date,TOTAL SALE,WATER,TEA",
            '05/01/2024,"1,500",10,20',
            ",,,",
        ]
        data = "\n".join(lines).encode("utf-8-sig")
        parsed = rokar_import_service.parse_ledger_file(data, "march.csv")
        assert parsed.file_format == "CSV"
        assert len(parsed.rows) == 1
        row = parsed.rows[0][1]
        assert row["total_sale"] == 1500
        assert row["expense_total"] == 30
        assert HEADERS["opening_balance"] in parsed.missing_headers

    def test_unsupported_extension(self):
        with pytest.raises(LedgerImportError, match="Unsupported file format"):
            rokar_import_service.parse_ledger_file(b"data", "ledger.pdf")

    def test_corrupt_workbook(self):
        with pytest.raises(LedgerImportError, match="Could not read XLSX"):
            rokar_import_service.parse_ledger_file(b"not a zip file", "ledger.xlsx")

    def test_preview_is_limited(self):
        rows = [ledger_row(Date=f"{day:02d}/01/2024") for day in range(1, 8)]
        parsed = rokar_import_service.parse_ledger_file(build_workbook(rows), "jan.xlsx")
        assert len(parsed.preview(5)) == 5
        assert parsed.preview(0) == []


class TestCommitBatch:

    def stage(self, admin, data=None, filename="march.xlsx"):
        batch, preview = rokar_import_service.stage_upload(
            data=data or three_row_sheet(),
            filename=filename,
            created_by_user_id=admin.id,
        )
        return batch, preview

    def test_stage_records_rows_without_touching_ledger(self, db_session, admin):
        batch, preview = self.stage(admin)
        assert batch.status == "PARSED"
        assert batch.total_rows == 3
        assert len(preview) == 3
        assert db_session.query(RokarImportRow).filter_by(batch_id=batch.id, outcome="PENDING").count() == 3
        assert db_session.query(RokarEntry).count() == 0

    def test_duplicates_skipped_without_overwrite(self, db_session, admin, store_a):
        batch, _ = self.stage(admin)
        batch = rokar_import_service.commit_batch(
            batch_id=batch.id, store_id=store_a.id, overwrite=False, imported_by=admin.email,
        )
        assert batch.summary() == {"inserted": 2, "overwritten": 0, "skipped": 1, "errors": 0}
        assert batch.status == "COMPLETED"

        entry = db_session.get(RokarEntry, ledger_key(store_a.id, "2024-01-05"))
        assert entry.total_sale == 1000
        assert entry.source == "IMPORT"
        assert entry.imported_by == admin.email
        assert entry.store_name == store_a.name

    def test_duplicates_overwritten_with_overwrite(self, db_session, admin, store_a):
        batch, _ = self.stage(admin)
        batch = rokar_import_service.commit_batch(
            batch_id=batch.id, store_id=store_a.id, overwrite=True, imported_by=admin.email,
        )
        assert batch.summary() == {"inserted": 2, "overwritten": 1, "skipped": 0, "errors": 0}

        entry = db_session.get(RokarEntry, ledger_key(store_a.id, "2024-01-05"))
        assert entry.total_sale == 3000
        assert entry.created_at is None
        assert entry.updated_at is not None

    def test_reimport_is_idempotent_without_overwrite(self, db_session, admin, store_a):
        first, _ = self.stage(admin)
        rokar_import_service.commit_batch(batch_id=first.id, store_id=store_a.id)

        second, _ = self.stage(admin)
        second = rokar_import_service.commit_batch(batch_id=second.id, store_id=store_a.id)
        assert second.summary() == {"inserted": 0, "overwritten": 0, "skipped": 3, "errors": 0}
        assert db_session.query(RokarEntry).count() == 2

    def test_overwrite_replaces_manual_fields(self, db_session, admin, store_a):
        key = ledger_key(store_a.id, "2024-01-05")
        db_session.add(RokarEntry(
            id=key, store_id=store_a.id, date="2024-01-05",
            total_sale=1, entered_by="manager@retailops.test", notes="counted twice",
        ))
        db_session.commit()

        batch, _ = self.stage(admin, data=build_workbook([ledger_row(Date="05/01/2024")]))
        rokar_import_service.commit_batch(batch_id=batch.id, store_id=store_a.id, overwrite=True)

        entry = db_session.get(RokarEntry, key)
        assert entry.total_sale == 0
        assert entry.entered_by is None
        assert entry.notes is None

    def test_commit_requires_store(self, db_session, admin):
        batch, _ = self.stage(admin)
        with pytest.raises(LedgerImportError, match="Select a store before importing"):
            rokar_import_service.commit_batch(batch_id=batch.id, store_id=None)
        assert db_session.query(RokarEntry).count() == 0

    def test_commit_unknown_store(self, db_session, admin):
        batch, _ = self.stage(admin)
        with pytest.raises(LedgerImportError, match="Store not found"):
            rokar_import_service.commit_batch(batch_id=batch.id, store_id=9999)

    def test_commit_twice_is_refused(self, db_session, admin, store_a):
        batch, _ = self.stage(admin)
        rokar_import_service.commit_batch(batch_id=batch.id, store_id=store_a.id)
        with pytest.raises(LedgerImportError, match="already committed"):
            rokar_import_service.commit_batch(batch_id=batch.id, store_id=store_a.id)

    def test_unknown_batch(self, db_session):
        with pytest.raises(LedgerImportError, match="Import batch not found"):
            rokar_import_service.get_batch(12345)

    def test_committed_entry_matches_preview(self, db_session, admin, store_a):
        labels = [label for key, label in HEADERS.items() if key != "date"] + list(EXPENSE_CATEGORIES)
        amounts = {label: round(1000 + index * 37.13, 2) for index, label in enumerate(labels, start=1)}
        data = build_workbook([ledger_row(Date="05/01/2024", **amounts)])

        batch, preview = self.stage(admin, data=data)
        parsed = rokar_import_service.parse_ledger_file(data, "march.xlsx")
        assert preview[0] == parsed.rows[0][1]
        assert preview[0]["date"] == "2024-01-05"
        assert preview[0]["total_sale"] == amounts[HEADERS["total_sale"]]
        assert preview[0]["payments"]["gpay"] == amounts[HEADERS["gpay"]]
        assert preview[0]["expense_breakup"]["TRANSPORT"] == amounts["TRANSPORT"]
        assert preview[0]["expense_total"] == amounts[HEADERS["total_expense"]]
        assert preview[0]["staff_salary_total"] == amounts[HEADERS["total_salary"]]

        staged = db_session.query(RokarImportRow).filter_by(batch_id=batch.id).one()
        assert staged.normalized_data == preview[0]

        rokar_import_service.commit_batch(batch_id=batch.id, store_id=store_a.id, imported_by=admin.email)
        db_session.expire_all()
        entry = db_session.get(RokarEntry, ledger_key(store_a.id, "2024-01-05"))
        assert entry.ledger_dict() == preview[0]

    def test_row_outcomes_recorded(self, db_session, admin, store_a):
        batch, _ = self.stage(admin)
        rokar_import_service.commit_batch(batch_id=batch.id, store_id=store_a.id)
        outcomes = [
            (row.row_number, row.outcome)
            for row in db_session.query(RokarImportRow).filter_by(batch_id=batch.id).order_by(RokarImportRow.row_number)
        ]
        assert outcomes == [(3, "INSERTED"), (4, "INSERTED"), (5, "SKIPPED")]


class TestUpsertRows:

    def test_failing_row_is_counted_and_batch_continues(self, db_session, store_a):
        rows = [
            {"date": "2024-01-05", "total_sale": 10},
            {"date": "", "total_sale": 20},
            {"date": "2024-01-06", "total_sale": 30},
        ]
        summary = rokar_import_service.upsert_rows(store_id=store_a.id, rows=rows, imported_by="cli")
        assert summary == {"inserted": 2, "overwritten": 0, "skipped": 0, "errors": 1}
        assert db_session.query(RokarEntry).count() == 2

    def test_unparsed_date_text_becomes_part_of_key(self, db_session, store_a):
        summary = rokar_import_service.upsert_rows(store_id=store_a.id, rows=[{"date": "TOTAL"}])
        assert summary["inserted"] == 1
        assert db.session.get(RokarEntry, ledger_key(store_a.id, "TOTAL")) is not None

    def test_requires_store(self, db_session):
        with pytest.raises(LedgerImportError, match="Select a store"):
            rokar_import_service.upsert_rows(store_id=None, rows=[{"date": "2024-01-05"}])

    def test_unattributed_import_is_marked_unknown(self, db_session, admin, store_a):
        rokar_import_service.upsert_rows(store_id=store_a.id, rows=[{"date": "2024-01-05"}], imported_by="  ")
        assert db.session.get(RokarEntry, ledger_key(store_a.id, "2024-01-05")).imported_by == "unknown"

        batch, _ = rokar_import_service.stage_upload(
            data=three_row_sheet(), filename="march.xlsx", created_by_user_id=admin.id,
        )
        rokar_import_service.commit_batch(batch_id=batch.id, store_id=store_a.id, overwrite=True)
        assert db.session.get(RokarEntry, ledger_key(store_a.id, "2024-01-06")).imported_by == "unknown"

    def test_long_date_text_is_kept_up_to_column_width(self, db_session, store_a):
        kept = "NOTE " * 50
        rows = [{"date": kept}, {"date": "X" * (RokarEntry.DATE_MAX_LENGTH + 1)}]
        summary = rokar_import_service.upsert_rows(store_id=store_a.id, rows=rows)
        assert summary == {"inserted": 1, "overwritten": 0, "skipped": 0, "errors": 1}
        assert db.session.get(RokarEntry, ledger_key(store_a.id, kept.strip())) is not None
