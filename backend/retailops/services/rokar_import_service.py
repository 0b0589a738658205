# Overview: Service-layer operations for Rokar bulk imports; parse, stage, preview and upsert.

"""
Rokar Bulk Import

Upload flow:
1. parse: first worksheet, row 1 banner (ignored), row 2 headers, data below
2. stage: every normalized row is stored on a RokarImportBatch; the first
   IMPORT_PREVIEW_LIMIT rows are returned as a preview
3. commit: rows are upserted into the chosen store, one savepoint per row

CONFLICTS: a row whose `{store_id}_{date}` key already exists is skipped,
or fully replaced when overwrite is requested. A failing row is tallied as
an error and never aborts the batch.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

import xlrd
from flask import current_app
from openpyxl import load_workbook
from openpyxl.utils.datetime import MAC_EPOCH, WINDOWS_EPOCH

from ..extensions import db
from ..models import RokarEntry, RokarImportBatch, RokarImportRow, Store, ledger_key
from ..time_utils import utcnow
from .rokar_import_schema import (
    build_header_index,
    clean_number,
    missing_headers,
    normalize_row,
)


class LedgerImportError(ValueError):
    """Raised when an upload cannot be parsed or a batch cannot be committed."""


PREVIEW_LIMIT_DEFAULT = 50
PROGRESS_EVERY = 10

# Sheet rows before the first data row: banner, header
HEADER_ROW = 1
FIRST_DATA_ROW = 2

FILE_FORMATS = {
    "xlsx": "XLSX",
    "xlsm": "XLSX",
    "xls": "XLS",
    "csv": "CSV",
}

CSV_ENCODINGS = ("utf-8-sig", "utf-8", "latin-1")


@dataclass
class ParsedLedger:
    """Normalized rows of one upload, each paired with its 1-based sheet row number."""
    rows: list[tuple[int, dict[str, Any]]] = field(default_factory=list)
    missing_headers: list[str] = field(default_factory=list)
    skipped_blank: int = 0
    file_format: str | None = None

    def preview(self, limit: int = PREVIEW_LIMIT_DEFAULT) -> list[dict[str, Any]]:
        return [data for _, data in self.rows[:max(0, int(limit))]]


def file_format_for(filename: str | None) -> str:
    ext = (filename or "").rsplit(".", 1)[-1].lower() if "." in (filename or "") else ""
    file_format = FILE_FORMATS.get(ext)
    if not file_format:
        raise LedgerImportError("Unsupported file format; upload .xlsx, .xls or .csv")
    return file_format


def _read_xlsx(data: bytes) -> tuple[list[tuple], datetime]:
    wb = load_workbook(io.BytesIO(data), data_only=True)
    try:
        sheet = wb.worksheets[0]
        rows = [tuple(row) for row in sheet.iter_rows(values_only=True)]
        return rows, wb.epoch
    finally:
        wb.close()


def _read_xls(data: bytes) -> tuple[list[tuple], datetime]:
    book = xlrd.open_workbook(file_contents=data)
    sheet = book.sheet_by_index(0)
    rows = []
    for rx in range(sheet.nrows):
        row = []
        for cell in sheet.row(rx):
            if cell.ctype == xlrd.XL_CELL_DATE:
                row.append(xlrd.xldate_as_datetime(cell.value, book.datemode))
            elif cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
                row.append(None)
            else:
                row.append(cell.value)
        rows.append(tuple(row))
    return rows, (MAC_EPOCH if book.datemode == 1 else WINDOWS_EPOCH)


def _read_csv(data: bytes) -> tuple[list[tuple], datetime]:
    for encoding in CSV_ENCODINGS:
        try:
            content = data.decode(encoding)
            break
        except UnicodeDecodeError:
            continue
    else:
        content = data.decode("utf-8", errors="replace")

    reader = csv.reader(io.StringIO(content, newline=""))
    return [tuple(row) for row in reader], WINDOWS_EPOCH


_READERS = {
    "XLSX": _read_xlsx,
    "XLS": _read_xls,
    "CSV": _read_csv,
}


def read_rows(data: bytes, filename: str) -> tuple[list[tuple], datetime, str]:
    """Raw cell rows of the first worksheet, the workbook date epoch and the file format."""
    file_format = file_format_for(filename)
    try:
        rows, epoch = _READERS[file_format](data)
    except LedgerImportError:
        raise
    except Exception as exc:
        raise LedgerImportError(f"Could not read {file_format} file: {exc}") from exc
    return rows, epoch, file_format


def parse_rows(rows: list[tuple], epoch: datetime | None = None) -> ParsedLedger:
    """Normalize raw sheet rows (banner, header, data...) into ledger rows."""
    if len(rows) < FIRST_DATA_ROW + 1:
        raise LedgerImportError("Sheet seems empty")

    index = build_header_index(rows[HEADER_ROW])
    parsed = ParsedLedger(missing_headers=missing_headers(index))

    for offset, row in enumerate(rows[FIRST_DATA_ROW:]):
        normalized = normalize_row(row, index, epoch)
        if normalized is None:
            parsed.skipped_blank += 1
            continue
        parsed.rows.append((FIRST_DATA_ROW + offset + 1, normalized))
    return parsed


def parse_ledger_file(data: bytes, filename: str) -> ParsedLedger:
    rows, epoch, file_format = read_rows(data, filename)
    parsed = parse_rows(rows, epoch)
    parsed.file_format = file_format
    return parsed


def _preview_limit() -> int:
    return int(current_app.config.get("IMPORT_PREVIEW_LIMIT", PREVIEW_LIMIT_DEFAULT))


def stage_upload(*, data: bytes, filename: str, created_by_user_id: int) -> tuple[RokarImportBatch, list[dict]]:
    """
    Parse an upload and stage every normalized row.

    Returns (batch, preview rows). Nothing is written to the ledger here.
    """
    parsed = parse_ledger_file(data, filename)

    batch = RokarImportBatch(
        status="PARSED",
        source_file_name=filename,
        source_file_format=parsed.file_format,
        total_rows=len(parsed.rows),
        skipped_blank_rows=parsed.skipped_blank,
        missing_headers=parsed.missing_headers,
        created_by_user_id=created_by_user_id,
        created_at=utcnow(),
    )
    db.session.add(batch)
    db.session.flush()

    for row_number, normalized in parsed.rows:
        db.session.add(RokarImportRow(
            batch_id=batch.id,
            row_number=row_number,
            normalized_data=normalized,
            outcome="PENDING",
        ))

    db.session.commit()
    current_app.logger.info(
        "Staged Rokar import batch %s from %s: %d rows, %d blank skipped, %d headers missing",
        batch.id, filename, batch.total_rows, batch.skipped_blank_rows, len(batch.missing_headers or []),
    )
    return batch, parsed.preview(_preview_limit())


def get_batch(batch_id: int) -> RokarImportBatch:
    batch = db.session.get(RokarImportBatch, batch_id)
    if not batch:
        raise LedgerImportError("Import batch not found")
    return batch


def _entry_values(store: Store, data: dict[str, Any]) -> dict[str, Any]:
    """Every non-key column of a ledger row, taken from a normalized row."""
    payments = data.get("payments") or {}
    values = {name: clean_number(data.get(name)) for name in RokarEntry.AMOUNT_FIELDS}
    values.update({name: clean_number(payments.get(name)) for name in RokarEntry.PAYMENT_FIELDS})
    values["expense_breakup"] = {
        str(category): clean_number(amount)
        for category, amount in (data.get("expense_breakup") or {}).items()
    }
    values.update({
        "store_name": store.name,
        "brand": store.brand,
        "city": store.city,
        "entered_by": None,
        "notes": None,
    })
    return values


def _upsert_one(
    store: Store,
    data: dict[str, Any],
    *,
    overwrite: bool,
    imported_by: str | None,
    batch_id: int | None,
) -> tuple[str, str]:
    """Insert, replace or skip one row; returns (outcome, ledger key)."""
    date = str(data.get("date") if data.get("date") is not None else "").strip()
    if not date:
        raise LedgerImportError("Row has no date")
    if len(date) > RokarEntry.DATE_MAX_LENGTH:
        raise LedgerImportError(f"Date text longer than {RokarEntry.DATE_MAX_LENGTH} characters")

    key = ledger_key(store.id, date)
    now = utcnow()
    values = _entry_values(store, data)
    values.update({
        "source": "IMPORT",
        "import_batch_id": batch_id,
        "imported_by": imported_by,
        "imported_at": now,
    })

    entry = db.session.get(RokarEntry, key)
    if entry is None:
        entry = RokarEntry(id=key, store_id=store.id, date=date, created_at=now, updated_at=None, **values)
        db.session.add(entry)
        db.session.flush()
        return "INSERTED", key

    if not overwrite:
        return "SKIPPED", key

    # Full replace: anything not carried by the row is cleared
    for name, value in values.items():
        setattr(entry, name, value)
    entry.created_at = None
    entry.updated_at = now
    db.session.flush()
    return "OVERWRITTEN", key


_SUMMARY_KEYS = {
    "INSERTED": "inserted",
    "OVERWRITTEN": "overwritten",
    "SKIPPED": "skipped",
    "ERROR": "errors",
}


def _importer(imported_by: str | None) -> str:
    return (imported_by or "").strip() or "unknown"


def _get_store(store_id) -> Store:
    if store_id in (None, ""):
        raise LedgerImportError("Select a store before importing")
    store = db.session.get(Store, int(store_id))
    if not store:
        raise LedgerImportError("Store not found")
    return store


def upsert_rows(
    *,
    store_id: int,
    rows: Iterable[dict[str, Any]],
    overwrite: bool = False,
    imported_by: str | None = None,
) -> dict[str, int]:
    """
    Upsert already-normalized rows into a store without staging them.

    Returns {"inserted", "overwritten", "skipped", "errors"}.
    """
    store = _get_store(store_id)
    imported_by = _importer(imported_by)
    summary = {name: 0 for name in _SUMMARY_KEYS.values()}

    for index, data in enumerate(rows, start=1):
        nested = db.session.begin_nested()
        try:
            outcome, _ = _upsert_one(store, data, overwrite=overwrite, imported_by=imported_by, batch_id=None)
            nested.commit()
        except Exception:
            nested.rollback()
            current_app.logger.exception("Rokar row %d failed for store %s", index, store.id)
            outcome = "ERROR"
        summary[_SUMMARY_KEYS[outcome]] += 1

        if index % PROGRESS_EVERY == 0:
            current_app.logger.info("Rokar import progress: %d rows processed", index)

    db.session.commit()
    return summary


def commit_batch(
    *,
    batch_id: int,
    store_id: int | None,
    overwrite: bool = False,
    imported_by: str | None = None,
) -> RokarImportBatch:
    """
    Upsert every staged row of a batch into `store_id`.

    The store is checked before any write; a batch commits once.
    """
    batch = get_batch(batch_id)
    store = _get_store(store_id)
    imported_by = _importer(imported_by)
    if batch.status == "COMPLETED":
        raise LedgerImportError("Import batch already committed")

    batch.store_id = store.id
    batch.overwrite = bool(overwrite)
    current_app.logger.info(
        "Committing Rokar import batch %s into store %s (overwrite=%s, %d rows)",
        batch.id, store.id, batch.overwrite, batch.total_rows,
    )

    summary = {name: 0 for name in _SUMMARY_KEYS.values()}
    staged_rows = (
        db.session.query(RokarImportRow)
        .filter_by(batch_id=batch.id, outcome="PENDING")
        .order_by(RokarImportRow.row_number.asc(), RokarImportRow.id.asc())
        .all()
    )

    for index, row in enumerate(staged_rows, start=1):
        nested = db.session.begin_nested()
        try:
            outcome, key = _upsert_one(
                store,
                row.normalized_data or {},
                overwrite=batch.overwrite,
                imported_by=imported_by,
                batch_id=batch.id,
            )
            row.outcome = outcome
            row.ledger_id = key
            row.error_message = None
            row.processed_at = utcnow()
            nested.commit()
        except Exception as exc:
            nested.rollback()
            current_app.logger.exception("Rokar import batch %s row %s failed", batch.id, row.row_number)
            row.outcome = "ERROR"
            row.error_message = str(exc)
            row.processed_at = utcnow()
            outcome = "ERROR"
        summary[_SUMMARY_KEYS[outcome]] += 1

        if index % PROGRESS_EVERY == 0:
            current_app.logger.info(
                "Rokar import batch %s progress: %d/%d rows", batch.id, index, len(staged_rows),
            )

    batch.inserted_rows = summary["inserted"]
    batch.overwritten_rows = summary["overwritten"]
    batch.skipped_rows = summary["skipped"]
    batch.error_rows = summary["errors"]
    batch.status = "COMPLETED"
    batch.completed_at = utcnow()
    db.session.commit()

    current_app.logger.info("Rokar import batch %s finished: %s", batch.id, summary)
    return batch
