# Overview: Header layout and row normalization for Rokar spreadsheet uploads.

from __future__ import annotations

import math
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Sequence

from openpyxl.utils.datetime import WINDOWS_EPOCH, from_excel


# Exact header labels as they appear on row 2 of the sheet (after trimming).
# Some carry embedded newlines and doubled spaces from the source template.
HEADERS = {
    "date": "Date",
    "opening_balance": "Opening\n Balance",
    "closing_balance": "Closing\n Balance",
    "computer_sale": "COMPUTER  Sale",
    "manual_sale": "MANUAL SALE",
    "manual_billed": "MANUAL BILLED",
    "total_sale": "TOTAL SALE",
    "customer_dues_paid": "CUSTOMER DUES PAID",
    "paytm": "PAYTM SALE",
    "phonepe": "PHONEPE",
    "gpay": "GPAY",
    "bank_deposit": "BANK DEPOSIT",
    "home": "HOME",
    "dues_given": "DUES GIVEN",
    "total_cash_out": "Ttotal cash out",
    "total_expense": "TOTAL EXPENSE",
    "total_salary": "TOTAL SALARY",
}

EXPENSE_CATEGORIES = (
    "WATER",
    "TEA",
    "DISCOUNT",
    "ALTERATION",
    "STAFF LUNCH",
    "GENERATOR",
    "SHOP RENT",
    "ELECTRICITY",
    "HOME EXPENSE",
    "PETROL",
    "SUNDAY",
    "CASH RETURN",
    "TRANSPORT",
)

# Per-staff salary columns, summed only when TOTAL SALARY is blank.
STAFF_SALARY_COLUMNS = tuple(f"STAFF {i}" for i in range(1, 8))

PAYMENT_KEYS = ("paytm", "phonepe", "gpay", "bank_deposit", "home")

_SCALAR_KEYS = (
    "opening_balance",
    "closing_balance",
    "computer_sale",
    "manual_sale",
    "manual_billed",
    "total_sale",
    "customer_dues_paid",
)

# Thousands separators, whitespace and currency symbols
_NUMBER_NOISE = re.compile(r"[,\s₹$€£]")
_DAY_MONTH_YEAR = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{2,4})$")
_YEAR_MONTH_DAY = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")


def clean_number(value: Any):
    """
    Parse a monetary cell.

    Blank, non-numeric and non-finite values are 0. Integral results come
    back as int so previews keep the sheet's own formatting.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    else:
        text = _NUMBER_NOISE.sub("", str(value))
        if not text:
            return 0
        try:
            number = float(text)
        except ValueError:
            return 0
    if not math.isfinite(number):
        return 0
    return int(number) if number.is_integer() else number


def _ymd(year: int, month: int, day: int) -> str | None:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def to_iso_date(value: Any, epoch: datetime | None = None) -> str:
    """
    Convert a date cell to YYYY-MM-DD.

    Accepts spreadsheet serial numbers (relative to the workbook epoch),
    native date/datetime values and D/M/YYYY or D-M-YYYY text, where a
    2-digit year means 20YY. Anything else comes back as the trimmed
    original text; downstream keys then carry that text unchanged.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            converted = from_excel(value, epoch or WINDOWS_EPOCH)
        except (OverflowError, ValueError):
            converted = None
        if isinstance(converted, datetime):
            return converted.date().isoformat()
        return str(value).strip()

    text = str(value if value is not None else "").strip()

    match = _DAY_MONTH_YEAR.match(text)
    if match:
        day, month, year = match.groups()
        if len(year) == 2:
            year = "20" + year
        return _ymd(int(year), int(month), int(day)) or text

    match = _YEAR_MONTH_DAY.match(text)
    if match:
        year, month, day = match.groups()
        return _ymd(int(year), int(month), int(day)) or text

    return text


def build_header_index(header_row: Sequence[Any]) -> dict[str, int]:
    """Header label -> column index; the first occurrence of a label wins."""
    index: dict[str, int] = {}
    for position, label in enumerate(header_row or ()):
        text = str(label).strip() if label is not None else ""
        if text:
            index.setdefault(text, position)
    return index


def missing_headers(index: dict[str, int]) -> list[str]:
    expected = list(HEADERS.values()) + list(EXPENSE_CATEGORIES)
    return [label for label in expected if label not in index]


def _cell(row: Sequence[Any], index: dict[str, int], label: str) -> Any:
    position = index.get(label)
    if position is None or position >= len(row):
        return ""
    return row[position]


def _is_blank(value: Any) -> bool:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    return value is None or (isinstance(value, str) and not value.strip())


def normalize_row(row: Sequence[Any], index: dict[str, int], epoch: datetime | None = None) -> dict[str, Any] | None:
    """
    Turn one data row into the normalized ledger shape.

    Returns None when the row has no date (blank rows, totals, notes).
    A dated row whose amounts are all zero is still a valid row.
    """
    if not row:
        return None
    raw_date = _cell(row, index, HEADERS["date"])
    if _is_blank(raw_date):
        return None

    def number(key_or_label: str):
        return clean_number(_cell(row, index, HEADERS.get(key_or_label, key_or_label)))

    expense_breakup = {category: number(category) for category in EXPENSE_CATEGORIES}
    expense_parts = sum(expense_breakup.values())

    staff_salary_total = number("total_salary")
    if not staff_salary_total:
        staff_salary_total = sum(number(column) for column in STAFF_SALARY_COLUMNS)

    normalized: dict[str, Any] = {"date": to_iso_date(raw_date, epoch)}
    for key in _SCALAR_KEYS:
        normalized[key] = number(key)
    normalized["payments"] = {key: number(key) for key in PAYMENT_KEYS}
    normalized["dues_given"] = number("dues_given")
    normalized["total_cash_out"] = number("total_cash_out")
    normalized["expense_breakup"] = expense_breakup
    normalized["expense_total"] = number("total_expense") or expense_parts
    normalized["staff_salary_total"] = staff_salary_total
    return normalized
