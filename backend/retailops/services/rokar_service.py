# Overview: Service-layer operations for manual Rokar (daily cash ledger) entries.

from __future__ import annotations

from datetime import timedelta
from typing import Any, Mapping

from ..extensions import db
from ..models import RokarEntry, Store, ledger_key
from ..permissions import Role
from ..time_utils import parse_ymd, utcnow
from . import access_service
from .permission_service import PermissionDeniedError
from .rokar_import_schema import EXPENSE_CATEGORIES, clean_number


class RokarError(ValueError):
    """Raised when a manual ledger entry is invalid."""


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def compute_closing_balance(entry: Mapping[str, Any]) -> float:
    """
    Closing = opening + total sale + customer dues paid
              - wallets (paytm, phonepe, gpay) - bank deposit - home
              - dues given - total cash out - expenses - staff salary
    """
    payments = entry.get("payments") or {}
    cash_in = (
        clean_number(entry.get("opening_balance"))
        + clean_number(entry.get("total_sale"))
        + clean_number(entry.get("customer_dues_paid"))
    )
    paid_out = sum(clean_number(payments.get(name)) for name in RokarEntry.PAYMENT_FIELDS)
    spent = (
        clean_number(entry.get("dues_given"))
        + clean_number(entry.get("total_cash_out"))
        + clean_number(entry.get("expense_total"))
        + clean_number(entry.get("staff_salary_total"))
    )
    return cash_in - paid_out - spent


def _require_date(value: Any) -> str:
    try:
        day = parse_ymd(value)
    except ValueError:
        raise RokarError("date must be YYYY-MM-DD")
    if day is None:
        raise RokarError("date is required")
    return day.isoformat()


def previous_closing_balance(store_id: int, date: str) -> float | None:
    """Closing balance of the store's entry for the day before `date`, if any."""
    day = parse_ymd(date)
    if day is None:
        return None
    previous = db.session.get(RokarEntry, ledger_key(store_id, (day - timedelta(days=1)).isoformat()))
    return previous.closing_balance if previous else None


def save_entry(*, profile, store_id: int, date: str, data: Mapping[str, Any]) -> RokarEntry:
    """
    Create or replace the manual ledger row for (store, date).

    Opening balance defaults to the previous day's closing; closing balance
    is derived from the day's flows unless declared. An existing row is a
    full replace and only ADMIN may replace one.
    """
    date = _require_date(date)
    store = db.session.get(Store, int(store_id)) if store_id not in (None, "") else None
    if not store:
        raise RokarError("Select a store")
    if not access_service.can_access_store(profile, store.id):
        raise PermissionDeniedError(f"No access to store {store.id}")

    key = ledger_key(store.id, date)
    entry = db.session.get(RokarEntry, key)
    if entry is not None and Role.parse(profile.role) is not Role.ADMIN:
        raise PermissionDeniedError("Entry exists. Ask ADMIN to edit.")

    payments = data.get("payments") or {}
    expense_breakup = {
        category: clean_number((data.get("expense_breakup") or {}).get(category))
        for category in EXPENSE_CATEGORIES
    }

    values: dict[str, Any] = {
        name: clean_number(data.get(name))
        for name in RokarEntry.AMOUNT_FIELDS
        if name not in ("opening_balance", "closing_balance", "expense_total")
    }
    values.update({name: clean_number(payments.get(name)) for name in RokarEntry.PAYMENT_FIELDS})
    values["expense_breakup"] = expense_breakup
    values["expense_total"] = clean_number(data.get("expense_total")) or sum(expense_breakup.values())

    if _is_blank(data.get("opening_balance")):
        values["opening_balance"] = previous_closing_balance(store.id, date) or 0
    else:
        values["opening_balance"] = clean_number(data.get("opening_balance"))

    if _is_blank(data.get("closing_balance")):
        values["closing_balance"] = compute_closing_balance(
            {**values, "payments": {name: values[name] for name in RokarEntry.PAYMENT_FIELDS}}
        )
    else:
        values["closing_balance"] = clean_number(data.get("closing_balance"))

    now = utcnow()
    values.update({
        "store_name": store.name,
        "brand": store.brand,
        "city": store.city,
        "source": "MANUAL",
        "import_batch_id": None,
        "imported_by": None,
        "imported_at": None,
        "entered_by": profile.email,
        "notes": (data.get("notes") or "").strip() or None,
    })

    if entry is None:
        entry = RokarEntry(id=key, store_id=store.id, date=date, created_at=now, **values)
        db.session.add(entry)
    else:
        for name, value in values.items():
            setattr(entry, name, value)
        entry.created_at = None
        entry.updated_at = now

    db.session.commit()
    return entry


def get_entry(profile, store_id: int, date: str) -> RokarEntry | None:
    if not access_service.can_access_store(profile, store_id):
        raise PermissionDeniedError(f"No access to store {store_id}")
    return db.session.get(RokarEntry, ledger_key(store_id, date))


def list_entries(
    profile,
    *,
    store_id: int | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    limit: int = 500,
) -> list[RokarEntry]:
    """Ledger rows visible to the profile, newest date first."""
    query = db.session.query(RokarEntry)
    query = access_service.filter_store_query(query, RokarEntry.store_id, profile)

    if store_id is not None:
        if not access_service.can_access_store(profile, store_id):
            raise PermissionDeniedError(f"No access to store {store_id}")
        query = query.filter(RokarEntry.store_id == store_id)
    if date_from:
        query = query.filter(RokarEntry.date >= _require_date(date_from))
    if date_to:
        query = query.filter(RokarEntry.date <= _require_date(date_to))

    return (
        query.order_by(RokarEntry.date.desc(), RokarEntry.store_id.asc())
        .limit(max(1, min(int(limit), 5000)))
        .all()
    )
