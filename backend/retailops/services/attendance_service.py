# Overview: Service-layer operations for attendance; store sheets, self check-in and time edits.

"""
Attendance

One record per (store, date, staff member), keyed `{store_id}_{date}_{staff_id}`.

RULES:
- Self check-in is for today only, once per day, with the server's clock
- Check-in edits are restricted to the attendanceTimeEdit role gate and
  keep the first recorded time plus who/when/why
- day_fraction: 0 when absent, 0.5 for HALF, 1.0 for FULL
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Iterable, Mapping

from sqlalchemy import and_, or_

from ..extensions import db
from ..models import AttendanceRecord, Store, User, UserStoreAccess, attendance_key
from ..time_utils import clock_hhmm, parse_ymd, today_ymd, utcnow
from . import access_service
from .permission_service import PermissionDeniedError


class AttendanceError(ValueError):
    """Raised when an attendance request is invalid."""


DAY_TYPES = ("FULL", "HALF")

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def day_fraction(present: bool, day_type: str | None) -> float:
    if not present:
        return 0.0
    return 0.5 if (day_type or "").upper() == "HALF" else 1.0


def _day_type(value: Any) -> str:
    day_type = str(value or "FULL").strip().upper()
    if day_type not in DAY_TYPES:
        raise AttendanceError(f"day_type must be one of {', '.join(DAY_TYPES)}")
    return day_type


def _hhmm(value: Any) -> str | None:
    if value is None or not str(value).strip():
        return None
    text = str(value).strip()
    if not _HHMM.match(text):
        raise AttendanceError("Times must be HH:MM")
    return text


def _require_date(value: Any) -> str:
    try:
        day = parse_ymd(value)
    except ValueError:
        raise AttendanceError("date must be YYYY-MM-DD")
    if day is None:
        raise AttendanceError("date is required")
    return day.isoformat()


def _require_store(profile, store_id) -> Store:
    store = db.session.get(Store, int(store_id)) if store_id not in (None, "") else None
    if not store:
        raise AttendanceError("Store not found")
    if not access_service.can_access_store(profile, store.id):
        raise PermissionDeniedError(f"No access to store {store.id}")
    return store


def _get_or_new(store: Store, date: str, staff: User) -> AttendanceRecord:
    key = attendance_key(store.id, date, staff.id)
    record = db.session.get(AttendanceRecord, key)
    if record is None:
        record = AttendanceRecord(id=key, store_id=store.id, date=date, staff_id=staff.id)
        db.session.add(record)
    record.staff_name = staff.name
    record.staff_email = staff.email
    return record


def list_attendance(profile, *, store_id: int, date: str) -> list[AttendanceRecord]:
    store = _require_store(profile, store_id)
    return (
        db.session.query(AttendanceRecord)
        .filter_by(store_id=store.id, date=_require_date(date))
        .order_by(AttendanceRecord.staff_name.asc())
        .all()
    )


def save_store_attendance(
    *,
    profile,
    store_id: int,
    date: str,
    entries: Iterable[Mapping[str, Any]],
) -> list[AttendanceRecord]:
    """
    Save the attendance sheet of a store for a date.

    Each entry names a staff_id; fields it carries are merged into that
    staff member's record, fields it omits are left as they were.
    """
    store = _require_store(profile, store_id)
    date = _require_date(date)
    now = utcnow()

    records = []
    for entry in entries or ():
        staff = db.session.get(User, entry.get("staff_id")) if entry.get("staff_id") is not None else None
        if not staff:
            raise AttendanceError(f"Staff member {entry.get('staff_id')} not found")

        record = _get_or_new(store, date, staff)
        if "present" in entry:
            record.present = bool(entry.get("present"))
        if "check_in" in entry:
            record.check_in = _hhmm(entry.get("check_in"))
        if "check_out" in entry:
            record.check_out = _hhmm(entry.get("check_out"))
        if "day_type" in entry:
            record.day_type = _day_type(entry.get("day_type"))
        record.day_type = record.day_type or "FULL"
        record.day_fraction = day_fraction(bool(record.present), record.day_type)
        record.marked_by = profile.email
        record.marked_as = "STORE"
        record.updated_at = now
        records.append(record)

    db.session.commit()
    return records


def submit_self_attendance(
    *,
    profile,
    store_id: int,
    present: bool = True,
    day_type: str | None = "FULL",
    date: str | None = None,
    now: datetime | None = None,
) -> AttendanceRecord:
    """
    Record the caller's own attendance for today.

    `date`, when sent, must be today's date; the check-in time always comes
    from the server clock.
    """
    now = now or utcnow()
    today = today_ymd(now)
    if date not in (None, "") and str(date).strip() != today:
        raise AttendanceError("Attendance can only be submitted for today")

    store = _require_store(profile, store_id)
    staff = db.session.get(User, profile.user_id) if profile.user_id is not None else None
    if not staff:
        raise AttendanceError("Staff member not found")

    key = attendance_key(store.id, today, staff.id)
    if db.session.get(AttendanceRecord, key) is not None:
        raise AttendanceError("Attendance already submitted for this date")

    present = bool(present)
    resolved_type = _day_type(day_type) if present else "FULL"
    record = AttendanceRecord(
        id=key,
        store_id=store.id,
        date=today,
        staff_id=staff.id,
        staff_name=staff.name,
        staff_email=staff.email,
        present=present,
        check_in=clock_hhmm(now) if present else None,
        day_type=resolved_type,
        day_fraction=day_fraction(present, resolved_type),
        marked_by=staff.email,
        marked_as="SELF",
        submitted_at=now,
        updated_at=now,
    )
    db.session.add(record)
    db.session.commit()
    return record


def modify_check_in(*, profile, record_id: str, check_in: str, reason: str) -> AttendanceRecord:
    if not access_service.passes_role_gate(profile, "attendanceTimeEdit"):
        raise PermissionDeniedError("Role not allowed: attendanceTimeEdit")

    record = db.session.get(AttendanceRecord, record_id)
    if not record:
        raise AttendanceError("Attendance record not found")
    if not access_service.can_access_store(profile, record.store_id):
        raise PermissionDeniedError(f"No access to store {record.store_id}")

    new_time = _hhmm(check_in)
    if new_time is None:
        raise AttendanceError("check_in is required")
    reason = (reason or "").strip()
    if not reason:
        raise AttendanceError("A reason is required to change a check-in time")

    if record.original_check_in is None:
        record.original_check_in = record.check_in
    record.check_in = new_time
    record.time_modified_by = profile.email
    record.time_modified_at = utcnow()
    record.time_modification_reason = reason
    record.updated_at = record.time_modified_at
    db.session.commit()
    return record


def mark_absent_missing(*, profile, store_id: int, date: str) -> list[AttendanceRecord]:
    """Mark every active STAFF member of the store without a record for `date` as absent."""
    if not access_service.passes_role_gate(profile, "autoAttendance"):
        raise PermissionDeniedError("Role not allowed: autoAttendance")

    store = _require_store(profile, store_id)
    date = _require_date(date)
    now = utcnow()

    staff_members = (
        db.session.query(User)
        .outerjoin(UserStoreAccess, UserStoreAccess.user_id == User.id)
        .filter(User.role == "STAFF", User.is_active.is_(True))
        .filter(
            or_(
                and_(UserStoreAccess.store_id == store.id, UserStoreAccess.is_member.is_(True)),
                User.assigned_store_id == store.id,
            )
        )
        .distinct()
        .all()
    )

    marked = []
    for staff in staff_members:
        key = attendance_key(store.id, date, staff.id)
        if db.session.get(AttendanceRecord, key) is not None:
            continue
        record = AttendanceRecord(
            id=key,
            store_id=store.id,
            date=date,
            staff_id=staff.id,
            staff_name=staff.name,
            staff_email=staff.email,
            present=False,
            check_in=None,
            day_type="FULL",
            day_fraction=0.0,
            marked_by=profile.email,
            marked_as="AUTO_ABSENT",
            submitted_at=now,
            updated_at=now,
        )
        db.session.add(record)
        marked.append(record)

    db.session.commit()
    return marked
