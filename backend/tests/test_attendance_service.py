# Overview: Pytest coverage for attendance sheets, self check-in and time edits.

from datetime import datetime

import pytest

from retailops.models import AttendanceRecord, attendance_key
from retailops.services import attendance_service
from retailops.services.attendance_service import AttendanceError
from retailops.services.permission_service import PermissionDeniedError
from retailops.services.profile_service import load_profile


NOW = datetime(2024, 1, 5, 9, 15)


@pytest.mark.parametrize(
    "present,day_type,expected",
    [(True, "FULL", 1.0), (True, "half", 0.5), (False, "HALF", 0.0), (True, None, 1.0)],
)
def test_day_fraction(present, day_type, expected):
    assert attendance_service.day_fraction(present, day_type) == expected


class TestSelfAttendance:

    def submit(self, user, store, **kwargs):
        kwargs.setdefault("now", NOW)
        return attendance_service.submit_self_attendance(profile=load_profile(user.id), store_id=store.id, **kwargs)

    def test_check_in_uses_server_clock(self, db_session, staff_a, store_a):
        record = self.submit(staff_a, store_a)
        assert record.id == attendance_key(store_a.id, "2024-01-05", staff_a.id)
        assert record.check_in == "09:15"
        assert record.day_fraction == 1.0
        assert record.marked_as == "SELF"
        assert record.staff_email == staff_a.email

    def test_half_day(self, db_session, staff_a, store_a):
        record = self.submit(staff_a, store_a, day_type="HALF")
        assert record.day_fraction == 0.5

    def test_absent(self, db_session, staff_a, store_a):
        record = self.submit(staff_a, store_a, present=False)
        assert record.present is False
        assert record.check_in is None
        assert record.day_fraction == 0.0

    def test_only_once_per_day(self, db_session, staff_a, store_a):
        self.submit(staff_a, store_a)
        with pytest.raises(AttendanceError, match="already submitted"):
            self.submit(staff_a, store_a)

    def test_only_for_today(self, db_session, staff_a, store_a):
        with pytest.raises(AttendanceError, match="only be submitted for today"):
            self.submit(staff_a, store_a, date="2024-01-04")
        assert self.submit(staff_a, store_a, date="2024-01-05").date == "2024-01-05"

    def test_foreign_store(self, db_session, staff_a, store_b):
        with pytest.raises(PermissionDeniedError):
            self.submit(staff_a, store_b)

    def test_invalid_day_type(self, db_session, staff_a, store_a):
        with pytest.raises(AttendanceError, match="day_type"):
            self.submit(staff_a, store_a, day_type="QUARTER")


class TestStoreSheet:

    def test_partial_updates_merge(self, db_session, manager_a, staff_a, store_a):
        profile = load_profile(manager_a.id)
        attendance_service.save_store_attendance(
            profile=profile, store_id=store_a.id, date="2024-01-05",
            entries=[{"staff_id": staff_a.id, "present": True, "check_in": "09:30", "day_type": "HALF"}],
        )
        [record] = attendance_service.save_store_attendance(
            profile=profile, store_id=store_a.id, date="2024-01-05",
            entries=[{"staff_id": staff_a.id, "check_out": "18:00"}],
        )
        assert record.check_in == "09:30"
        assert record.check_out == "18:00"
        assert record.day_fraction == 0.5
        assert record.marked_as == "STORE"
        assert record.marked_by == manager_a.email

        listed = attendance_service.list_attendance(profile, store_id=store_a.id, date="2024-01-05")
        assert [r.staff_id for r in listed] == [staff_a.id]

    def test_invalid_time(self, db_session, manager_a, staff_a, store_a):
        with pytest.raises(AttendanceError, match="HH:MM"):
            attendance_service.save_store_attendance(
                profile=load_profile(manager_a.id), store_id=store_a.id, date="2024-01-05",
                entries=[{"staff_id": staff_a.id, "check_in": "9.30"}],
            )

    def test_unknown_staff(self, db_session, manager_a, store_a):
        with pytest.raises(AttendanceError, match="not found"):
            attendance_service.save_store_attendance(
                profile=load_profile(manager_a.id), store_id=store_a.id, date="2024-01-05",
                entries=[{"staff_id": 9999, "present": True}],
            )


class TestModifyCheckIn:

    def test_manager_is_outside_gate(self, db_session, manager_a, staff_a, store_a):
        record = attendance_service.submit_self_attendance(
            profile=load_profile(staff_a.id), store_id=store_a.id, now=NOW,
        )
        with pytest.raises(PermissionDeniedError, match="attendanceTimeEdit"):
            attendance_service.modify_check_in(
                profile=load_profile(manager_a.id), record_id=record.id, check_in="09:00", reason="late sync",
            )

    def test_admin_edit_keeps_first_time(self, db_session, admin, staff_a, store_a):
        record = attendance_service.submit_self_attendance(
            profile=load_profile(staff_a.id), store_id=store_a.id, now=NOW,
        )
        profile = load_profile(admin.id)
        attendance_service.modify_check_in(profile=profile, record_id=record.id, check_in="09:00", reason="Biometric down")
        record = attendance_service.modify_check_in(
            profile=profile, record_id=record.id, check_in="08:55", reason="Corrected again",
        )
        assert record.check_in == "08:55"
        assert record.original_check_in == "09:15"
        assert record.time_modified_by == admin.email
        assert record.time_modification_reason == "Corrected again"

    def test_reason_required(self, db_session, admin, staff_a, store_a):
        record = attendance_service.submit_self_attendance(
            profile=load_profile(staff_a.id), store_id=store_a.id, now=NOW,
        )
        with pytest.raises(AttendanceError, match="reason"):
            attendance_service.modify_check_in(profile=load_profile(admin.id), record_id=record.id, check_in="09:00", reason=" ")


class TestMarkAbsent:

    def test_marks_only_active_staff_without_records(self, db_session, make_user, admin, manager_a, staff_a, store_a):
        assigned = make_user("assigned@example.com", assigned_store_id=store_a.id)
        make_user("inactive@example.com", stores=[store_a.id], is_active=False)
        checked_in = make_user("early@example.com", stores=[store_a.id])
        attendance_service.submit_self_attendance(
            profile=load_profile(checked_in.id), store_id=store_a.id, now=NOW,
        )

        marked = attendance_service.mark_absent_missing(
            profile=load_profile(admin.id), store_id=store_a.id, date="2024-01-05",
        )
        assert {r.staff_id for r in marked} == {staff_a.id, assigned.id}
        assert all(r.marked_as == "AUTO_ABSENT" and r.day_fraction == 0.0 for r in marked)
        assert db_session.query(AttendanceRecord).count() == 3

        again = attendance_service.mark_absent_missing(
            profile=load_profile(admin.id), store_id=store_a.id, date="2024-01-05",
        )
        assert again == []

    def test_manager_is_outside_gate(self, db_session, manager_a, store_a):
        with pytest.raises(PermissionDeniedError, match="autoAttendance"):
            attendance_service.mark_absent_missing(
                profile=load_profile(manager_a.id), store_id=store_a.id, date="2024-01-05",
            )
