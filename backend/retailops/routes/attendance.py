# Overview: Flask API routes for attendance; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request, g

from ..decorators import require_auth, require_permission, require_role_gate
from ..services import attendance_service
from ..services.attendance_service import AttendanceError
from ..services.permission_service import PermissionDeniedError


attendance_bp = Blueprint("attendance", __name__, url_prefix="/api/attendance")


def _error_response(exc: Exception):
    if isinstance(exc, PermissionDeniedError):
        return jsonify({"error": "Permission denied", "message": str(exc)}), 403
    if str(exc).endswith("not found"):
        return jsonify({"error": str(exc)}), 404
    return jsonify({"error": str(exc)}), 400


@attendance_bp.get("")
@require_auth
@require_permission("canManageAttendance")
def list_route():
    """Query params: store_id, date."""
    try:
        records = attendance_service.list_attendance(
            g.profile,
            store_id=request.args.get("store_id"),
            date=request.args.get("date"),
        )
        return jsonify({"records": [r.to_dict() for r in records]}), 200
    except (AttendanceError, PermissionDeniedError, ValueError) as exc:
        return _error_response(exc)


@attendance_bp.put("")
@require_auth
@require_permission("canManageAttendance")
def save_sheet_route():
    """Body: store_id, date, entries [{staff_id, present, check_in, check_out, day_type}]."""
    data = request.get_json(silent=True) or {}
    entries = data.get("entries")
    if not isinstance(entries, list):
        return jsonify({"error": "entries must be a list"}), 400
    try:
        records = attendance_service.save_store_attendance(
            profile=g.profile,
            store_id=data.get("store_id"),
            date=data.get("date"),
            entries=entries,
        )
        return jsonify({"records": [r.to_dict() for r in records]}), 200
    except (AttendanceError, PermissionDeniedError, ValueError) as exc:
        return _error_response(exc)


@attendance_bp.post("/self")
@require_auth
@require_role_gate("selfAttendance")
def self_route():
    """Body: store_id, present, day_type (FULL or HALF), optional date (must be today)."""
    data = request.get_json(silent=True) or {}
    try:
        record = attendance_service.submit_self_attendance(
            profile=g.profile,
            store_id=data.get("store_id"),
            present=data.get("present", True),
            day_type=data.get("day_type", "FULL"),
            date=data.get("date"),
        )
        return jsonify({"record": record.to_dict()}), 201
    except (AttendanceError, PermissionDeniedError, ValueError) as exc:
        if isinstance(exc, AttendanceError) and "already submitted" in str(exc):
            return jsonify({"error": str(exc)}), 409
        return _error_response(exc)


@attendance_bp.post("/auto-absent")
@require_auth
@require_permission("canManageAttendance")
@require_role_gate("autoAttendance")
def auto_absent_route():
    """Body: store_id, date. Marks staff without a record as absent."""
    data = request.get_json(silent=True) or {}
    try:
        records = attendance_service.mark_absent_missing(
            profile=g.profile,
            store_id=data.get("store_id"),
            date=data.get("date"),
        )
        return jsonify({"marked": len(records), "records": [r.to_dict() for r in records]}), 200
    except (AttendanceError, PermissionDeniedError, ValueError) as exc:
        return _error_response(exc)


@attendance_bp.put("/<record_id>/check-in")
@require_auth
@require_role_gate("attendanceTimeEdit")
def modify_check_in_route(record_id: str):
    """Body: check_in (HH:MM), reason."""
    data = request.get_json(silent=True) or {}
    try:
        record = attendance_service.modify_check_in(
            profile=g.profile,
            record_id=record_id,
            check_in=data.get("check_in"),
            reason=data.get("reason"),
        )
        return jsonify({"record": record.to_dict()}), 200
    except (AttendanceError, PermissionDeniedError, ValueError) as exc:
        return _error_response(exc)
