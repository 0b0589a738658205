# Overview: Flask API routes for Rokar ledger entries; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request, g, current_app

from ..decorators import require_auth, require_permission, require_role_gate, require_store_access
from ..services import rokar_service
from ..services.permission_service import PermissionDeniedError
from ..services.rokar_service import RokarError


rokar_bp = Blueprint("rokar", __name__, url_prefix="/api/rokar")


def _int_arg(name: str):
    value = request.args.get(name)
    if value in (None, ""):
        return None
    return int(value)


@rokar_bp.get("/entries")
@require_auth
@require_permission("canManageRokar")
def list_entries_route():
    """Query params: store_id, from, to (YYYY-MM-DD), limit."""
    try:
        entries = rokar_service.list_entries(
            g.profile,
            store_id=_int_arg("store_id"),
            date_from=request.args.get("from"),
            date_to=request.args.get("to"),
            limit=_int_arg("limit") or 500,
        )
        return jsonify({"entries": [e.to_dict() for e in entries]}), 200
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400
    except PermissionDeniedError as exc:
        return jsonify({"error": "Permission denied", "message": str(exc)}), 403


@rokar_bp.post("/entries")
@require_auth
@require_permission("canManageRokar")
@require_role_gate("rokarEntry")
def save_entry_route():
    """
    Create (or, for ADMIN, replace) the manual entry for a store and date.

    Body: store_id, date, plus ledger fields (opening_balance, total_sale,
    payments {...}, expense_breakup {...}, ...). Blank opening_balance
    falls back to the previous day's closing balance.
    """
    data = request.get_json(silent=True) or {}
    try:
        entry = rokar_service.save_entry(
            profile=g.profile,
            store_id=data.get("store_id"),
            date=data.get("date"),
            data=data,
        )
        return jsonify({"entry": entry.to_dict()}), 201
    except RokarError as exc:
        return jsonify({"error": str(exc)}), 400
    except PermissionDeniedError as exc:
        return jsonify({"error": "Permission denied", "message": str(exc)}), 403
    except Exception:
        current_app.logger.exception("Failed to save Rokar entry")
        return jsonify({"error": "Internal server error"}), 500


@rokar_bp.get("/entries/<int:store_id>/<date>")
@require_auth
@require_permission("canManageRokar")
def get_entry_route(store_id: int, date: str):
    try:
        entry = rokar_service.get_entry(g.profile, store_id, date)
    except PermissionDeniedError as exc:
        return jsonify({"error": "Permission denied", "message": str(exc)}), 403
    if not entry:
        return jsonify({"error": "Entry not found"}), 404
    return jsonify({"entry": entry.to_dict()}), 200


@rokar_bp.get("/entries/<int:store_id>/<date>/opening")
@require_auth
@require_permission("canManageRokar")
def opening_balance_route(store_id: int, date: str):
    """Suggested opening balance: the previous day's closing, if recorded."""
    try:
        require_store_access(store_id)
        previous = rokar_service.previous_closing_balance(store_id, date)
    except PermissionDeniedError as exc:
        return jsonify({"error": "Permission denied", "message": str(exc)}), 403
    except ValueError:
        return jsonify({"error": "date must be YYYY-MM-DD"}), 400
    return jsonify({"opening_balance": previous}), 200
