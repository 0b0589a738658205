# Overview: Flask API routes for Rokar bulk imports; parses input and returns JSON responses.

"""
Rokar Import Routes

Upload a .xlsx, .xls or .csv ledger, review the preview, then commit the
staged rows into a store.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_permission, require_store_access
from ..extensions import db
from ..models import RokarImportRow
from ..services import access_service, rokar_import_service
from ..services.permission_service import PermissionDeniedError
from ..services.rokar_import_service import LedgerImportError


imports_bp = Blueprint("rokar_imports", __name__, url_prefix="/api/rokar/imports")


@imports_bp.post("")
@require_auth
@require_permission("canManageRokar")
def upload_route():
    """Multipart field `file`. Returns the staged batch and the first preview rows."""
    if "file" not in request.files:
        return jsonify({"error": "file is required"}), 400

    file = request.files["file"]
    try:
        batch, preview = rokar_import_service.stage_upload(
            data=file.read(),
            filename=file.filename or "",
            created_by_user_id=g.current_user.id,
        )
        return jsonify({"batch": batch.to_dict(), "preview": preview}), 201
    except LedgerImportError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to stage Rokar upload")
        return jsonify({"error": "Failed to parse upload"}), 400


def _require_batch_access(batch) -> None:
    """Committed batches follow their store; staged ones stay with the uploader."""
    if batch.store_id is not None:
        require_store_access(batch.store_id)
        return
    if batch.created_by_user_id != g.current_user.id and access_service.stores_for_filtering(g.profile):
        raise PermissionDeniedError("Import batch belongs to another user")


@imports_bp.post("/<int:batch_id>/commit")
@require_auth
@require_permission("canManageRokar")
def commit_route(batch_id: int):
    """Body: {"store_id": int, "overwrite": bool}"""
    data = request.get_json(silent=True) or {}
    store_id = data.get("store_id")
    if store_id in (None, ""):
        return jsonify({"error": "Select a store before importing"}), 400

    try:
        _require_batch_access(rokar_import_service.get_batch(batch_id))
        require_store_access(int(store_id))
        batch = rokar_import_service.commit_batch(
            batch_id=batch_id,
            store_id=int(store_id),
            overwrite=bool(data.get("overwrite", False)),
            imported_by=g.current_user.email,
        )
        return jsonify({"batch": batch.to_dict(), "summary": batch.summary()}), 200
    except PermissionDeniedError as e:
        return jsonify({"error": "Permission denied", "message": str(e)}), 403
    except LedgerImportError as e:
        status = 404 if str(e) == "Import batch not found" else 400
        return jsonify({"error": str(e)}), status
    except ValueError:
        return jsonify({"error": "store_id must be an integer"}), 400


@imports_bp.get("/<int:batch_id>")
@require_auth
@require_permission("canManageRokar")
def status_route(batch_id: int):
    try:
        batch = rokar_import_service.get_batch(batch_id)
        _require_batch_access(batch)
        return jsonify({"batch": batch.to_dict()}), 200
    except PermissionDeniedError as e:
        return jsonify({"error": "Permission denied", "message": str(e)}), 403
    except LedgerImportError as e:
        return jsonify({"error": str(e)}), 404


@imports_bp.get("/<int:batch_id>/rows")
@require_auth
@require_permission("canManageRokar")
def rows_route(batch_id: int):
    """Query params: outcome (PENDING, INSERTED, OVERWRITTEN, SKIPPED, ERROR)."""
    try:
        batch = rokar_import_service.get_batch(batch_id)
        _require_batch_access(batch)
    except PermissionDeniedError as e:
        return jsonify({"error": "Permission denied", "message": str(e)}), 403
    except LedgerImportError as e:
        return jsonify({"error": str(e)}), 404

    query = db.session.query(RokarImportRow).filter_by(batch_id=batch.id)
    outcome = (request.args.get("outcome") or "").strip().upper()
    if outcome:
        query = query.filter_by(outcome=outcome)
    rows = query.order_by(RokarImportRow.row_number.asc()).all()
    return jsonify({"rows": [row.to_dict() for row in rows]}), 200
