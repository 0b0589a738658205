# Overview: Flask API routes for stores operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request, g

from ..decorators import require_auth, require_permission, require_store_access
from ..services import store_service
from ..services.permission_service import PermissionDeniedError


stores_bp = Blueprint("stores", __name__, url_prefix="/api/stores")


@stores_bp.get("")
@require_auth
def list_stores():
    """Stores within the caller's allowed set (all stores when unrestricted)."""
    stores = store_service.list_stores_for_profile(g.profile)
    return jsonify([store.to_dict() for store in stores]), 200


@stores_bp.post("")
@require_auth
@require_permission("canManageStores")
def create_store():
    data = request.get_json(silent=True) or {}
    try:
        store = store_service.create_store(
            name=data.get("name"),
            brand=data.get("brand"),
            city=data.get("city"),
            owner_id=data.get("owner_id"),
        )
        return jsonify(store.to_dict()), 201
    except store_service.StoreError as exc:
        return jsonify({"error": str(exc)}), 400


@stores_bp.get("/<int:store_id>")
@require_auth
def get_store(store_id: int):
    store = store_service.get_store(store_id)
    if not store:
        return jsonify({"error": "Store not found"}), 404
    try:
        require_store_access(store.id)
    except PermissionDeniedError as exc:
        return jsonify({"error": "Permission denied", "message": str(exc)}), 403
    return jsonify(store.to_dict()), 200
