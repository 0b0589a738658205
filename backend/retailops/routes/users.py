# Overview: Flask API routes for user administration; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request, g

from ..decorators import require_auth, require_permission, require_role_gate
from ..services import user_service
from ..services.permission_service import PermissionDeniedError
from ..services.user_service import UserAdminError


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def _error_response(exc: Exception):
    if isinstance(exc, PermissionDeniedError):
        return jsonify({"error": "Permission denied", "message": str(exc)}), 403
    if str(exc) == "User not found":
        return jsonify({"error": str(exc)}), 404
    return jsonify({"error": str(exc)}), 400


@users_bp.get("")
@require_auth
@require_permission("canManageUsers")
def list_users_route():
    users = user_service.list_users(g.profile)
    return jsonify({"users": [u.to_dict() for u in users]}), 200


@users_bp.post("")
@require_auth
@require_permission("canManageUsers")
def create_user_route():
    """
    Create a user.

    Body: email, name, role, password, optional phone, store_ids, assigned_store_id.
    The caller's role decides which roles may be created.
    """
    data = request.get_json(silent=True) or {}
    try:
        user = user_service.create_user(
            creator=g.profile,
            email=data.get("email"),
            name=data.get("name"),
            role=data.get("role"),
            password=data.get("password"),
            phone=data.get("phone"),
            store_ids=data.get("store_ids") or [],
            assigned_store_id=data.get("assigned_store_id"),
        )
        return jsonify({"user": user.to_dict()}), 201
    except (UserAdminError, PermissionDeniedError) as exc:
        return _error_response(exc)


@users_bp.get("/<int:user_id>")
@require_auth
@require_permission("canManageUsers")
def get_user_route(user_id: int):
    try:
        user = user_service.get_user(user_id)
        user_service.require_in_scope(g.profile, user)
        return jsonify({"user": user.to_dict()}), 200
    except (UserAdminError, PermissionDeniedError) as exc:
        return _error_response(exc)


@users_bp.put("/<int:user_id>/stores")
@require_auth
@require_permission("canManageUsers")
def set_stores_route(user_id: int):
    """Body: {"stores": {"<store_id>": true|false, ...}}"""
    data = request.get_json(silent=True) or {}
    stores = data.get("stores")
    if not isinstance(stores, dict):
        return jsonify({"error": "stores must be an object of store_id -> bool"}), 400
    try:
        user = user_service.set_store_memberships(actor=g.profile, user_id=user_id, stores=stores)
        return jsonify({"user": user.to_dict()}), 200
    except (UserAdminError, PermissionDeniedError) as exc:
        return _error_response(exc)


@users_bp.post("/<int:user_id>/deactivate")
@require_auth
@require_permission("canManageUsers")
def deactivate_user_route(user_id: int):
    data = request.get_json(silent=True) or {}
    try:
        user = user_service.deactivate_user(actor=g.profile, user_id=user_id, reason=data.get("reason"))
        return jsonify({"user": user.to_dict()}), 200
    except (UserAdminError, PermissionDeniedError) as exc:
        return _error_response(exc)


@users_bp.post("/<int:user_id>/activate")
@require_auth
@require_permission("canManageUsers")
def activate_user_route(user_id: int):
    try:
        user = user_service.activate_user(actor=g.profile, user_id=user_id)
        return jsonify({"user": user.to_dict()}), 200
    except (UserAdminError, PermissionDeniedError) as exc:
        return _error_response(exc)


@users_bp.put("/<int:user_id>/permissions")
@require_auth
@require_permission("canManageUsers")
def update_permissions_route(user_id: int):
    data = request.get_json(silent=True) or {}
    try:
        user = user_service.update_permissions(
            actor=g.profile,
            user_id=user_id,
            permissions=data.get("permissions"),
        )
        return jsonify({"user": user.to_dict()}), 200
    except (UserAdminError, PermissionDeniedError) as exc:
        return _error_response(exc)


@users_bp.post("/permissions/backfill")
@require_auth
@require_permission("canManageUsers")
@require_role_gate("adminConsole")
def backfill_permissions_route():
    updated = user_service.backfill_default_permissions()
    return jsonify({"updated": updated}), 200
