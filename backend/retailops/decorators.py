# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service, permission_service, profile_service
from .services.permission_service import PermissionDeniedError


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'profile')


def _request_context() -> dict:
    return {
        "resource": request.path,
        "ip_address": request.remote_addr,
        "user_agent": request.headers.get("User-Agent"),
    }


def require_auth(f):
    """
    Require a live bearer session.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.profile: The user's UserProfile snapshot (memberships, permissions)
    - g.session_context: The full SessionContext object

    Returns 401 when the header is missing, the token is unknown, revoked
    or expired, or the account is deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]
        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.profile = profile_service.load_profile(context.user.id)
        g.session_context = context
        g.session_token = token

        return f(*args, **kwargs)

    return decorated_function


def require_permission(capability: str):
    """Require a capability (explicit grant or role default)."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            try:
                permission_service.require_permission(g.profile, capability, **_request_context())
            except PermissionDeniedError as e:
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": capability,
                    "message": str(e)
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_role_gate(gate: str):
    """Require a hard-coded role gate; capabilities never satisfy it."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            try:
                permission_service.require_role_gate(g.profile, gate, **_request_context())
            except PermissionDeniedError as e:
                return jsonify({
                    "error": "Permission denied",
                    "required_role_gate": gate,
                    "message": str(e)
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_store_access(store_id) -> None:
    """Raise PermissionDeniedError (and log it) unless g.profile may act on store_id."""
    permission_service.require_store_access(g.profile, store_id, **_request_context())
