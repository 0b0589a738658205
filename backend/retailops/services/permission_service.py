# Overview: Capability and role-gate enforcement with a security event trail.

"""
Permission Enforcement and Security Event Logging

Resolution itself lives in access_service (pure). This module turns a
failed resolution into PermissionDeniedError and records the denial.

DESIGN PRINCIPLES:
- Fail closed: a missing profile is denied
- Log denials only: grants are not logged
"""

from ..extensions import db
from ..models import SecurityEvent
from ..time_utils import utcnow
from . import access_service


class PermissionDeniedError(Exception):
    """Raised when a profile lacks a capability, role gate or store scope."""
    pass


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    store_id: int | None = None
) -> SecurityEvent:
    """
    Append a security event.

    event_type examples:
    - PERMISSION_DENIED
    - ROLE_GATE_DENIED
    - STORE_ACCESS_DENIED
    - LOGIN_FAILED
    - USER_CREATED / USER_DEACTIVATED / USER_ACTIVATED / PERMISSIONS_UPDATED
    """
    event = SecurityEvent(
        user_id=user_id,
        store_id=store_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow()
    )

    db.session.add(event)
    db.session.commit()

    return event


def _deny(profile, event_type: str, action: str, reason: str, **context) -> None:
    log_security_event(
        user_id=getattr(profile, "user_id", None),
        event_type=event_type,
        success=False,
        action=action,
        reason=reason,
        **context
    )
    raise PermissionDeniedError(reason)


def require_permission(profile, capability: str, **context) -> None:
    """
    Raise PermissionDeniedError unless the profile holds `capability`.

    Usage:
        require_permission(profile, "canManageRokar", resource=request.path)
    """
    if not access_service.has_permission(profile, capability):
        _deny(profile, "PERMISSION_DENIED", capability, f"Missing permission: {capability}", **context)


def require_role_gate(profile, gate: str, **context) -> None:
    if not access_service.passes_role_gate(profile, gate):
        _deny(profile, "ROLE_GATE_DENIED", gate, f"Role not allowed: {gate}", **context)


def require_store_access(profile, store_id, **context) -> None:
    if not access_service.can_access_store(profile, store_id):
        _deny(profile, "STORE_ACCESS_DENIED", "STORE_SCOPE", f"No access to store {store_id}", **context)
