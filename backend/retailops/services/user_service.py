# Overview: Service-layer operations for user administration; creation rights, memberships, activation.

"""
User Administration

RULES:
- Users are never deleted, only deactivated (sessions are revoked)
- Creation rights follow CREATABLE_ROLES; a MANAGER may only create STAFF
  into stores it is a member of
- Nobody may create an account with their own email
- New users receive the full role-default permissions record
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from ..extensions import db
from ..models import Store, User, UserStoreAccess
from ..permissions import (
    CREATABLE_ROLES,
    Role,
    default_permissions_for,
    get_all_permission_codes,
    role_default,
    validate_permission_code,
)
from ..time_utils import utcnow
from . import access_service, auth_service, permission_service, session_service
from .permission_service import PermissionDeniedError


class UserAdminError(ValueError):
    """Raised when a user administration request is invalid."""


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Capability the creator must also hold for each creatable role
CREATE_CAPABILITIES = {
    Role.ADMIN: "canCreateAdmins",
    Role.OWNER: "canCreateOwners",
    Role.MANAGER: "canCreateManagers",
    Role.STAFF: "canCreateStaff",
}

# Roles whose visibility comes only from store memberships
STORE_BOUND_ROLES = (Role.MANAGER, Role.STAFF)


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _actor_email(actor) -> str | None:
    return getattr(actor, "email", None)


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise UserAdminError("User not found")
    return user


def _member_store_ids(user: User) -> set[int]:
    ids = {a.store_id for a in user.store_access if a.is_member}
    if user.assigned_store_id is not None:
        ids.add(user.assigned_store_id)
    return ids


def list_users(profile) -> list[User]:
    """Users visible to `profile`: everyone when unrestricted, else users sharing a store."""
    users = db.session.query(User).order_by(User.name.asc(), User.id.asc()).all()
    allowed = access_service.stores_for_filtering(profile)
    if not allowed:
        return users
    return [u for u in users if _member_store_ids(u) & allowed]


def require_in_scope(actor, user: User) -> None:
    allowed = access_service.stores_for_filtering(actor)
    if allowed and not (_member_store_ids(user) & allowed):
        raise PermissionDeniedError("User is outside your stores")


def _require_can_create(creator, role: Role, store_ids: set, assigned_store_id=None) -> None:
    creator_role = Role.parse(creator.role)
    if role not in CREATABLE_ROLES[creator_role]:
        raise PermissionDeniedError(f"{creator_role.value} cannot create {role.value} users")
    capability = CREATE_CAPABILITIES[role]
    if not access_service.has_permission(creator, capability):
        raise PermissionDeniedError(f"Missing permission: {capability}")

    if role in STORE_BOUND_ROLES and not store_ids and assigned_store_id is None:
        raise UserAdminError(f"Select at least one store for the new {role.value} user")

    if creator_role is Role.MANAGER:
        own_stores = {store_id for store_id, member in (creator.stores or {}).items() if member is True}
        if creator.assigned_store not in (None, ""):
            own_stores.add(creator.assigned_store)
        requested = set(store_ids)
        if assigned_store_id is not None:
            requested.add(int(assigned_store_id))
        outside = requested - own_stores
        if outside:
            raise PermissionDeniedError(f"Not a member of store(s): {sorted(outside)}")


def _load_stores(store_ids: Iterable) -> list[Store]:
    stores = []
    for store_id in store_ids:
        store = db.session.get(Store, int(store_id))
        if not store:
            raise UserAdminError(f"Store {store_id} not found")
        stores.append(store)
    return stores


def create_user(
    *,
    creator,
    email: str,
    name: str,
    role: str,
    password: str,
    phone: str | None = None,
    store_ids: Iterable[int] = (),
    assigned_store_id: int | None = None,
) -> User:
    """Create a user on behalf of `creator` (a loaded profile)."""
    if creator is None:
        raise PermissionDeniedError("Authentication required")

    email = _normalize_email(email)
    name = (name or "").strip()
    if not email or not name or not role or not password:
        raise UserAdminError("email, name, role and password are required")
    if not EMAIL_PATTERN.match(email):
        raise UserAdminError("Invalid email address")
    if email == _normalize_email(creator.email):
        raise UserAdminError("You cannot create an account with your own email")

    try:
        target_role = Role(str(role).strip().upper())
    except ValueError:
        raise UserAdminError(f"Unknown role: {role}")

    try:
        store_ids = {int(s) for s in store_ids or ()}
    except (TypeError, ValueError):
        raise UserAdminError("store_ids must be store ids")
    _require_can_create(creator, target_role, store_ids, assigned_store_id)

    if db.session.query(User).filter_by(email=email).first():
        raise UserAdminError("A user with this email already exists")

    stores = _load_stores(store_ids)
    if assigned_store_id is not None:
        _load_stores([assigned_store_id])

    try:
        password_hash = auth_service.hash_password(password)
    except auth_service.PasswordValidationError as exc:
        raise UserAdminError(str(exc)) from exc

    now = utcnow()
    user = User(
        email=email,
        name=name,
        phone=(phone or "").strip() or None,
        role=target_role.value,
        assigned_store_id=assigned_store_id,
        permissions=default_permissions_for(target_role),
        password_hash=password_hash,
        is_active=True,
        activated_at=now,
        activated_by=_actor_email(creator),
        created_by=_actor_email(creator),
        created_at=now,
    )
    db.session.add(user)
    db.session.flush()

    for store in stores:
        db.session.add(UserStoreAccess(
            user_id=user.id,
            store_id=store.id,
            is_member=True,
            granted_by=_actor_email(creator),
            granted_at=now,
        ))
    db.session.commit()

    permission_service.log_security_event(
        user_id=creator.user_id,
        event_type="USER_CREATED",
        success=True,
        resource=f"users/{user.id}",
        action=target_role.value,
    )
    return user


def set_store_memberships(*, actor, user_id: int, stores: Mapping[Any, bool]) -> User:
    """
    Write membership flags for the given stores; stores not named are untouched.

    A False flag is kept as an explicit revocation.
    """
    user = get_user(user_id)
    require_in_scope(actor, user)
    now = utcnow()

    existing = {a.store_id: a for a in user.store_access}
    for raw_store_id, is_member in (stores or {}).items():
        store = _load_stores([raw_store_id])[0]
        if not access_service.can_access_store(actor, store.id):
            raise PermissionDeniedError(f"No access to store {store.id}")

        access = existing.get(store.id)
        if access is None:
            access = UserStoreAccess(user_id=user.id, store_id=store.id)
            db.session.add(access)
            user.store_access.append(access)
        access.is_member = bool(is_member)
        access.granted_by = _actor_email(actor)
        access.granted_at = now

    if Role.parse(user.role) in STORE_BOUND_ROLES and not _member_store_ids(user):
        db.session.rollback()
        raise UserAdminError(f"A {user.role} user must keep at least one store")

    db.session.commit()
    return user


def deactivate_user(*, actor, user_id: int, reason: str | None = None) -> User:
    user = get_user(user_id)
    if actor is not None and user.id == actor.user_id:
        raise UserAdminError("You cannot deactivate your own account")
    require_in_scope(actor, user)
    if not user.is_active:
        raise UserAdminError("User is already deactivated")

    user.is_active = False
    user.deactivated_at = utcnow()
    user.deactivated_by = _actor_email(actor)
    user.deactivation_reason = (reason or "").strip() or None
    db.session.commit()

    session_service.revoke_all_user_sessions(user.id, reason="User deactivated")
    permission_service.log_security_event(
        user_id=getattr(actor, "user_id", None),
        event_type="USER_DEACTIVATED",
        success=True,
        resource=f"users/{user.id}",
        reason=user.deactivation_reason,
    )
    return user


def activate_user(*, actor, user_id: int) -> User:
    user = get_user(user_id)
    require_in_scope(actor, user)
    if user.is_active:
        raise UserAdminError("User is already active")

    user.is_active = True
    user.activated_at = utcnow()
    user.activated_by = _actor_email(actor)
    user.deactivated_at = None
    user.deactivated_by = None
    user.deactivation_reason = None
    db.session.commit()

    permission_service.log_security_event(
        user_id=getattr(actor, "user_id", None),
        event_type="USER_ACTIVATED",
        success=True,
        resource=f"users/{user.id}",
    )
    return user


def update_permissions(*, actor, user_id: int, permissions: Mapping[str, Any]) -> User:
    """Merge explicit capability values into a user's permissions record."""
    if not isinstance(permissions, Mapping) or not permissions:
        raise UserAdminError("permissions must be a non-empty object")
    unknown = sorted(code for code in permissions if not validate_permission_code(code))
    if unknown:
        raise UserAdminError(f"Unknown permission(s): {', '.join(unknown)}")

    user = get_user(user_id)
    require_in_scope(actor, user)

    merged = dict(user.permissions or {})
    merged.update({code: bool(value) for code, value in permissions.items()})
    user.permissions = merged
    db.session.commit()

    permission_service.log_security_event(
        user_id=getattr(actor, "user_id", None),
        event_type="PERMISSIONS_UPDATED",
        success=True,
        resource=f"users/{user.id}",
        reason=", ".join(sorted(permissions)),
    )
    return user


def backfill_default_permissions() -> int:
    """
    Add capability keys missing from stored permission records.

    Missing keys get the role default; explicit values are never changed.
    Returns the number of users updated.
    """
    codes = get_all_permission_codes()
    updated = 0
    for user in db.session.query(User).all():
        current = dict(user.permissions or {})
        missing = [code for code in codes if code not in current]
        if not missing:
            continue
        for code in missing:
            current[code] = role_default(user.role, code)
        user.permissions = current
        updated += 1
    db.session.commit()
    return updated
