# Overview: Access-control resolver; pure functions of a loaded user profile.

"""
Access-Control Resolver

Answers two questions for every screen and route:
- which store ids a user's queries are filtered to
- whether a capability is granted

CONVENTION: an EMPTY store set means "unrestricted, apply no filter".
Callers must never read it as "nothing visible". A profile that is not
loaded (None) also yields the empty set, while every capability and role
gate resolves to False, so callers can tell "still loading" from "denied".
"""

from __future__ import annotations

from ..permissions import ROLE_GATES, UNRESTRICTED_ROLES, Role, get_all_permission_codes, role_default


def _member_store_ids(profile) -> set:
    return {store_id for store_id, is_member in (profile.stores or {}).items() if is_member is True}


def stores_for_filtering(profile) -> set:
    """
    Store ids the profile's queries must be restricted to.

    - SUPER_ADMIN, ADMIN: empty (unrestricted)
    - OWNER: empty when canAccessAllStores is held, else memberships plus owned stores
    - MANAGER, STAFF: true-valued memberships plus the legacy assigned store
    """
    if profile is None:
        return set()

    role = Role.parse(profile.role)
    if role in UNRESTRICTED_ROLES:
        return set()

    if role is Role.OWNER:
        if has_permission(profile, "canAccessAllStores"):
            return set()
        return _member_store_ids(profile) | set(profile.owned_stores or ())

    store_ids = _member_store_ids(profile)
    if profile.assigned_store not in (None, ""):
        store_ids.add(profile.assigned_store)
    return store_ids


def has_permission(profile, capability: str) -> bool:
    """
    Explicit entries in the profile's permissions record win; absent keys
    fall back to the role default so profiles created before a capability
    existed still resolve.
    """
    if profile is None:
        return False
    explicit = (profile.permissions or {}).get(capability)
    if explicit is not None:
        return bool(explicit)
    return role_default(profile.role, capability)


def passes_role_gate(profile, gate: str) -> bool:
    if gate not in ROLE_GATES:
        raise KeyError(f"Unknown role gate: {gate}")
    if profile is None:
        return False
    return Role.parse(profile.role) in ROLE_GATES[gate]


def can_access(profile, capability: str | None = None, gate: str | None = None) -> bool:
    """Both checks must pass when both are named; neither bypasses the other."""
    if profile is None:
        return False
    if capability is not None and not has_permission(profile, capability):
        return False
    if gate is not None and not passes_role_gate(profile, gate):
        return False
    return True


def can_access_store(profile, store_id) -> bool:
    if profile is None or store_id is None:
        return False
    allowed = stores_for_filtering(profile)
    return not allowed or store_id in allowed


def filter_store_query(query, column, profile):
    """Restrict `query` on `column` only when the profile has a store scope."""
    allowed = stores_for_filtering(profile)
    if allowed:
        query = query.filter(column.in_(sorted(allowed, key=str)))
    return query


def effective_permissions(profile) -> dict[str, bool]:
    """Every known capability resolved for the profile (for clients and admin views)."""
    return {code: has_permission(profile, code) for code in get_all_permission_codes()}
