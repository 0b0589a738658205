# Overview: Utility functions for capability lookups and role defaults.

from .definitions import PERMISSION_DEFINITIONS, DEFAULT_ROLE_PERMISSIONS
from .roles import Role


def get_all_permission_codes():
    """Get list of all capability codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_permissions_by_category(category):
    """Get all capabilities in a category."""
    return [perm for perm in PERMISSION_DEFINITIONS if perm[3] == category]


def get_permission_definition(code):
    """Get full definition for a capability code."""
    for perm in PERMISSION_DEFINITIONS:
        if perm[0] == code:
            return {
                "code": perm[0],
                "name": perm[1],
                "description": perm[2],
                "category": perm[3],
            }
    return None


def validate_permission_code(code):
    """Check if a capability code is valid."""
    return code in get_all_permission_codes()


def role_default(role, code) -> bool:
    """Default grant of `code` for `role` (unknown roles resolve to STAFF)."""
    return code in DEFAULT_ROLE_PERMISSIONS[Role.parse(role)]


def default_permissions_for(role) -> dict[str, bool]:
    """Full permissions record written on user creation."""
    granted = DEFAULT_ROLE_PERMISSIONS[Role.parse(role)]
    return {code: code in granted for code in get_all_permission_codes()}
