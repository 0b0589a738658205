# Overview: Capability and role system package.
# Re-exports all public APIs so callers import from retailops.permissions.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    USER_PERMISSIONS,
    STORE_PERMISSIONS,
    LEARNING_PERMISSIONS,
    FINANCE_PERMISSIONS,
    PEOPLE_PERMISSIONS,
    REPORT_PERMISSIONS,
    DEFAULT_ROLE_PERMISSIONS,
)
from .roles import Role, ROLE_GATES, CREATABLE_ROLES, UNRESTRICTED_ROLES
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    get_permission_definition,
    validate_permission_code,
    role_default,
    default_permissions_for,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "USER_PERMISSIONS",
    "STORE_PERMISSIONS",
    "LEARNING_PERMISSIONS",
    "FINANCE_PERMISSIONS",
    "PEOPLE_PERMISSIONS",
    "REPORT_PERMISSIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "Role",
    "ROLE_GATES",
    "CREATABLE_ROLES",
    "UNRESTRICTED_ROLES",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "get_permission_definition",
    "validate_permission_code",
    "role_default",
    "default_permissions_for",
]
