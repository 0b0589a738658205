# Overview: All capability definitions organized by category, plus role defaults.
# Each capability is defined as: (code, name, description, category)
# Codes are the keys stored in a user's permissions record.

from .categories import PermissionCategory
from .roles import Role


# -- USERS --

USER_PERMISSIONS = [
    (
        "canManageUsers",
        "Manage Users",
        "View user accounts, edit store memberships and activation",
        PermissionCategory.USERS,
    ),
    (
        "canCreateAdmins",
        "Create Admins",
        "Create ADMIN accounts",
        PermissionCategory.USERS,
    ),
    (
        "canCreateOwners",
        "Create Owners",
        "Create OWNER accounts",
        PermissionCategory.USERS,
    ),
    (
        "canCreateManagers",
        "Create Managers",
        "Create MANAGER accounts",
        PermissionCategory.USERS,
    ),
    (
        "canCreateStaff",
        "Create Staff",
        "Create STAFF accounts in managed stores",
        PermissionCategory.USERS,
    ),
]


# -- STORES --

STORE_PERMISSIONS = [
    (
        "canManageStores",
        "Manage Stores",
        "Create and edit stores",
        PermissionCategory.STORES,
    ),
    (
        "canAccessAllStores",
        "Access All Stores",
        "See every store without a membership filter",
        PermissionCategory.STORES,
    ),
]


# -- LEARNING --

LEARNING_PERMISSIONS = [
    (
        "canManageTasks",
        "Manage Tasks",
        "Assign and review store tasks",
        PermissionCategory.LEARNING,
    ),
    (
        "canManageTrainings",
        "Manage Trainings",
        "Publish trainings and view training performance",
        PermissionCategory.LEARNING,
    ),
    (
        "canManageTests",
        "Manage Tests",
        "Publish tests and view test performance",
        PermissionCategory.LEARNING,
    ),
    (
        "canUseAITraining",
        "Use AI Training",
        "Generate trainings and tests with the AI assistant",
        PermissionCategory.LEARNING,
    ),
]


# -- FINANCE --

FINANCE_PERMISSIONS = [
    (
        "canManageRokar",
        "Manage Rokar",
        "Enter, import and view daily Rokar ledger rows",
        PermissionCategory.FINANCE,
    ),
    (
        "canManageCustomers",
        "Manage Customers",
        "Maintain the customer list and payment ledger",
        PermissionCategory.FINANCE,
    ),
    (
        "canManageDues",
        "Manage Dues",
        "Record and settle customer dues",
        PermissionCategory.FINANCE,
    ),
    (
        "canManageSalary",
        "Manage Salary",
        "Approve salary requests and staff payments",
        PermissionCategory.FINANCE,
    ),
]


# -- PEOPLE --

PEOPLE_PERMISSIONS = [
    (
        "canManageAttendance",
        "Manage Attendance",
        "Mark and review store attendance",
        PermissionCategory.PEOPLE,
    ),
    (
        "canManageLeave",
        "Manage Leave",
        "Approve or reject leave requests",
        PermissionCategory.PEOPLE,
    ),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (
        "canViewReports",
        "View Reports",
        "Access dashboards and reports",
        PermissionCategory.REPORTS,
    ),
]


PERMISSION_DEFINITIONS = (
    USER_PERMISSIONS
    + STORE_PERMISSIONS
    + LEARNING_PERMISSIONS
    + FINANCE_PERMISSIONS
    + PEOPLE_PERMISSIONS
    + REPORT_PERMISSIONS
)


_MANAGEMENT = {
    "canManageUsers",
    "canManageTasks",
    "canManageTrainings",
    "canManageTests",
    "canManageCustomers",
    "canManageDues",
    "canViewReports",
    "canManageAttendance",
    "canManageSalary",
    "canManageLeave",
    "canManageRokar",
    "canUseAITraining",
}

# Capabilities granted by default to each role. Anything not listed is False.
DEFAULT_ROLE_PERMISSIONS: dict[Role, frozenset[str]] = {
    Role.SUPER_ADMIN: frozenset(code for code, _, _, _ in PERMISSION_DEFINITIONS),
    Role.ADMIN: frozenset(_MANAGEMENT | {"canManageStores", "canAccessAllStores", "canCreateManagers"}),
    Role.OWNER: frozenset(_MANAGEMENT | {"canManageStores", "canCreateManagers"}),
    Role.MANAGER: frozenset(_MANAGEMENT | {"canCreateStaff"}),
    Role.STAFF: frozenset(),
}

_missing = set(Role) - set(DEFAULT_ROLE_PERMISSIONS)
if _missing:
    raise RuntimeError(f"DEFAULT_ROLE_PERMISSIONS missing roles: {sorted(r.value for r in _missing)}")
