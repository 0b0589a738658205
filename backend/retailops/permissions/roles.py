# Overview: Closed set of user roles and the role-only gates layered over capabilities.

from enum import Enum


class Role(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    OWNER = "OWNER"
    MANAGER = "MANAGER"
    STAFF = "STAFF"

    @classmethod
    def parse(cls, value) -> "Role":
        """Resolve a stored role string; unknown or missing roles resolve to STAFF."""
        if isinstance(value, Role):
            return value
        try:
            return cls(str(value or "").strip().upper())
        except ValueError:
            return cls.STAFF


# Roles a creator may assign when creating a new user.
CREATABLE_ROLES: dict[Role, frozenset[Role]] = {
    Role.SUPER_ADMIN: frozenset({Role.ADMIN, Role.OWNER}),
    Role.ADMIN: frozenset({Role.MANAGER}),
    Role.OWNER: frozenset({Role.MANAGER}),
    Role.MANAGER: frozenset({Role.STAFF}),
    Role.STAFF: frozenset(),
}


# Hard-coded role gates. A gate is not a capability: it cannot be granted
# through the permissions record and a capability grant does not satisfy it.
ROLE_GATES: dict[str, frozenset[Role]] = {
    "adminConsole": frozenset({Role.ADMIN}),
    "rokarEntry": frozenset({Role.ADMIN, Role.MANAGER}),
    "staffLedgerOperations": frozenset({Role.MANAGER}),
    "autoAttendance": frozenset({Role.SUPER_ADMIN, Role.ADMIN, Role.OWNER}),
    "selfAttendance": frozenset({Role.STAFF, Role.MANAGER}),
    "attendanceTimeEdit": frozenset({Role.SUPER_ADMIN, Role.ADMIN, Role.OWNER}),
}


# Roles whose store scope is unrestricted regardless of memberships.
UNRESTRICTED_ROLES = frozenset({Role.SUPER_ADMIN, Role.ADMIN})

_missing = set(Role) - set(CREATABLE_ROLES)
if _missing:
    raise RuntimeError(f"CREATABLE_ROLES missing roles: {sorted(r.value for r in _missing)}")
