# Overview: Pytest coverage for capability definitions and role tables.

import pytest

from retailops.permissions import (
    CREATABLE_ROLES,
    DEFAULT_ROLE_PERMISSIONS,
    PERMISSION_DEFINITIONS,
    ROLE_GATES,
    PermissionCategory,
    Role,
    default_permissions_for,
    get_all_permission_codes,
    get_permission_definition,
    get_permissions_by_category,
    role_default,
    validate_permission_code,
)


class TestPermissionTables:

    def test_codes_are_unique(self):
        codes = get_all_permission_codes()
        assert len(codes) == len(set(codes))

    def test_every_role_has_defaults_and_creatable_roles(self):
        assert set(DEFAULT_ROLE_PERMISSIONS) == set(Role)
        assert set(CREATABLE_ROLES) == set(Role)

    def test_role_defaults_only_name_known_codes(self):
        codes = set(get_all_permission_codes())
        for role, granted in DEFAULT_ROLE_PERMISSIONS.items():
            assert granted <= codes, role

    def test_gates_only_name_roles(self):
        for gate, roles in ROLE_GATES.items():
            assert roles and all(isinstance(r, Role) for r in roles), gate

    def test_every_definition_has_a_category(self):
        categories = {
            value for name, value in vars(PermissionCategory).items() if not name.startswith("_")
        }
        assert {perm[3] for perm in PERMISSION_DEFINITIONS} <= categories


class TestRoleDefaults:

    @pytest.mark.parametrize("role", list(Role))
    def test_default_record_covers_every_code(self, role):
        record = default_permissions_for(role)
        assert set(record) == set(get_all_permission_codes())

    def test_super_admin_all_true_staff_all_false(self):
        assert all(default_permissions_for(Role.SUPER_ADMIN).values())
        assert not any(default_permissions_for(Role.STAFF).values())

    def test_manager_can_create_staff_only(self):
        record = default_permissions_for("MANAGER")
        assert record["canCreateStaff"] is True
        assert record["canCreateManagers"] is False
        assert record["canManageStores"] is False

    def test_unknown_role_defaults_to_staff(self):
        assert role_default("CASHIER", "canManageRokar") is False
        assert role_default("manager", "canManageRokar") is True


class TestLookups:

    def test_definition_lookup(self):
        definition = get_permission_definition("canManageRokar")
        assert definition["category"] == PermissionCategory.FINANCE
        assert get_permission_definition("canFlyPlanes") is None

    def test_validate_code(self):
        assert validate_permission_code("canManageAttendance")
        assert not validate_permission_code("canFlyPlanes")

    def test_by_category(self):
        codes = [perm[0] for perm in get_permissions_by_category(PermissionCategory.STORES)]
        assert codes == ["canManageStores", "canAccessAllStores"]
