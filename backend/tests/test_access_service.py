# Overview: Pytest coverage for the store-scope and capability resolver.

"""
Access Resolver Tests

Verifies:
- Empty store set means unrestricted; unloaded profiles resolve to nothing
- Capabilities: explicit record values win, absent keys use role defaults
- Role gates cannot be satisfied by a capability grant
"""

import pytest

from retailops.permissions import ROLE_GATES, Role
from retailops.services import access_service
from retailops.services.profile_service import UserProfile


def profile(role, stores=None, assigned_store=None, permissions=None, owned_stores=()):
    return UserProfile(
        email=f"{role.lower()}@retailops.test",
        name=role.title(),
        role=Role(role),
        stores=stores or {},
        assigned_store=assigned_store,
        permissions=permissions or {},
        owned_stores=frozenset(owned_stores),
        user_id=1,
    )


class TestStoresForFiltering:

    def test_unloaded_profile_is_empty(self):
        assert access_service.stores_for_filtering(None) == set()

    @pytest.mark.parametrize("role", ["SUPER_ADMIN", "ADMIN"])
    def test_admin_roles_are_unrestricted(self, role):
        p = profile(role, stores={1: True}, assigned_store=2)
        assert access_service.stores_for_filtering(p) == set()

    def test_owner_with_all_stores_capability(self):
        p = profile("OWNER", stores={1: True}, permissions={"canAccessAllStores": True})
        assert access_service.stores_for_filtering(p) == set()

    def test_owner_without_all_stores_sees_memberships_and_owned(self):
        p = profile("OWNER", stores={1: True, 2: False}, owned_stores={7})
        assert access_service.stores_for_filtering(p) == {1, 7}

    def test_manager_memberships_plus_assigned_store(self):
        p = profile("MANAGER", stores={"s1": True, "s2": False}, assigned_store="s3")
        assert access_service.stores_for_filtering(p) == {"s1", "s3"}

    def test_staff_ignores_non_true_membership_values(self):
        p = profile("STAFF", stores={1: True, 2: False, 3: None})
        assert access_service.stores_for_filtering(p) == {1}

    def test_blank_assigned_store_is_ignored(self):
        p = profile("STAFF", stores={1: True}, assigned_store="")
        assert access_service.stores_for_filtering(p) == {1}


class TestHasPermission:

    def test_unloaded_profile_has_nothing(self):
        assert access_service.has_permission(None, "canManageRokar") is False

    def test_explicit_false_overrides_role_default(self):
        p = profile("MANAGER", permissions={"canManageRokar": False})
        assert access_service.has_permission(p, "canManageRokar") is False

    def test_explicit_true_grants_beyond_role_default(self):
        p = profile("STAFF", permissions={"canManageRokar": True})
        assert access_service.has_permission(p, "canManageRokar") is True

    def test_absent_key_falls_back_to_role_default(self):
        assert access_service.has_permission(profile("MANAGER"), "canManageAttendance") is True
        assert access_service.has_permission(profile("STAFF"), "canManageAttendance") is False

    def test_super_admin_holds_every_capability(self):
        p = profile("SUPER_ADMIN")
        assert all(access_service.effective_permissions(p).values())


class TestRoleGates:

    def test_unknown_gate_raises(self):
        with pytest.raises(KeyError):
            access_service.passes_role_gate(profile("ADMIN"), "noSuchGate")

    def test_unloaded_profile_fails_every_gate(self):
        assert not any(access_service.passes_role_gate(None, gate) for gate in ROLE_GATES)

    def test_admin_console_is_admin_only(self):
        assert access_service.passes_role_gate(profile("ADMIN"), "adminConsole") is True
        assert access_service.passes_role_gate(profile("SUPER_ADMIN"), "adminConsole") is False

    def test_capability_grant_does_not_satisfy_gate(self):
        # OWNER holds canManageRokar by default but is outside the rokarEntry gate
        p = profile("OWNER", permissions={"canManageRokar": True})
        assert access_service.can_access(p, capability="canManageRokar") is True
        assert access_service.can_access(p, capability="canManageRokar", gate="rokarEntry") is False

    def test_gate_does_not_bypass_missing_capability(self):
        p = profile("MANAGER", permissions={"canManageRokar": False})
        assert access_service.can_access(p, capability="canManageRokar", gate="rokarEntry") is False

    def test_can_access_with_no_requirements(self):
        assert access_service.can_access(profile("STAFF")) is True
        assert access_service.can_access(None) is False


class TestCanAccessStore:

    def test_unrestricted_profile_reaches_any_store(self):
        assert access_service.can_access_store(profile("ADMIN"), 42) is True

    def test_scoped_profile(self):
        p = profile("MANAGER", stores={1: True, 2: False})
        assert access_service.can_access_store(p, 1) is True
        assert access_service.can_access_store(p, 2) is False

    def test_missing_store_or_profile(self):
        assert access_service.can_access_store(profile("ADMIN"), None) is False
        assert access_service.can_access_store(None, 1) is False


class TestProfileFromDict:

    def test_store_list_and_string_ids(self):
        p = UserProfile.from_dict({
            "email": "Staff@Example.com",
            "role": "staff",
            "stores": ["1", "2"],
            "assignedStore": "4",
        })
        assert p.email == "staff@example.com"
        assert p.role is Role.STAFF
        assert access_service.stores_for_filtering(p) == {1, 2, 4}

    def test_unknown_role_resolves_to_staff(self):
        p = UserProfile.from_dict({"email": "x@example.com", "role": "CASHIER"})
        assert p.role is Role.STAFF
