# Overview: Pytest coverage for capability- and gate-driven navigation.

from retailops.permissions import Role
from retailops.services.navigation_service import navigation_for
from retailops.services.profile_service import UserProfile


def keys(role, permissions=None):
    profile = UserProfile(email="x@example.com", name="X", role=Role(role), permissions=permissions or {})
    return {item["key"] for item in navigation_for(profile)}


class TestNavigation:

    def test_unloaded_profile_gets_nothing(self):
        assert navigation_for(None) == []

    def test_staff_sees_home_and_self_attendance(self):
        assert keys("STAFF") == {"dashboard", "stores", "selfAttendance"}

    def test_rokar_entry_needs_capability_and_gate(self):
        assert "rokarEntry" in keys("MANAGER")
        assert "rokarEntry" in keys("ADMIN")
        assert "rokarEntry" not in keys("OWNER")
        assert "rokarEntry" not in keys("MANAGER", {"canManageRokar": False})
        # SUPER_ADMIN holds every capability but is outside the gate
        assert "rokarEntry" not in keys("SUPER_ADMIN")

    def test_admin_console_is_admin_only(self):
        assert "adminConsole" in keys("ADMIN")
        assert "adminConsole" not in keys("SUPER_ADMIN")

    def test_staff_ledger_is_manager_only(self):
        assert "staffLedger" in keys("MANAGER")
        assert "staffLedger" not in keys("OWNER")

    def test_granted_capability_adds_entry(self):
        assert "attendance" in keys("STAFF", {"canManageAttendance": True})
        assert "autoAttendance" not in keys("STAFF", {"canManageAttendance": True})

    def test_items_keep_declared_order(self):
        profile = UserProfile(email="a@example.com", name="A", role=Role.ADMIN)
        items = navigation_for(profile)
        assert items[0]["key"] == "dashboard"
        assert set(items[0]) == {"key", "label", "path", "section"}
