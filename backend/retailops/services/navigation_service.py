# Overview: Menu entries available to a profile, driven by capabilities and role gates.

from __future__ import annotations

from dataclasses import dataclass

from . import access_service


@dataclass(frozen=True)
class NavItem:
    key: str
    label: str
    path: str
    section: str
    capability: str | None = None
    gate: str | None = None

    def to_dict(self) -> dict:
        return {"key": self.key, "label": self.label, "path": self.path, "section": self.section}


NAV_ITEMS = (
    NavItem("dashboard", "Dashboard", "/dashboard", "home"),
    NavItem("stores", "Stores", "/stores", "home"),
    NavItem("adminConsole", "Admin Console", "/admin", "admin", gate="adminConsole"),
    NavItem("users", "User Management", "/users", "admin", capability="canManageUsers"),
    NavItem("storesAdmin", "Manage Stores", "/stores/admin", "admin", capability="canManageStores"),
    NavItem("rokarEntry", "Rokar Entry", "/rokar-entry", "finance", capability="canManageRokar", gate="rokarEntry"),
    NavItem("bulkUpload", "Bulk Upload", "/bulk-upload", "finance", capability="canManageRokar"),
    NavItem("rokarLedger", "Rokar Ledger", "/rokar", "finance", capability="canManageRokar"),
    NavItem("customers", "Customers", "/customers", "finance", capability="canManageCustomers"),
    NavItem("dues", "Dues", "/dues", "finance", capability="canManageDues"),
    NavItem("salary", "Salary", "/salary", "finance", capability="canManageSalary"),
    NavItem(
        "staffLedger", "Staff Payment Ledger", "/staff-ledger", "finance",
        capability="canManageSalary", gate="staffLedgerOperations",
    ),
    NavItem("attendance", "Attendance", "/attendance", "people", capability="canManageAttendance"),
    NavItem(
        "autoAttendance", "Auto Attendance", "/auto-attendance", "people",
        capability="canManageAttendance", gate="autoAttendance",
    ),
    NavItem("selfAttendance", "My Attendance", "/self-attendance", "people", gate="selfAttendance"),
    NavItem("leave", "Leave Approvals", "/leave", "people", capability="canManageLeave"),
    NavItem("tasks", "Tasks", "/tasks", "learning", capability="canManageTasks"),
    NavItem("trainings", "Trainings", "/trainings", "learning", capability="canManageTrainings"),
    NavItem("tests", "Tests", "/tests", "learning", capability="canManageTests"),
    NavItem("aiTraining", "AI Training", "/ai-training", "learning", capability="canUseAITraining"),
    NavItem("reports", "Reports", "/reports", "reports", capability="canViewReports"),
)


def navigation_for(profile) -> list[dict]:
    """Entries whose capability and role gate both pass; nothing for an unloaded profile."""
    if profile is None:
        return []
    return [
        item.to_dict()
        for item in NAV_ITEMS
        if access_service.can_access(profile, capability=item.capability, gate=item.gate)
    ]
