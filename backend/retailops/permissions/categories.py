# Overview: Capability category constants for grouping related capabilities.


class PermissionCategory:
    """Capability categories for organization and UI display."""
    USERS = "USERS"
    STORES = "STORES"
    LEARNING = "LEARNING"
    FINANCE = "FINANCE"
    PEOPLE = "PEOPLE"
    REPORTS = "REPORTS"
