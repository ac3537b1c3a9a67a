# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    USERS = "USERS"
    CATALOG = "CATALOG"
    PRODUCTION = "PRODUCTION"
    SALES = "SALES"
    INVENTORY = "INVENTORY"
    REPORTS = "REPORTS"
    NOTIFICATIONS = "NOTIFICATIONS"
