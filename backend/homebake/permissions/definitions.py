# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- USERS --

USER_PERMISSIONS = [
    (
        "VIEW_USERS",
        "View Users",
        "View staff accounts and their roles",
        PermissionCategory.USERS,
    ),
    (
        "MANAGE_USERS",
        "Manage Users",
        "Change roles, deactivate, reactivate and delete staff accounts",
        PermissionCategory.USERS,
    ),
    (
        "CREATE_INVITES",
        "Create Invites",
        "Issue and revoke QR signup invites",
        PermissionCategory.USERS,
    ),
    (
        "VIEW_STAFF_ONLINE",
        "View Staff Online",
        "See which staff members were active recently",
        PermissionCategory.USERS,
    ),
    (
        "VIEW_AUDIT_LOG",
        "View Audit Log",
        "View user-management and authorization audit events",
        PermissionCategory.USERS,
    ),
]


# -- CATALOG --

CATALOG_PERMISSIONS = [
    (
        "VIEW_BREAD_TYPES",
        "View Bread Types",
        "View bread types and prices",
        PermissionCategory.CATALOG,
    ),
    (
        "MANAGE_BREAD_TYPES",
        "Manage Bread Types",
        "Create, edit and remove bread types",
        PermissionCategory.CATALOG,
    ),
]


# -- PRODUCTION --

PRODUCTION_PERMISSIONS = [
    (
        "VIEW_BATCHES",
        "View Batches",
        "View production batches and batch statistics",
        PermissionCategory.PRODUCTION,
    ),
    (
        "MANAGE_BATCHES",
        "Manage Batches",
        "Create, update, complete, cancel and delete batches",
        PermissionCategory.PRODUCTION,
    ),
    (
        "RECORD_PRODUCTION",
        "Record Production",
        "Record produced quantities per bread type and shift",
        PermissionCategory.PRODUCTION,
    ),
    (
        "VIEW_PRODUCTION",
        "View Production",
        "View production logs",
        PermissionCategory.PRODUCTION,
    ),
    (
        "EXPORT_BATCHES",
        "Export Batches",
        "Download batch lists as CSV",
        PermissionCategory.PRODUCTION,
    ),
]


# -- SALES --

SALES_PERMISSIONS = [
    (
        "RECORD_SALE",
        "Record Sale",
        "Record bread sales for the current shift",
        PermissionCategory.SALES,
    ),
    (
        "VIEW_SALES",
        "View Own Sales",
        "View sales recorded by yourself",
        PermissionCategory.SALES,
    ),
    (
        "VIEW_ALL_SALES",
        "View All Sales",
        "View sales recorded by any staff member",
        PermissionCategory.SALES,
    ),
    (
        "END_SHIFT",
        "End Shift",
        "Submit end-of-shift sales, remaining bread and feedback",
        PermissionCategory.SALES,
    ),
]


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (
        "VIEW_INVENTORY",
        "View Inventory",
        "View available stock per bread type and shift",
        PermissionCategory.INVENTORY,
    ),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (
        "VIEW_REPORTS",
        "View Reports",
        "View shift and date-range sales reports",
        PermissionCategory.REPORTS,
    ),
    (
        "EXPORT_REPORTS",
        "Export Reports",
        "Export reports as CSV, JSON, text or XLSX",
        PermissionCategory.REPORTS,
    ),
    (
        "VIEW_SHIFT_REPORTS",
        "View Shift Reports",
        "View submitted end-of-shift reports",
        PermissionCategory.REPORTS,
    ),
    (
        "VIEW_ACTIVITIES",
        "View Activities",
        "View the staff activity feed",
        PermissionCategory.REPORTS,
    ),
    (
        "VIEW_CHANGE_FEED",
        "View Change Feed",
        "Poll activity ids and types to refresh cached data",
        PermissionCategory.REPORTS,
    ),
]


# -- NOTIFICATIONS --

NOTIFICATION_PERMISSIONS = [
    (
        "MANAGE_OWN_NOTIFICATIONS",
        "Manage Own Notifications",
        "Subscribe to push notifications and change preferences",
        PermissionCategory.NOTIFICATIONS,
    ),
    (
        "TRIGGER_PUSH",
        "Trigger Push",
        "Send push notifications manually",
        PermissionCategory.NOTIFICATIONS,
    ),
    (
        "VIEW_PUSH_MONITORING",
        "View Push Monitoring",
        "View push delivery metrics and run cleanup",
        PermissionCategory.NOTIFICATIONS,
    ),
]


# Combined list of all permissions
PERMISSION_DEFINITIONS = (
    USER_PERMISSIONS
    + CATALOG_PERMISSIONS
    + PRODUCTION_PERMISSIONS
    + SALES_PERMISSIONS
    + INVENTORY_PERMISSIONS
    + REPORT_PERMISSIONS
    + NOTIFICATION_PERMISSIONS
)
