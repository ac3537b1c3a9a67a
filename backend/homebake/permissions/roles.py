# Overview: Static role to permission mapping.

from ..models.auth import ROLE_OWNER, ROLE_MANAGER, ROLE_SALES_REP
from .definitions import PERMISSION_DEFINITIONS


ALL_PERMISSIONS = [perm[0] for perm in PERMISSION_DEFINITIONS]

DEFAULT_ROLE_PERMISSIONS = {
    # Owner: full access, except submitting an end-of-shift report
    ROLE_OWNER: [code for code in ALL_PERMISSIONS if code != "END_SHIFT"],

    # Manager: production floor, read access to staff and sales
    ROLE_MANAGER: [
        "VIEW_USERS",
        "VIEW_STAFF_ONLINE",
        "VIEW_BREAD_TYPES",
        "VIEW_BATCHES",
        "MANAGE_BATCHES",
        "RECORD_PRODUCTION",
        "VIEW_PRODUCTION",
        "EXPORT_BATCHES",
        "RECORD_SALE",
        "VIEW_SALES",
        "VIEW_ALL_SALES",
        "VIEW_INVENTORY",
        "VIEW_SHIFT_REPORTS",
        "VIEW_REPORTS",
        "EXPORT_REPORTS",
        "VIEW_CHANGE_FEED",
        "MANAGE_OWN_NOTIFICATIONS",
    ],

    # Sales rep: own sales and shift close-out
    ROLE_SALES_REP: [
        "VIEW_BREAD_TYPES",
        "VIEW_PRODUCTION",
        "RECORD_SALE",
        "VIEW_SALES",
        "END_SHIFT",
        "VIEW_INVENTORY",
        "VIEW_CHANGE_FEED",
        "MANAGE_OWN_NOTIFICATIONS",
    ],
}
