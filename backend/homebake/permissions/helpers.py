# Overview: Utility functions for permission lookups and validation.

from .roles import ALL_PERMISSIONS, DEFAULT_ROLE_PERMISSIONS


def get_role_permissions(role):
    """Permission codes granted to a role; unknown roles get nothing."""
    return set(DEFAULT_ROLE_PERMISSIONS.get(role, ()))


def validate_permission_code(code):
    """Check if a permission code is valid."""
    return code in ALL_PERMISSIONS
