"""RBAC (Role-Based Access Control) module for the dashboard.

This module defines the permission vocabulary, default roles, the user
directory and the permission evaluator.
"""

from .permissions import Permission, get_all_permissions, is_valid_permission
from .checker import (
    PermissionChecker,
    has_any_permission,
    has_permission,
    normalize_permissions,
    permission_list,
)
from .directory import ResolvedUser, UserDirectory

__all__ = [
    "Permission",
    "get_all_permissions",
    "is_valid_permission",
    "PermissionChecker",
    "has_permission",
    "has_any_permission",
    "normalize_permissions",
    "permission_list",
    "ResolvedUser",
    "UserDirectory",
]
