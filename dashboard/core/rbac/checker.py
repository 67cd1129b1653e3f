"""Permission evaluation for the dashboard.

Pure functions: nothing here touches the store. A user is anything with
``permissions`` and ``is_active`` attributes, normally a
:class:`~dashboard.core.rbac.directory.ResolvedUser`.

Every ambiguous input denies: a missing user, an inactive user, a missing
or malformed permission set, and an empty list of candidate permissions.
"""

import json
from typing import Any, FrozenSet, Iterable, List, Union

from .permissions import Permission

PermissionLike = Union[str, Permission]


def _perm_str(permission: PermissionLike) -> str:
    return permission.value if isinstance(permission, Permission) else permission


def permission_list(raw: Any) -> List[str]:
    """
    Decode a stored permission set into a list of names, keeping stored order.

    Accepts a native collection (list, tuple, set, frozenset) or a
    JSON-encoded list. Anything else, including undecodable JSON, yields
    an empty list. Non-string members and duplicates are dropped; unordered
    collections come back sorted.
    """
    if raw is None:
        return []

    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return []

    if isinstance(raw, str):
        try:
            raw = json.loads(raw) if raw.strip() else []
        except ValueError:
            return []

    if isinstance(raw, (set, frozenset)):
        raw = sorted(p for p in raw if isinstance(p, (str, Permission)))

    if not isinstance(raw, (list, tuple)):
        return []

    return list(dict.fromkeys(_perm_str(p) for p in raw if isinstance(p, (str, Permission))))


def normalize_permissions(raw: Any) -> FrozenSet[str]:
    """Normalize a stored permission set into a frozenset of names."""
    return frozenset(permission_list(raw))


class PermissionChecker:
    """Checks membership against one normalized permission set."""

    def __init__(self, user_permissions: Any):
        """
        Args:
            user_permissions: Permission names as a collection or JSON string
        """
        self.permissions = normalize_permissions(user_permissions)

    def has_permission(self, permission: PermissionLike) -> bool:
        return _perm_str(permission) in self.permissions

    def has_any_permission(self, permissions: Iterable[PermissionLike]) -> bool:
        """Check if any of the given permissions is held. Empty input is False."""
        return any(self.has_permission(p) for p in permissions)


def has_permission(user, permission: PermissionLike) -> bool:
    """
    Check if a user has a specific permission.

    Args:
        user: Resolved user (or None)
        permission: Permission name or Permission member

    Returns:
        True only for an active user whose role grants the permission
    """
    if user is None or not getattr(user, "is_active", False):
        return False

    return PermissionChecker(getattr(user, "permissions", None)).has_permission(permission)


def has_any_permission(user, permissions: Iterable[PermissionLike]) -> bool:
    """
    Check if a user has at least one of the given permissions.

    An empty requirement list never authorizes.
    """
    return any(has_permission(user, p) for p in permissions)
