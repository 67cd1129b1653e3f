"""Default role definitions for the dashboard.

1. admin  - every permission
2. editor - maintains pages, files and map pages
3. viewer - read-only access
"""

from typing import Dict, List
from .permissions import Permission


def _build_permissions(*perms: Permission) -> List[str]:
    return [p.value for p in perms]


ADMIN_PERMISSIONS = [p.value for p in Permission]

EDITOR_PERMISSIONS = _build_permissions(
    Permission.MANAGE_PAGES,
    Permission.VIEW_PAGES,
    Permission.EDIT_OWN_CONTENT,
    Permission.MANAGE_FILES,
    Permission.UPLOAD_FILES,
    Permission.VIEW_FILES,
    Permission.MANAGE_MAP_PAGES,
    Permission.VIEW_MAP_PAGES,
)

VIEWER_PERMISSIONS = _build_permissions(
    Permission.VIEW_PAGES,
    Permission.VIEW_FILES,
    Permission.VIEW_MAP_PAGES,
)


DEFAULT_ROLES: Dict[str, dict] = {
    "admin": {
        "name": "admin",
        "description": "Full access to content and administration",
        "permissions": ADMIN_PERMISSIONS,
    },
    "editor": {
        "name": "editor",
        "description": "Maintains pages, files and map pages",
        "permissions": EDITOR_PERMISSIONS,
    },
    "viewer": {
        "name": "viewer",
        "description": "Read-only access to published content",
        "permissions": VIEWER_PERMISSIONS,
    },
}


def get_default_role_permissions(role_key: str) -> List[str]:
    """Get permissions list for a default role."""
    role = DEFAULT_ROLES.get(role_key)
    if not role:
        raise ValueError(f"Unknown default role: {role_key}")
    return list(role["permissions"])
