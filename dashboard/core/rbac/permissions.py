"""Permission vocabulary for the dashboard.

Permissions are flat capability names (e.g. ``manage_users``). The set is
closed: roles may store other strings, but nothing in the application ever
checks for them, so they grant nothing.
"""

from enum import Enum


class Permission(str, Enum):
    """Capabilities that can be granted to a role."""

    # Content
    MANAGE_PAGES = "manage_pages"
    VIEW_PAGES = "view_pages"
    EDIT_OWN_CONTENT = "edit_own_content"

    # Files
    MANAGE_FILES = "manage_files"
    UPLOAD_FILES = "upload_files"
    VIEW_FILES = "view_files"

    # Map pages
    MANAGE_MAP_PAGES = "manage_map_pages"
    VIEW_MAP_PAGES = "view_map_pages"

    # Administration
    MANAGE_SETTINGS = "manage_settings"
    MANAGE_USERS = "manage_users"
    MANAGE_ROLES = "manage_roles"
    VIEW_AUDIT_LOGS = "view_audit_logs"
    DELETE_RESOURCES = "delete_resources"

    def __str__(self) -> str:
        return self.value


PERMISSION_DESCRIPTIONS: dict[Permission, str] = {
    Permission.MANAGE_PAGES: "Create, edit and publish dashboard pages",
    Permission.VIEW_PAGES: "View dashboard pages",
    Permission.EDIT_OWN_CONTENT: "Edit content the user created",
    Permission.MANAGE_FILES: "Manage uploaded files and panoramas",
    Permission.UPLOAD_FILES: "Upload new files",
    Permission.VIEW_FILES: "View uploaded files",
    Permission.MANAGE_MAP_PAGES: "Create and edit map configurations",
    Permission.VIEW_MAP_PAGES: "View map pages",
    Permission.MANAGE_SETTINGS: "Change site settings",
    Permission.MANAGE_USERS: "Create, edit and deactivate users",
    Permission.MANAGE_ROLES: "Create, edit and delete roles",
    Permission.VIEW_AUDIT_LOGS: "Read the audit trail",
    Permission.DELETE_RESOURCES: "Delete pages, files and map configurations",
}


def is_valid_permission(perm_str: str) -> bool:
    """Check if a permission string is part of the vocabulary."""
    return perm_str in Permission._value2member_map_


def get_all_permissions() -> list[str]:
    """Get all valid permission strings."""
    return [p.value for p in Permission]
