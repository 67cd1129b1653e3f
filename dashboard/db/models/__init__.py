"""Database models for the dashboard access-control layer."""

from dashboard.db.models.role import Role
from dashboard.db.models.user import User
from dashboard.db.models.audit import AuditLog

__all__ = [
    "Role",
    "User",
    "AuditLog",
]
