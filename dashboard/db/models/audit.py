"""Audit log model for the dashboard.

This table is APPEND-ONLY: the application has no update or delete path,
and on PostgreSQL database triggers reject UPDATE and DELETE outright.
"""

from datetime import datetime
from typing import Optional, Dict, Any
from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey
from sqlalchemy.orm import relationship

from dashboard.db.base import Base


class AuditLog(Base):
    """Immutable record of a privileged action."""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Actor (None when the actor is unknown)
    user_id = Column(Integer, ForeignKey("rbac_users.id"), nullable=True, index=True)
    ip_address = Column(String(45), nullable=True)

    # Action details
    action = Column(String(100), nullable=False, index=True)
    resource = Column(String(255), nullable=False, index=True)
    details = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # Relationships (read-only for querying)
    user = relationship("User", back_populates="audit_logs")

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} on {self.resource} by user {self.user_id}>"

    @classmethod
    def create_entry(
        cls,
        action: str,
        resource: str,
        *,
        user_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
    ) -> "AuditLog":
        """
        Factory method to create a new audit log entry.

        Args:
            action: Action performed (e.g., 'create_user', 'update_role')
            resource: Object acted upon (e.g., 'user:12', 'role:editor')
            user_id: ID of the acting user (None if unknown)
            details: Already-serializable structured context
            ip_address: Client IP address
        """
        return cls(
            action=action,
            resource=resource,
            user_id=user_id,
            details=details if details is not None else {},
            ip_address=ip_address,
        )
