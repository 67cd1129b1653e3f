"""Audit log query API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dashboard.api.deps import get_db, require_permission
from dashboard.api.schemas.common import GATE_RESPONSES
from dashboard.api.schemas.rbac import AuditLogListResponse, AuditLogResponse
from dashboard.core.rbac import Permission, ResolvedUser
from dashboard.db.models import AuditLog, User

router = APIRouter(prefix="/rbac", tags=["audit"], responses=GATE_RESPONSES)


@router.get("/audit-logs", response_model=AuditLogListResponse)
def list_audit_logs(
    db: Session = Depends(get_db),
    current_user: ResolvedUser = Depends(require_permission(Permission.VIEW_AUDIT_LOGS)),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    user_id: Optional[int] = None,
    action: Optional[str] = None,
    resource: Optional[str] = None,
):
    """
    List audit log entries, newest first.

    Supports filtering by actor, action and resource.
    """
    query = db.query(AuditLog, User.name, User.email).outerjoin(User, AuditLog.user_id == User.id)

    if user_id is not None:
        query = query.filter(AuditLog.user_id == user_id)

    if action:
        query = query.filter(AuditLog.action == action)

    if resource:
        pattern = resource.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        query = query.filter(AuditLog.resource.ilike(f"%{pattern}%", escape="\\"))

    total = query.count()
    rows = (
        query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )

    return AuditLogListResponse(
        logs=[
            AuditLogResponse(
                id=log.id,
                user_id=log.user_id,
                user_name=user_name,
                user_email=user_email,
                action=log.action,
                resource=log.resource,
                details=log.details,
                ip_address=log.ip_address,
                created_at=log.created_at,
            )
            for log, user_name, user_email in rows
        ],
        total=total,
        page=page,
        per_page=per_page,
    )
