"""Role management API endpoints."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dashboard.api.deps import (
    RecordAction,
    get_current_user,
    get_db,
    record_action,
    require_any_permission,
    require_permission,
)
from dashboard.api.schemas.common import GATE_RESPONSES
from dashboard.api.schemas.rbac import (
    PermissionInfo,
    RoleCreate,
    RoleListResponse,
    RoleResponse,
    RoleUpdate,
)
from dashboard.core.exceptions import (
    ResourceConflictError,
    ResourceNotFoundError,
    ValidationError,
)
from dashboard.core.rbac import Permission, ResolvedUser, is_valid_permission, permission_list
from dashboard.core.rbac.permissions import PERMISSION_DESCRIPTIONS
from dashboard.db.models import Role, User

router = APIRouter(prefix="/rbac", tags=["roles"], responses=GATE_RESPONSES)


def _clean_permissions(permissions: List[str]) -> List[str]:
    """Reject names outside the vocabulary and drop duplicates."""
    for perm in permissions:
        if not is_valid_permission(perm):
            raise ValidationError(f"Invalid permission: {perm}")
    return list(dict.fromkeys(permissions))


def _role_response(role: Role, user_count: int = 0) -> RoleResponse:
    return RoleResponse(
        id=role.id,
        name=role.name,
        description=role.description,
        permissions=permission_list(role.permissions),
        user_count=user_count,
        created_at=role.created_at,
    )


def _get_role(db: Session, role_id: int) -> Role:
    role = db.get(Role, role_id)
    if role is None:
        raise ResourceNotFoundError(f"Role {role_id} not found")
    return role


@router.get("/permissions", response_model=List[PermissionInfo])
def list_all_permissions(
    current_user: ResolvedUser = Depends(get_current_user),
):
    """List every permission a role can grant."""
    return [
        PermissionInfo(permission=p.value, description=PERMISSION_DESCRIPTIONS.get(p, ""))
        for p in Permission
    ]


@router.get("/roles", response_model=RoleListResponse)
def list_roles(
    db: Session = Depends(get_db),
    current_user: ResolvedUser = Depends(
        require_any_permission([Permission.MANAGE_ROLES, Permission.MANAGE_USERS])
    ),
):
    """List roles with the number of users assigned to each."""
    counts = dict(
        db.query(User.role_id, func.count(User.id))
        .filter(User.role_id.isnot(None))
        .group_by(User.role_id)
        .all()
    )
    roles = db.query(Role).order_by(Role.name).all()
    return RoleListResponse(roles=[_role_response(r, counts.get(r.id, 0)) for r in roles])


@router.post("/roles", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
def create_role(
    role_data: RoleCreate,
    db: Session = Depends(get_db),
    current_user: ResolvedUser = Depends(require_permission(Permission.MANAGE_ROLES)),
    record: RecordAction = Depends(record_action),
):
    """Create a role."""
    permissions = _clean_permissions(role_data.permissions)

    if db.query(Role).filter(Role.name == role_data.name).first():
        raise ResourceConflictError("Role with this name already exists")

    role = Role(
        name=role_data.name,
        description=role_data.description,
        permissions=permissions,
    )
    db.add(role)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ResourceConflictError("Role with this name already exists")
    db.refresh(role)

    record(
        action="create_role",
        resource=f"role:{role.id}",
        details={"name": role.name, "permissions": permissions},
    )
    return _role_response(role)


@router.put("/roles/{role_id}", response_model=RoleResponse)
def update_role(
    role_id: int,
    role_data: RoleUpdate,
    db: Session = Depends(get_db),
    current_user: ResolvedUser = Depends(require_permission(Permission.MANAGE_ROLES)),
    record: RecordAction = Depends(record_action),
):
    """Update a role. Permission changes apply to its users on their next request."""
    role = _get_role(db, role_id)
    old_values = {
        "name": role.name,
        "description": role.description,
        "permissions": permission_list(role.permissions),
    }

    if role_data.permissions is not None:
        role.permissions = _clean_permissions(role_data.permissions)

    if role_data.name is not None and role_data.name != role.name:
        existing = db.query(Role).filter(Role.name == role_data.name, Role.id != role_id).first()
        if existing:
            raise ResourceConflictError("Role with this name already exists")
        role.name = role_data.name

    if role_data.description is not None:
        role.description = role_data.description

    db.commit()
    db.refresh(role)

    user_count = db.query(User).filter(User.role_id == role.id).count()
    record(
        action="update_role",
        resource=f"role:{role.id}",
        details={
            "old": old_values,
            "new": {
                "name": role.name,
                "description": role.description,
                "permissions": permission_list(role.permissions),
            },
        },
    )
    return _role_response(role, user_count)


@router.delete("/roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_role(
    role_id: int,
    db: Session = Depends(get_db),
    current_user: ResolvedUser = Depends(require_permission(Permission.MANAGE_ROLES)),
    record: RecordAction = Depends(record_action),
):
    """Delete a role. Users holding it are left without a role, and so without permissions."""
    role = _get_role(db, role_id)
    role_name = role.name

    detached = (
        db.query(User)
        .filter(User.role_id == role_id)
        .update({User.role_id: None}, synchronize_session=False)
    )
    db.delete(role)
    db.commit()

    record(
        action="delete_role",
        resource=f"role:{role_id}",
        details={"name": role_name, "detached_users": detached},
    )
    return None
