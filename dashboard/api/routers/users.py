"""User management API endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from dashboard.api.deps import (
    RecordAction,
    get_current_user,
    get_db,
    record_action,
    require_permission,
)
from dashboard.api.schemas.common import GATE_RESPONSES
from dashboard.api.schemas.rbac import (
    CurrentUserResponse,
    UserCreate,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from dashboard.core.exceptions import ResourceConflictError, ResourceNotFoundError
from dashboard.core.rbac import Permission, ResolvedUser
from dashboard.db.models import Role, User

router = APIRouter(prefix="/rbac", tags=["users"], responses=GATE_RESPONSES)


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role_id=user.role_id,
        role_name=user.role.name if user.role else None,
        is_active=user.is_active,
        last_login=user.last_login,
        created_at=user.created_at,
    )


def _ensure_role_exists(db: Session, role_id: int) -> None:
    if db.get(Role, role_id) is None:
        raise ResourceNotFoundError(f"Role {role_id} not found")


@router.get("/me", response_model=CurrentUserResponse)
def get_me(
    db: Session = Depends(get_db),
    current_user: ResolvedUser = Depends(get_current_user),
):
    """Return the caller's user record and effective permissions."""
    user = db.get(User, current_user.id)
    if user is not None:
        user.last_login = datetime.utcnow()
        db.commit()

    return CurrentUserResponse(
        id=current_user.id,
        email=current_user.email,
        name=current_user.name,
        role_id=current_user.role_id,
        role_name=current_user.role_name,
        is_active=current_user.is_active,
        last_login=user.last_login if user is not None else current_user.last_login,
        created_at=current_user.created_at,
        permissions=sorted(current_user.permissions),
    )


@router.get("/users", response_model=UserListResponse)
def list_users(
    db: Session = Depends(get_db),
    current_user: ResolvedUser = Depends(require_permission(Permission.MANAGE_USERS)),
):
    """List all users, newest first."""
    users = (
        db.query(User)
        .options(joinedload(User.role))
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )
    return UserListResponse(users=[_user_response(u) for u in users])


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user: ResolvedUser = Depends(require_permission(Permission.MANAGE_USERS)),
    record: RecordAction = Depends(record_action),
):
    """Create a user. Authentication itself happens upstream; only the directory entry is created here."""
    email = str(user_data.email).lower()
    if db.query(User).filter(func.lower(User.email) == email).first():
        raise ResourceConflictError(f"User with email {email} already exists")

    if user_data.role_id is not None:
        _ensure_role_exists(db, user_data.role_id)

    user = User(
        email=email,
        name=user_data.name,
        role_id=user_data.role_id,
        is_active=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ResourceConflictError(f"User with email {email} already exists")
    db.refresh(user)

    record(
        action="create_user",
        resource=f"user:{user.id}",
        details={"email": user.email, "name": user.name, "role_id": user.role_id},
    )
    return _user_response(user)


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: ResolvedUser = Depends(require_permission(Permission.MANAGE_USERS)),
    record: RecordAction = Depends(record_action),
):
    """Update a user's name, role or active flag. Users are never deleted."""
    user = db.get(User, user_id)
    if user is None:
        raise ResourceNotFoundError(f"User {user_id} not found")

    changes = user_data.model_dump(exclude_unset=True)
    if changes.get("role_id") is not None:
        _ensure_role_exists(db, changes["role_id"])
    if "is_active" in changes and changes["is_active"] is None:
        del changes["is_active"]

    old_values = {field: getattr(user, field) for field in changes}
    for field, value in changes.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)

    record(
        action="update_user",
        resource=f"user:{user.id}",
        details={"old": old_values, "new": changes},
    )
    return _user_response(user)
