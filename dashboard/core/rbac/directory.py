"""User directory lookup.

Resolves an identity key (the caller's email, matched case-insensitively) to
an active user joined with its role. The lookup is fail-closed: unknown
users, inactive users, blank identities and store failures all come back as
``None``.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from dashboard.common.logger import get_logger
from dashboard.core.exceptions import StorageUnavailableError
from dashboard.db.models import Role, User
from dashboard.db.session import Database

from .checker import normalize_permissions

logger = get_logger(__name__)


@dataclass(frozen=True)
class ResolvedUser:
    """An active user with its role's permissions, valid for one request."""

    id: int
    email: str
    name: Optional[str]
    role_id: Optional[int]
    role_name: Optional[str]
    permissions: FrozenSet[str]
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role_id": self.role_id,
            "role_name": self.role_name,
            "permissions": sorted(self.permissions),
            "is_active": self.is_active,
            "last_login": self.last_login.isoformat() if self.last_login else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class UserDirectory:
    """Looks users up in the relational store, one round trip per call."""

    def __init__(self, database: Database):
        self.database = database

    def find_active_user(self, identity: str) -> Optional[ResolvedUser]:
        """
        Query the store for an active user by identity key.

        Returns:
            The resolved user, or None when no active user matches

        Raises:
            StorageUnavailableError: If the round trip fails
        """
        stmt = (
            select(User, Role.name, Role.permissions)
            .outerjoin(Role, User.role_id == Role.id)
            .where(func.lower(User.email) == identity.lower(), User.is_active.is_(True))
        )
        try:
            with self.database.session() as db:
                row = db.execute(stmt).first()
        except SQLAlchemyError as exc:
            raise StorageUnavailableError("User lookup failed", cause=exc) from exc

        if row is None:
            return None

        user, role_name, raw_permissions = row
        return ResolvedUser(
            id=user.id,
            email=user.email,
            name=user.name,
            role_id=user.role_id,
            role_name=role_name,
            permissions=normalize_permissions(raw_permissions),
            is_active=bool(user.is_active),
            last_login=user.last_login,
            created_at=user.created_at,
        )

    def lookup(self, identity: Optional[str]) -> Optional[ResolvedUser]:
        """
        Resolve an identity key to an active user, or None.

        Never raises: a failed lookup is logged for operators and treated
        exactly like an unknown user.
        """
        if not isinstance(identity, str) or not identity.strip():
            return None

        try:
            return self.find_active_user(identity.strip())
        except StorageUnavailableError as exc:
            logger.error("User lookup failed, denying access: %s", exc.cause or exc, exc_info=exc)
            return None
        except Exception:
            logger.exception("Unexpected error during user lookup, denying access")
            return None
