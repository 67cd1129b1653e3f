"""FastAPI dependencies: database access and the access-control gate.

Gate states per request::

    Unauthenticated --(identity header)--> Authenticated --(lookup + check)--> Authorized
          |                                      |
          +-- 401 AuthenticationRequired         +-- 403 UserUnresolvable / PermissionDenied

The gate keeps no state between requests: each request re-resolves the user,
so role edits apply on the next request. It never writes audit entries;
handlers do that through :func:`record_action` once an action has happened.
"""

from functools import partial
from typing import Callable, Generator, List, Sequence, Union

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from dashboard.common.logger import get_logger
from dashboard.core.config import Settings, get_settings
from dashboard.core.exceptions import (
    AuthenticationRequiredError,
    PermissionDeniedError,
    UserUnresolvableError,
)
from dashboard.core.rbac import Permission, ResolvedUser, UserDirectory
from dashboard.core.rbac.checker import has_any_permission, has_permission
from dashboard.db.session import Database
from dashboard.services.audit import AuditRecorder

logger = get_logger(__name__)

RecordAction = Callable[..., bool]


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_db(database: Database = Depends(get_database)) -> Generator[Session, None, None]:
    """Database session dependency."""
    db = database.new_session()
    try:
        yield db
    finally:
        db.close()


def get_directory(request: Request) -> UserDirectory:
    directory = getattr(request.app.state, "directory", None)
    if directory is None:
        directory = UserDirectory(get_database(request))
    return directory


def get_audit_recorder(request: Request) -> AuditRecorder:
    recorder = getattr(request.app.state, "audit_recorder", None)
    if recorder is None:
        recorder = AuditRecorder(get_database(request))
    return recorder


def require_identity(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> str:
    """Extract the caller's identity key. No store access happens here."""
    identity = request.headers.get(settings.identity_header)
    if identity is None or not identity.strip():
        raise AuthenticationRequiredError()
    identity = identity.strip()
    request.state.identity = identity
    return identity


def _resolve_user(request: Request, identity: str, directory: UserDirectory) -> ResolvedUser:
    user = directory.lookup(identity)
    if user is None:
        logger.warning("Access denied: identity does not resolve to an active user (path=%s)", request.url.path)
        raise UserUnresolvableError()
    return user


def get_current_user(
    request: Request,
    identity: str = Depends(require_identity),
    directory: UserDirectory = Depends(get_directory),
) -> ResolvedUser:
    """Resolve the caller to an active user without checking permissions."""
    user = _resolve_user(request, identity, directory)
    request.state.user = user
    return user


class PermissionGate:
    """
    Dependency that admits only users holding the required permission(s).

    Usage:
        @router.get("/users")
        def list_users(current_user: ResolvedUser = Depends(require_permission("manage_users"))):
            ...
    """

    def __init__(self, permissions: Sequence[Union[str, Permission]], *, any_of: bool = False):
        self.permissions: List[str] = [
            p.value if isinstance(p, Permission) else p for p in permissions
        ]
        self.any_of = any_of

    @property
    def required(self) -> Union[str, List[str]]:
        if self.any_of:
            return list(self.permissions)
        return self.permissions[0] if len(self.permissions) == 1 else list(self.permissions)

    def __call__(
        self,
        request: Request,
        identity: str = Depends(require_identity),
        directory: UserDirectory = Depends(get_directory),
    ) -> ResolvedUser:
        user = _resolve_user(request, identity, directory)

        if self.any_of:
            allowed = has_any_permission(user, self.permissions)
        else:
            # every listed permission must be held; a gate with none admits nobody
            allowed = bool(self.permissions) and all(
                has_permission(user, p) for p in self.permissions
            )

        if not allowed:
            logger.warning(
                "Access denied: user_id=%s lacks %s (path=%s)",
                user.id,
                self.required,
                request.url.path,
            )
            raise PermissionDeniedError(required=self.required)

        request.state.user = user
        return user


def require_permission(permission: Union[str, Permission]) -> PermissionGate:
    """Gate requiring a single permission."""
    return PermissionGate([permission])


def require_any_permission(permissions: Sequence[Union[str, Permission]]) -> PermissionGate:
    """Gate requiring at least one of ``permissions``. An empty list admits nobody."""
    return PermissionGate(list(permissions), any_of=True)


def record_action(
    request: Request,
    recorder: AuditRecorder = Depends(get_audit_recorder),
) -> RecordAction:
    """
    Provide a callable handlers use to audit an action after it succeeds.

    Usage:
        record(action="create_role", resource=f"role:{role.id}", details={...})
    """
    return partial(recorder.record_from_request, request)

