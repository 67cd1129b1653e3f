"""Exception classes for the dashboard access-control layer.

Every :class:`DashboardError` carries the HTTP status it maps to; the API
renders them as ``{"error": message, ...payload}``.
"""

from typing import Any, Dict, List, Optional, Union

from fastapi import status


class DashboardError(Exception):
    """Base exception for the dashboard service."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)

    def payload(self) -> Dict[str, Any]:
        """Extra fields included in the JSON error body."""
        return {}


class AuthenticationRequiredError(DashboardError):
    """Raised when the request carries no caller identity."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class UserUnresolvableError(DashboardError):
    """Raised when the identity does not resolve to an active user.

    Deliberately 403 rather than 404 so the response does not confirm
    whether the identity exists.
    """

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "User not found or inactive"):
        super().__init__(message)


class PermissionDeniedError(DashboardError):
    """Raised when a resolved user lacks the required permission(s)."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(
        self,
        required: Union[str, List[str]],
        message: str = "Insufficient permissions",
    ):
        self.required = required
        super().__init__(message)

    def payload(self) -> Dict[str, Any]:
        return {"required": self.required}


class StorageUnavailableError(DashboardError):
    """Raised when a round trip to the backing store fails."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str = "Storage unavailable", cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class ResourceNotFoundError(DashboardError):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ResourceConflictError(DashboardError):
    """Raised when a resource already exists."""

    status_code = status.HTTP_409_CONFLICT


class ValidationError(DashboardError):
    """Raised when input validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST
