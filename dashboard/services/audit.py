"""Audit recorder: best-effort, append-only trail of privileged actions.

Handlers call :meth:`AuditRecorder.record` after an action has succeeded.
Each call writes one row in its own session, so a failed audit write can
neither abort nor roll back the handler's transaction. Failures are logged
and swallowed; there is no retry and no queue.
"""

import ipaddress
import json
from typing import Any, Dict, Optional

from fastapi import Request

from dashboard.common.logger import get_logger
from dashboard.db.models.audit import AuditLog
from dashboard.db.session import Database

logger = get_logger(__name__)

# Width of audit_logs.ip_address
MAX_IP_LENGTH = 45

# Sensitive fields to redact from audit details
SENSITIVE_FIELDS = {
    "password",
    "password_hash",
    "token",
    "access_token",
    "refresh_token",
    "api_key",
    "secret",
    "client_secret",
}


def redact_sensitive(data: Any) -> Any:
    """Redact sensitive fields from data."""
    if isinstance(data, dict):
        return {
            k: "[REDACTED]" if str(k).lower() in SENSITIVE_FIELDS else redact_sensitive(v)
            for k, v in data.items()
        }
    elif isinstance(data, (list, tuple)):
        return [redact_sensitive(item) for item in data]
    return data


def serialize_details(details: Any) -> Any:
    """Turn an arbitrarily shaped payload into plain JSON data.

    ``None`` becomes ``{}``; values JSON cannot represent are stringified.
    """
    if details is None:
        return {}
    return json.loads(json.dumps(redact_sensitive(details), default=str))


def _valid_ip(value: Optional[str]) -> Optional[str]:
    """Return ``value`` stripped if it parses as an IPv4/IPv6 address."""
    if not value:
        return None
    value = value.strip()
    if len(value) > MAX_IP_LENGTH:
        return None
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return None
    return value


def get_client_ip(request: Request) -> Optional[str]:
    """Extract client IP from request, handling proxies.

    Proxy headers are caller-controlled; values that are not an address are
    skipped in favour of the next source.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        # First entry is the original client
        client_ip = _valid_ip(forwarded.split(",")[0])
        if client_ip:
            return client_ip

    real_ip = _valid_ip(request.headers.get("x-real-ip"))
    if real_ip:
        return real_ip

    if request.client:
        return _valid_ip(request.client.host) or request.client.host[:MAX_IP_LENGTH]

    return None


class AuditRecorder:
    """Appends audit log entries through an explicitly provided database."""

    def __init__(self, database: Database):
        self.database = database

    def record(
        self,
        user_id: Optional[int],
        action: str,
        resource: str,
        details: Any = None,
        ip_address: Optional[str] = None,
    ) -> bool:
        """
        Append one audit entry.

        Args:
            user_id: Acting user's id (None if unknown)
            action: Short verb/category, e.g. ``create_role``
            resource: Object acted upon, e.g. ``role:7``
            details: Any structured payload; serialized to JSON
            ip_address: Origin address of the request

        Returns:
            True if the entry was written, False if the write was dropped
        """
        try:
            entry = AuditLog.create_entry(
                action=action,
                resource=resource,
                user_id=user_id,
                details=serialize_details(details),
                ip_address=ip_address,
            )
            with self.database.session() as db:
                db.add(entry)
                db.commit()
        except Exception:
            # Never let audit failures affect the request
            logger.error(
                "Audit write dropped: action=%s resource=%s user_id=%s",
                action,
                resource,
                user_id,
                exc_info=True,
            )
            return False

        logger.debug("Audit entry written: action=%s resource=%s", action, resource)
        return True

    def record_from_request(
        self,
        request: Request,
        action: str,
        resource: str,
        details: Any = None,
    ) -> bool:
        """Record an action taken by the user the gate attached to ``request``."""
        user = getattr(request.state, "user", None)
        return self.record(
            user_id=getattr(user, "id", None),
            action=action,
            resource=resource,
            details=details,
            ip_address=get_client_ip(request),
        )
