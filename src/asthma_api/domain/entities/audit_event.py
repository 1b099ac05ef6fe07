"""Audit event entity for HIPAA-style access logging.

An audit event records a security-relevant action. It identifies the
principal by ID only; emails, passwords and raw tokens never appear.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class AuditEventType(str, Enum):
    """Names of audited security events."""

    AUTH_SUCCESS = "AUTH_SUCCESS"
    AUTH_FAILED = "AUTH_FAILED"
    AUTHORIZATION_FAILED = "AUTHORIZATION_FAILED"
    USER_REGISTERED = "USER_REGISTERED"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    TOKEN_REFRESH_FAILED = "TOKEN_REFRESH_FAILED"
    LOGOUT = "LOGOUT"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    PROFILE_UPDATED = "PROFILE_UPDATED"
    ONBOARDING_COMPLETED = "ONBOARDING_COMPLETED"


@dataclass(frozen=True)
class AuditEvent:
    """A single structured audit record.

    Attributes:
        event: Event name.
        principal_id: ID of the acting user, if known.
        client_address: Source address of the request.
        endpoint: Request path.
        method: HTTP method.
        reason: Failure reason tag (e.g. ``TOKEN_EXPIRED``).
        details: Additional non-PHI metadata.
        timestamp: When the event occurred (UTC).
    """

    event: AuditEventType
    principal_id: str | None = None
    client_address: str | None = None
    endpoint: str | None = None
    method: str | None = None
    reason: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_log_fields(self) -> dict[str, Any]:
        """Flatten the event into keyword fields for a structured logger."""
        fields = asdict(self)
        fields["audit_event"] = fields.pop("event").value
        fields["occurred_at"] = fields.pop("timestamp").isoformat()
        details = fields.pop("details")
        fields = {k: v for k, v in fields.items() if v is not None}
        if details:
            fields["details"] = details
        return fields
