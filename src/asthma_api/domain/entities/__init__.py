"""Domain entities."""

from asthma_api.domain.entities.audit_event import AuditEvent, AuditEventType
from asthma_api.domain.entities.user import ChildSex, Principal, Role, normalize_email

__all__ = [
    "AuditEvent",
    "AuditEventType",
    "ChildSex",
    "Principal",
    "Role",
    "normalize_email",
]
