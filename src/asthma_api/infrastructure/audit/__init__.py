"""Audit logging infrastructure."""

from asthma_api.infrastructure.audit.audit_logger import (
    AuditSink,
    InMemoryAuditSink,
    StructlogAuditSink,
)

__all__ = ["AuditSink", "InMemoryAuditSink", "StructlogAuditSink"]
