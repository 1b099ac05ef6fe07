"""Audit log sinks.

Audit events are fire-and-forget: a failing sink is logged and ignored so
it can never break the request that produced the event.
"""

from abc import ABC, abstractmethod

from asthma_api.core.logging import get_logger
from asthma_api.domain.entities.audit_event import AuditEvent, AuditEventType

logger = get_logger(__name__)

# Events logged at warning level
_WARNING_EVENTS = {
    AuditEventType.AUTH_FAILED,
    AuditEventType.AUTHORIZATION_FAILED,
    AuditEventType.LOGIN_FAILED,
    AuditEventType.TOKEN_REFRESH_FAILED,
    AuditEventType.RATE_LIMIT_EXCEEDED,
}


class AuditSink(ABC):
    """Destination for audit events."""

    def emit(self, event: AuditEvent) -> None:
        """Record an event, never raising."""
        try:
            self.write(event)
        except Exception as e:
            logger.error(
                "Audit sink failed",
                audit_event=event.event.value,
                error_type=type(e).__name__,
            )

    @abstractmethod
    def write(self, event: AuditEvent) -> None:
        """Persist or forward a single event."""


class StructlogAuditSink(AuditSink):
    """Writes audit events to the ``asthma_api.audit`` structured logger."""

    def __init__(self, logger_name: str = "asthma_api.audit") -> None:
        self._logger = get_logger(logger_name)

    def write(self, event: AuditEvent) -> None:
        fields = event.to_log_fields()
        if event.event in _WARNING_EVENTS:
            self._logger.warning("Audit event", **fields)
        else:
            self._logger.info("Audit event", **fields)


class InMemoryAuditSink(AuditSink):
    """Keeps events in a list. Used by tests and local tooling."""

    def __init__(self) -> None:
        self.events: list[AuditEvent] = []

    def write(self, event: AuditEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: AuditEventType) -> list[AuditEvent]:
        """Return recorded events with the given name."""
        return [e for e in self.events if e.event == event_type]
