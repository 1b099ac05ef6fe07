"""Tests for audit sinks."""

from unittest.mock import MagicMock, patch

from asthma_api.domain.entities.audit_event import AuditEvent, AuditEventType
from asthma_api.infrastructure.audit import AuditSink, InMemoryAuditSink, StructlogAuditSink


def test_in_memory_sink_records_events():
    sink = InMemoryAuditSink()

    sink.emit(AuditEvent(event=AuditEventType.LOGOUT, principal_id="u1"))
    sink.emit(AuditEvent(event=AuditEventType.AUTH_SUCCESS, principal_id="u1"))

    assert len(sink.events) == 2
    assert [e.principal_id for e in sink.of_type(AuditEventType.LOGOUT)] == ["u1"]


def test_structlog_sink_levels():
    sink = StructlogAuditSink()
    sink._logger = MagicMock()

    sink.emit(AuditEvent(event=AuditEventType.LOGIN_SUCCESS, principal_id="u1"))
    sink.emit(AuditEvent(event=AuditEventType.LOGIN_FAILED, reason="INVALID_PASSWORD"))

    info_call = sink._logger.info.call_args
    assert info_call.args == ("Audit event",)
    assert info_call.kwargs["audit_event"] == "LOGIN_SUCCESS"
    assert info_call.kwargs["principal_id"] == "u1"

    warning_call = sink._logger.warning.call_args
    assert warning_call.kwargs["audit_event"] == "LOGIN_FAILED"
    assert warning_call.kwargs["reason"] == "INVALID_PASSWORD"


def test_failing_sink_never_raises():
    class BrokenSink(AuditSink):
        def write(self, event):
            raise RuntimeError("disk full")

    with patch("asthma_api.infrastructure.audit.audit_logger.logger") as mock_logger:
        BrokenSink().emit(AuditEvent(event=AuditEventType.LOGOUT))

    mock_logger.error.assert_called_once()
    assert mock_logger.error.call_args.kwargs["error_type"] == "RuntimeError"
