"""Tests for logging configuration and PHI redaction."""

import structlog

from asthma_api.core.config import Settings
from asthma_api.core.logging import (
    REDACTED,
    add_correlation_id,
    configure_logging,
    redact_sensitive_fields,
    rename_message_field,
)


def test_redacts_top_level_keys():
    event = {
        "event": "Login failed",
        "email": "a@x.com",
        "password": "Passw0rd",
        "refresh_token": "eyJ...",
        "Authorization": "Bearer eyJ...",
        "user_id": "user-1",
    }

    result = redact_sensitive_fields(None, "info", event)

    assert result["email"] == REDACTED
    assert result["password"] == REDACTED
    assert result["refresh_token"] == REDACTED
    assert result["Authorization"] == REDACTED
    assert result["user_id"] == "user-1"
    assert result["event"] == "Login failed"


def test_redacts_nested_values():
    event = {
        "event": "Profile",
        "details": {"child_first_name": "Sam", "zip_code": "02139", "step": 2},
        "items": [{"notes": "wheezing"}, {"count": 1}],
    }

    result = redact_sensitive_fields(None, "info", event)

    assert result["details"] == {"child_first_name": REDACTED, "zip_code": REDACTED, "step": 2}
    assert result["items"] == [{"notes": REDACTED}, {"count": 1}]


def test_correlation_id_kept_when_bound():
    assert add_correlation_id(None, "info", {"correlation_id": "cid_1"})["correlation_id"] == "cid_1"


def test_correlation_id_generated():
    assert add_correlation_id(None, "info", {})["correlation_id"].startswith("cid_")


def test_rename_message_field():
    assert rename_message_field(None, "info", {"event": "hello"}) == {"message": "hello"}


def test_json_output_is_redacted(capsys):
    configure_logging(Settings(jwt_secret="x", log_format="json", environment="production", _env_file=None))
    try:
        structlog.get_logger("test").info("Login attempt", email="a@x.com", user_id="u1")
        out = capsys.readouterr().out
    finally:
        structlog.reset_defaults()

    assert "a@x.com" not in out
    assert REDACTED in out
    assert '"message": "Login attempt"' in out
