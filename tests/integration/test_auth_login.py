"""Integration tests for POST /api/auth/login."""

import pytest
from httpx import AsyncClient

from asthma_api.domain.entities.audit_event import AuditEventType


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, registered_user, audit_sink):
    res = await client.post("/api/auth/login", json={"email": "a@x.com", "password": "Passw0rd"})

    assert res.status_code == 200
    data = res.json()
    assert data["success"] is True
    assert data["message"] == "Login successful"
    assert data["user"]["id"] == registered_user["user"]["id"]
    assert data["user"]["email"] == "a@x.com"
    assert data["tokens"]["accessToken"]
    assert data["tokens"]["refreshToken"]
    assert "passwordHash" not in res.text
    assert len(audit_sink.of_type(AuditEventType.LOGIN_SUCCESS)) == 1


@pytest.mark.asyncio
async def test_login_email_is_case_insensitive(client: AsyncClient, registered_user):
    res = await client.post("/api/auth/login", json={"email": "A@X.COM", "password": "Passw0rd"})

    assert res.status_code == 200


@pytest.mark.asyncio
async def test_login_failures_are_indistinguishable(client: AsyncClient, registered_user, audit_sink):
    wrong_password = await client.post(
        "/api/auth/login", json={"email": "a@x.com", "password": "WrongPass1"}
    )
    unknown_email = await client.post(
        "/api/auth/login", json={"email": "nobody@x.com", "password": "Passw0rd"}
    )

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json() == {"error": "Invalid credentials", "code": "INVALID_CREDENTIALS"}

    reasons = sorted(e.reason for e in audit_sink.of_type(AuditEventType.LOGIN_FAILED))
    assert reasons == ["INVALID_PASSWORD", "USER_NOT_FOUND"]


@pytest.mark.asyncio
async def test_login_validation(client: AsyncClient):
    res = await client.post("/api/auth/login", json={"email": "a@x.com", "password": ""})

    assert res.status_code == 400
    assert res.json()["code"] == "VALIDATION_ERROR"
