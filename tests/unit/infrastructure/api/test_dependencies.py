"""Tests for the role-based authorization dependency."""

import pytest
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient

from asthma_api.domain.entities.audit_event import AuditEventType
from asthma_api.domain.entities.user import Principal, Role
from asthma_api.infrastructure.api.dependencies import AdminPrincipal, require_role
from asthma_api.infrastructure.persistence.models import UserModel


@pytest.fixture
def guarded_app(app: FastAPI) -> FastAPI:
    @app.get("/api/admin/ping")
    async def admin_ping(principal: AdminPrincipal):
        return {"id": principal.id}

    @app.get("/api/any-role", dependencies=[Depends(require_role(Role.PATIENT, "ADMIN"))])
    async def any_role():
        return {"ok": True}

    return app


async def _token_for(db_session, jwt_service, role: Role) -> str:
    user = UserModel(id=f"{role.value.lower()}-1", email=f"{role.value.lower()}@example.com", password_hash="unused", role=role)
    db_session.add(user)
    await db_session.commit()
    return jwt_service.create_access_token(Principal(id=user.id, email=user.email, role=role))


@pytest.mark.asyncio
async def test_admin_allowed(guarded_app, db_session, jwt_service):
    token = await _token_for(db_session, jwt_service, Role.ADMIN)

    async with AsyncClient(transport=ASGITransport(app=guarded_app), base_url="http://test") as ac:
        res = await ac.get("/api/admin/ping", headers={"Authorization": f"Bearer {token}"})

    assert res.status_code == 200
    assert res.json() == {"id": "admin-1"}


@pytest.mark.asyncio
async def test_patient_forbidden(guarded_app, db_session, jwt_service, audit_sink):
    token = await _token_for(db_session, jwt_service, Role.PATIENT)

    async with AsyncClient(transport=ASGITransport(app=guarded_app), base_url="http://test") as ac:
        res = await ac.get("/api/admin/ping", headers={"Authorization": f"Bearer {token}"})

    assert res.status_code == 403
    assert res.json() == {"error": "Insufficient permissions", "code": "INSUFFICIENT_PERMISSIONS"}
    [event] = audit_sink.of_type(AuditEventType.AUTHORIZATION_FAILED)
    assert event.principal_id == "patient-1"
    assert event.details == {"required_roles": ["ADMIN"]}


@pytest.mark.asyncio
async def test_unauthenticated_is_401_not_403(guarded_app):
    async with AsyncClient(transport=ASGITransport(app=guarded_app), base_url="http://test") as ac:
        res = await ac.get("/api/admin/ping")

    assert res.status_code == 401
    assert res.json()["code"] == "NO_TOKEN"


@pytest.mark.asyncio
async def test_multiple_roles(guarded_app, db_session, jwt_service):
    token = await _token_for(db_session, jwt_service, Role.PATIENT)

    async with AsyncClient(transport=ASGITransport(app=guarded_app), base_url="http://test") as ac:
        res = await ac.get("/api/any-role", headers={"Authorization": f"Bearer {token}"})

    assert res.status_code == 200


def test_require_role_needs_roles():
    with pytest.raises(ValueError):
        require_role()


def test_require_role_rejects_unknown_role():
    with pytest.raises(ValueError):
        require_role("SUPERUSER")
