"""Tests for bearer token authentication."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from asthma_api.core.exceptions import (
    NoTokenError,
    TokenExpiredError,
    TokenInvalidError,
    UserNotFoundError,
)
from asthma_api.domain.entities.audit_event import AuditEventType
from asthma_api.domain.entities.user import Principal, Role
from asthma_api.infrastructure.auth.authenticator import Authenticator, extract_bearer_token
from asthma_api.infrastructure.persistence.models import UserModel


async def _add_user(session: AsyncSession, user_id: str = "user-1", role: Role = Role.PATIENT) -> UserModel:
    user = UserModel(id=user_id, email=f"{user_id}@example.com", password_hash="unused", role=role)
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
def authenticator(jwt_service, audit_sink) -> Authenticator:
    return Authenticator(jwt_service, audit_sink)


class TestExtractBearerToken:
    def test_bearer(self):
        assert extract_bearer_token({"authorization": "Bearer abc"}) == "abc"

    def test_scheme_is_case_insensitive(self):
        assert extract_bearer_token({"Authorization": "bearer abc"}) == "abc"

    @pytest.mark.parametrize(
        "headers",
        [
            {},
            {"authorization": ""},
            {"authorization": "Bearer"},
            {"authorization": "Bearer   "},
            {"authorization": "Basic dXNlcjpwYXNz"},
            {"authorization": "abc"},
        ],
    )
    def test_missing_or_wrong_scheme(self, headers):
        assert extract_bearer_token(headers) is None


@pytest.mark.asyncio
async def test_authenticate_success(authenticator, jwt_service, audit_sink, db_session):
    await _add_user(db_session)
    token = jwt_service.create_access_token(Principal(id="user-1", email="user-1@example.com", role=Role.PATIENT))

    principal = await authenticator.authenticate(
        {"authorization": f"Bearer {token}"},
        db_session,
        client_address="10.0.0.1",
        endpoint="/api/auth/me",
        method="GET",
    )

    assert principal == Principal(id="user-1", email="user-1@example.com", role=Role.PATIENT)
    [event] = audit_sink.of_type(AuditEventType.AUTH_SUCCESS)
    assert event.principal_id == "user-1"
    assert event.client_address == "10.0.0.1"
    assert event.endpoint == "/api/auth/me"


@pytest.mark.asyncio
async def test_role_comes_from_stored_user(authenticator, jwt_service, db_session):
    """A token minted before a role change carries the stored role."""
    await _add_user(db_session, role=Role.ADMIN)
    token = jwt_service.create_access_token(Principal(id="user-1", email="user-1@example.com", role=Role.PATIENT))

    principal = await authenticator.authenticate({"authorization": f"Bearer {token}"}, db_session)

    assert principal.role == Role.ADMIN


@pytest.mark.asyncio
async def test_no_token(authenticator, audit_sink, db_session):
    with pytest.raises(NoTokenError):
        await authenticator.authenticate({}, db_session)

    [event] = audit_sink.of_type(AuditEventType.AUTH_FAILED)
    assert event.reason == "NO_TOKEN"


@pytest.mark.asyncio
async def test_expired_token(authenticator, jwt_service, clock, audit_sink, db_session):
    await _add_user(db_session)
    token = jwt_service.create_access_token(Principal(id="user-1", email="user-1@example.com", role=Role.PATIENT))
    clock.advance(minutes=16)

    with pytest.raises(TokenExpiredError):
        await authenticator.authenticate({"authorization": f"Bearer {token}"}, db_session)

    [event] = audit_sink.of_type(AuditEventType.AUTH_FAILED)
    assert event.reason == "TOKEN_EXPIRED"


@pytest.mark.asyncio
async def test_refresh_token_rejected(authenticator, jwt_service, audit_sink, db_session):
    await _add_user(db_session)
    token = jwt_service.create_refresh_token(Principal(id="user-1", email="user-1@example.com", role=Role.PATIENT))

    with pytest.raises(TokenInvalidError) as exc_info:
        await authenticator.authenticate({"authorization": f"Bearer {token}"}, db_session)

    assert exc_info.value.code == "TOKEN_INVALID"
    [event] = audit_sink.of_type(AuditEventType.AUTH_FAILED)
    assert event.reason == "TOKEN_INVALID"


@pytest.mark.asyncio
async def test_garbage_token(authenticator, db_session):
    with pytest.raises(TokenInvalidError) as exc_info:
        await authenticator.authenticate({"authorization": "Bearer garbage"}, db_session)
    assert exc_info.value.message == "Invalid token"


@pytest.mark.asyncio
async def test_deleted_user(authenticator, jwt_service, audit_sink, db_session):
    token = jwt_service.create_access_token(Principal(id="ghost", email="ghost@example.com", role=Role.PATIENT))

    with pytest.raises(UserNotFoundError) as exc_info:
        await authenticator.authenticate({"authorization": f"Bearer {token}"}, db_session)

    assert exc_info.value.status_code == 401
    [event] = audit_sink.of_type(AuditEventType.AUTH_FAILED)
    assert event.reason == "USER_NOT_FOUND"
    assert event.principal_id == "ghost"
    assert not audit_sink.of_type(AuditEventType.AUTH_SUCCESS)
