"""Pytest configuration for all tests."""

import os

# Must be set before any settings are loaded
os.environ.setdefault("ASTHMA_API_JWT_SECRET", "test-secret-key-for-testing-only-0123456789")
os.environ["ASTHMA_API_ENVIRONMENT"] = "testing"

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from asthma_api.core.config import Settings, get_settings
from asthma_api.infrastructure.api.app import create_app
from asthma_api.infrastructure.api.middleware import InMemoryRateLimitStore
from asthma_api.infrastructure.audit import InMemoryAuditSink
from asthma_api.infrastructure.auth.jwt_service import JWTService
from asthma_api.infrastructure.persistence import models  # noqa: F401
from asthma_api.infrastructure.persistence.database import Base, get_db_session

TEST_SECRET = os.environ["ASTHMA_API_JWT_SECRET"]

get_settings.cache_clear()


class FakeClock:
    """Controllable UTC clock for token issuance and expiry."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(jwt_secret=TEST_SECRET, environment="testing", _env_file=None)


@pytest.fixture
def jwt_service(clock: FakeClock) -> JWTService:
    return JWTService(secret_key=TEST_SECRET, clock=clock)


@pytest.fixture
def audit_sink() -> InMemoryAuditSink:
    return InMemoryAuditSink()


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session.

    Uses an in-memory SQLite database for testing.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session_maker() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def app(
    settings: Settings,
    jwt_service: JWTService,
    audit_sink: InMemoryAuditSink,
    db_session: AsyncSession,
) -> FastAPI:
    """Application wired to the test clock, audit sink and database."""
    application = create_app(
        settings,
        jwt_service=jwt_service,
        rate_limit_store=InMemoryRateLimitStore(),
        audit_sink=audit_sink,
    )
    application.dependency_overrides[get_db_session] = lambda: db_session
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with overridden database dependency."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def _register_payload(email: str = "a@x.com", password: str = "Passw0rd", **overrides) -> dict:
    """Valid registration body."""
    payload = {
        "email": email,
        "password": password,
        "confirmPassword": password,
        "termsAccepted": True,
        "hipaaNoticeAcknowledged": True,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def register_body():
    """Factory for registration bodies: ``register_body(email=..., **overrides)``."""
    return _register_payload


@pytest_asyncio.fixture
async def registered_user(client: AsyncClient) -> dict:
    """Register ``a@x.com`` and return the response body."""
    res = await client.post("/api/auth/register", json=_register_payload())
    assert res.status_code == 201
    return res.json()


@pytest.fixture
def auth_headers(registered_user: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {registered_user['tokens']['accessToken']}"}
