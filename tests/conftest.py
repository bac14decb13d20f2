"""Pytest configuration and shared fixtures.

This module provides centralized test fixtures for:
- Test database engine and sessions (DATABASE_TEST_URL, or a SQLite file)
- A cheap-hashing AuthConfig
- A scriptable fake OAuth provider
- HTTP client for API testing
"""

import os
from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from gatehouse.auth import get_delivery_hook, get_oauth_providers
from gatehouse.config import AuthConfig, get_auth_config
from gatehouse.database import Base, configure_engine, get_db
from gatehouse.exceptions import OAuthExchangeFailedError
from gatehouse.main import app
from gatehouse.services.providers import OAuthTokens, ProviderProfile


class FakeOAuthProvider:
    """OAuth provider whose codes map to canned profiles."""

    id = "github"

    def __init__(self):
        self.profiles: dict[str, ProviderProfile] = {}
        self.exchanged: list[str] = []

    def add(self, code: str, profile: ProviderProfile) -> None:
        self.profiles[code] = profile

    def authorization_url(self, state: str, redirect_uri: str) -> str:
        return f"https://provider.test/authorize?state={state}&redirect_uri={redirect_uri}"

    async def exchange_code(self, code: str, redirect_uri: str) -> OAuthTokens:
        self.exchanged.append(code)
        if code not in self.profiles:
            raise OAuthExchangeFailedError("bad_verification_code")
        return OAuthTokens(access_token=f"access-{code}", scope="read:user,user:email")

    async def fetch_profile(self, tokens: OAuthTokens) -> ProviderProfile:
        return self.profiles[tokens.access_token.removeprefix("access-")]


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def auth_config() -> AuthConfig:
    """AuthConfig with a low scrypt cost so tests stay fast."""
    return AuthConfig(
        session_ttl=timedelta(days=7),
        verification_ttl=timedelta(hours=1),
        scrypt_n=1024,
        scrypt_r=8,
        scrypt_p=1,
        base_url="http://test",
    )


@pytest.fixture
def fake_provider() -> FakeOAuthProvider:
    return FakeOAuthProvider()


@pytest.fixture
def deliveries() -> list[tuple[str, str, str]]:
    """Challenges handed to the delivery hook, as (purpose, email, token)."""
    return []


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Create test database engine with automatic schema management.

    Creates all tables before tests, drops them after.
    Uses DATABASE_TEST_URL env var if set, otherwise a fresh SQLite file.
    """
    db_url = os.environ.get("DATABASE_TEST_URL") or f"sqlite+aiosqlite:///{tmp_path / 'gatehouse_test.db'}"

    engine = configure_engine(create_async_engine(db_url, echo=False))

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncSession:
    """Create test database session with automatic rollback.

    Each test gets a fresh session that rolls back on completion.
    """
    async with session_maker() as session:
        yield session
        await session.rollback()


# =============================================================================
# HTTP Client Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def client(session_maker, auth_config, fake_provider, deliveries):
    """Async test client for the FastAPI app with test database and config."""

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def capture_delivery(purpose: str, email: str, token: str) -> None:
        deliveries.append((purpose, email, token))

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_auth_config] = lambda: auth_config
    app.dependency_overrides[get_oauth_providers] = lambda: {"github": fake_provider}
    app.dependency_overrides[get_delivery_hook] = lambda: capture_delivery

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


async def sign_up(client: AsyncClient, email: str = "ada@example.com", password: str = "correct-horse", name: str = "Ada"):
    return await client.post(
        "/api/auth/sign-up/email",
        json={"name": name, "email": email, "password": password},
    )


@pytest.fixture
def signed_up(client):
    """Factory: register a user over HTTP and return its AuthResponse JSON."""

    async def _sign_up(**kwargs) -> dict:
        response = await sign_up(client, **kwargs)
        assert response.status_code == 201, response.text
        return response.json()

    return _sign_up


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    return bearer
