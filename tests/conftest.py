"""Pytest configuration and fixtures."""

import os

# Settings are read on import, so the test environment must be in place first
os.environ["DEBUG"] = "true"
os.environ["ALLOWED_ORIGINS"] = "http://localhost:5173"
os.environ["SECRET_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["AUTH0_DOMAIN"] = "test.auth0.com"
os.environ["AUTH0_API_AUDIENCE"] = "test-audience"
os.environ["AUTH0_ALGORITHMS"] = "RS256"
os.environ["OTEL_ENABLED"] = "false"

import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable, Generator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from subway.core.auth import clear_jwks_cache, set_mock_jwks
from subway.core.database import get_db
from subway.main import app
from subway.models import Base, Member, Station
from tests.helpers.jwt_helpers import MockJWTGenerator


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """
    In-memory SQLite engine with the full schema created.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Session configured like the application's session factory."""
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
def override_get_db(db_session: AsyncSession) -> Generator[None]:
    """Route every request's database dependency to the test session."""

    async def _get_db() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient]:
    """
    FastAPI asynchronous HTTP client.

    Yields:
        Async HTTP client with ASGI transport
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# Auth fixtures


@pytest.fixture(scope="session", autouse=True)
def setup_mock_jwks() -> None:
    """Install the test JWKS used to verify mock tokens in DEBUG mode."""
    set_mock_jwks(MockJWTGenerator.get_mock_jwks())


@pytest.fixture
def reset_jwks_cache() -> Generator[None]:
    """Start and finish the test with an empty JWKS cache."""
    clear_jwks_cache()
    yield
    clear_jwks_cache()


async def _create_member(db_session: AsyncSession, label: str) -> Member:
    member = Member(external_id=f"auth0|{label}_{uuid.uuid4().hex[:8]}", auth_provider="auth0")
    db_session.add(member)
    await db_session.commit()
    await db_session.refresh(member)
    return member


@pytest.fixture
async def test_member(db_session: AsyncSession) -> Member:
    """Persisted member with a unique external ID."""
    return await _create_member(db_session, "test_member")


@pytest.fixture
async def another_member(db_session: AsyncSession) -> Member:
    """Second persisted member for cross-member scenarios."""
    return await _create_member(db_session, "another_member")


@pytest.fixture
def auth_headers_for_member(test_member: Member) -> dict[str, str]:
    """Authorization header carrying a token for test_member."""
    token = MockJWTGenerator.generate(auth0_id=test_member.external_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers_for_another_member(another_member: Member) -> dict[str, str]:
    """Authorization header carrying a token for another_member."""
    token = MockJWTGenerator.generate(auth0_id=another_member.external_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def station_factory(db_session: AsyncSession) -> Callable[[str], Awaitable[Station]]:
    """Create and commit stations by name."""

    async def _create(name: str) -> Station:
        station = Station(name=name)
        db_session.add(station)
        await db_session.commit()
        await db_session.refresh(station)
        return station

    return _create
