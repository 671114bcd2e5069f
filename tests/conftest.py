"""Pytest fixtures."""

from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from atlas_client import AtlasClient
from app.config import get_settings
from app.database import create_schema, get_session, get_session_factory
from app.main import app
from app.models.user import User
from app.routers.dependencies import get_atlas_client
from app.services.audit import AuditLogger
from app.services.context import RequestContext
from app.services.security import issue_token
from tests.fake_atlas import FakeAtlas


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    """Reset cached settings around each test.

    Yields
    ------
    None
        Runs the test with fresh settings.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def fake_atlas() -> FakeAtlas:
    """Return a fresh in-memory Atlas."""
    return FakeAtlas()


@pytest.fixture()
async def atlas(fake_atlas: FakeAtlas) -> AsyncIterator[AtlasClient]:
    """Create an Atlas client routed to the fake.

    Parameters
    ----------
    fake_atlas : FakeAtlas
        In-memory Atlas.

    Yields
    ------
    AtlasClient
        Client without retries so failures surface immediately.
    """
    async with AtlasClient(
        base_url="http://atlas.test",
        api_key="test-key",
        max_retries=0,
        transport=fake_atlas.transport(),
    ) as client:
        yield client


@pytest.fixture()
async def session_factory(
    tmp_path: Path,
) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Create a session factory backed by a temporary SQLite database.

    Parameters
    ----------
    tmp_path : Path
        Temporary directory for test database.

    Yields
    ------
    async_sessionmaker[AsyncSession]
        Factory bound to a fresh schema.
    """
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    engine = create_async_engine(database_url, future=True)
    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await create_schema(engine)
    yield factory
    await engine.dispose()


@pytest.fixture()
async def user(session_factory: async_sessionmaker[AsyncSession]) -> User:
    """Persist a dashboard user."""
    issued = issue_token()
    row = User(
        name="Ada",
        email="ada@example.test",
        token_hash=issued.token_hash,
        token_lookup=issued.token_lookup,
    )
    async with session_factory() as session:
        session.add(row)
        await session.commit()
    return row


@pytest.fixture()
def context(user: User) -> RequestContext:
    """Return an authenticated request context."""
    return RequestContext(actor_id=user.id, ip_address="10.1.2.3", user_agent="pytest")


@pytest.fixture()
def audit_logger(
    session_factory: async_sessionmaker[AsyncSession],
    atlas: AtlasClient,
    context: RequestContext,
) -> AuditLogger:
    """Return an audit logger for the authenticated context."""
    return AuditLogger(session_factory, atlas, context)


@pytest.fixture()
async def client(
    session_factory: async_sessionmaker[AsyncSession], atlas: AtlasClient
) -> AsyncIterator[AsyncClient]:
    """Create a test HTTP client backed by SQLite and the fake Atlas.

    Parameters
    ----------
    session_factory : async_sessionmaker[AsyncSession]
        Test session factory.
    atlas : AtlasClient
        Client routed to the fake Atlas.

    Yields
    ------
    AsyncClient
        Configured test client.
    """

    async def _override_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_atlas_client] = lambda: atlas
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://testserver",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
async def auth_headers(client: AsyncClient) -> dict[str, str]:
    """Bootstrap the first user and return its authorization header."""
    response = await client.post(
        "/v1/bootstrap", json={"name": "Ada", "email": "ada@example.test"}
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']['token']}"}
