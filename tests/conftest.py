"""
Pytest configuration and fixtures.
"""

import os

# Test database URL (use SQLite for tests); must be set before src.config loads
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("SECRET_KEY", "test-secret")

from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.auth.jwt import COOKIE_NAME, create_access_token
from src.db import get_db
from src.models import Base, GlobalRole, User, Workspace
from src.services.workspace_data import seed_pipeline_statuses


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def workspace(db_session):
    """Workspace with the default pipeline statuses."""
    ws = Workspace(
        name="Test Brokerage",
        default_gross_commission_rate=Decimal("0.03"),
        default_brokerage_split_rate=Decimal("0.20"),
    )
    db_session.add(ws)
    await db_session.flush()
    await seed_pipeline_statuses(db_session, ws.id)
    await db_session.commit()
    return ws


async def _make_user(db_session, workspace, email, role, **kwargs) -> User:
    user = User(
        workspace_id=workspace.id,
        email=email,
        # Never verified in API tests; tokens are issued directly
        password_hash="not-a-real-hash",
        display_name=email.split("@")[0],
        global_role=role,
        is_active=True,
        **kwargs,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin_user(db_session, workspace):
    return await _make_user(db_session, workspace, "admin@test.com", GlobalRole.ADMIN)


@pytest_asyncio.fixture
async def agent_user(db_session, workspace):
    return await _make_user(db_session, workspace, "agent@test.com", GlobalRole.AGENT)


@pytest_asyncio.fixture
async def team_lead_user(db_session, workspace):
    """Team lead not yet assigned to a team."""
    return await _make_user(db_session, workspace, "lead@test.com", GlobalRole.TEAM_LEAD)


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client against the app with get_db bound to the test database."""
    from src.main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


@pytest.fixture
def login_as(client):
    """Return a function that attaches an auth cookie for a user to the client."""

    def _login(user: User) -> AsyncClient:
        token = create_access_token(user.id, user.global_role.value, user.workspace_id)
        client.cookies.set(COOKIE_NAME, token)
        return client

    return _login
