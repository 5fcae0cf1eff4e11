"""Pytest fixtures for testing."""

import os
from collections.abc import AsyncGenerator

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from orgdir.core.database import get_db, init_db
from orgdir.core.security import create_access_token
from orgdir.main import app
from orgdir.models.user import User
from orgdir.schemas.organization import OrganizationForm
from orgdir.services.org_service import OrganizationService
from orgdir.services.org_validation import ValidationRules


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite database per test.

    A file (not :memory:) gives every session its own connection, so
    transactions are isolated the way they are on PostgreSQL.
    """
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'orgdir.db'}",
        poolclass=NullPool,
    )
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


async def _create_user(db: AsyncSession, email: str, name: str) -> User:
    user = User(email=email, name=name)
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def user(db: AsyncSession) -> User:
    return await _create_user(db, "mike@gilt.com", "Mike")


@pytest_asyncio.fixture
async def other_user(db: AsyncSession) -> User:
    return await _create_user(db, "alice@apidoc.me", "Alice")


@pytest.fixture
def rules() -> ValidationRules:
    return ValidationRules.build(min_name_length=4, min_key_length=4)


@pytest.fixture
def service(db: AsyncSession, rules: ValidationRules) -> OrganizationService:
    return OrganizationService(db, rules)


@pytest.fixture
def make_form():
    """Factory for creation forms with sensible defaults."""

    def _make_form(name: str = "Gilt Group", **kwargs) -> OrganizationForm:
        return OrganizationForm(name=name, **kwargs)

    return _make_form


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create test client; each request gets its own session like in production."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.guid)}"}


@pytest.fixture
def other_auth_headers(other_user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(other_user.guid)}"}
