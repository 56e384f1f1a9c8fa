import os
from typing import AsyncGenerator, Dict

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.auth.models import User  # noqa: E402
from app.auth.security import create_access_token  # noqa: E402
from app.db.session import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402


@pytest.fixture()
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory SQLite database per test. StaticPool keeps the one connection alive."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for a test and override the FastAPI dependency."""
    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def make_user(db: AsyncSession, email: str) -> User:
    # Password hashing is exercised in test_auth; a placeholder hash keeps fixtures fast
    user = User(email=email, full_name=email.split("@")[0], password_hash="!", status="ACTIVE")
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def auth_headers_for(user: User) -> Dict[str, str]:
    token = create_access_token(user.id, user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
async def owner(db_session: AsyncSession) -> User:
    return await make_user(db_session, "u1@dojo.test")


@pytest.fixture()
async def other_owner(db_session: AsyncSession) -> User:
    return await make_user(db_session, "u2@dojo.test")


@pytest.fixture()
def auth_headers(owner: User) -> Dict[str, str]:
    return auth_headers_for(owner)


@pytest.fixture()
def other_auth_headers(other_owner: User) -> Dict[str, str]:
    return auth_headers_for(other_owner)
