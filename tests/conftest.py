import os

# Settings are read once at import time, so the test environment has to be in
# place before anything under ``src`` is imported.
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["EMAIL_CHECK_DELIVERABILITY"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_STORAGE_URL"] = "async+memory://"
os.environ["LOG_JSON"] = "false"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from src.core.application import create_application
from src.domain.entities.user import User
from src.domain.services.auth.token import TokenIssuer
from src.infrastructure.database.async_db import build_engine, build_session_factory, get_db
from src.infrastructure.repositories import AccessTokenRepository, UserRepository
from tests.factories.user import create_user, user_payload


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """A private in-memory database per test."""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session


@pytest.fixture
def user_repository(db_session) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def token_repository(db_session) -> AccessTokenRepository:
    return AccessTokenRepository(db_session)


@pytest.fixture
def token_issuer(token_repository) -> TokenIssuer:
    return TokenIssuer(token_repository)


@pytest.fixture
def app(session_factory):
    """A fresh application, and therefore fresh rate-limit counters, per test."""
    application = create_application()

    async def _get_test_db():
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = _get_test_db
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def async_client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def existing_user(user_repository) -> User:
    return await create_user(user_repository, email="jane.doe@example.com", password="Password123!")


@pytest_asyncio.fixture(scope="function")
async def auth_headers(existing_user, token_issuer) -> dict:
    token = await token_issuer.issue(existing_user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def registration_payload() -> dict:
    return user_payload()
