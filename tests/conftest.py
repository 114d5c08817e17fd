"""
Pytest configuration and fixtures for the Bookshelf API tests.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from bookshelf.auth import PasswordHasher, TokenService
from bookshelf.config import Settings
from bookshelf.database import create_engine, create_sessionmaker, init_models
from bookshelf.main import create_app

TEST_SECRET = "test-secret-key"


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file with cheap bcrypt rounds."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        secret_key=TEST_SECRET,
        bcrypt_rounds=4,
        db_timeout_seconds=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(TEST_SECRET)


@pytest_asyncio.fixture
async def async_engine(test_settings):
    engine = create_engine(test_settings)
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_engine, test_settings) -> AsyncGenerator[AsyncSession, None]:
    async with create_sessionmaker(async_engine)() as session:
        session.info["timeout"] = test_settings.db_timeout_seconds
        yield session


@pytest_asyncio.fixture
async def app(test_settings):
    application = create_app(test_settings)
    # ASGITransport does not run the lifespan, so create the tables here
    await init_models(application.state.engine)
    yield application
    await application.state.engine.dispose()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def app_session(app) -> AsyncGenerator[AsyncSession, None]:
    """A session on the application's own database, for inspecting stored state."""
    async with app.state.sessionmaker() as session:
        yield session


@pytest.fixture
def register_and_login(client):
    """Register a user, log in, and return ready-to-use Authorization headers."""

    async def _register_and_login(username: str, password: str = "password_6", full_name: str = None) -> dict:
        response = await client.post(
            "/auth/register",
            json={"username": username, "password": password, "full_name": full_name or username.title()},
        )
        assert response.status_code == 200, response.text
        response = await client.post("/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _register_and_login


@pytest.fixture
def sample_book_data() -> dict:
    return {
        "title": "Sapiens: A Brief History of Humankind",
        "author": "Yuval Noah Harari",
        "publication_year": 2014,
        "genre": "History",
        "language": "English",
    }
