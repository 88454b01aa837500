"""
Postboard Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own SQLite file database under tmp_path, its own
       upload directory, and (for HTTP tests) an app built by create_app()
       around those settings.

Fixture Hierarchy (all function-scoped):
    test_settings ── database ── db_session
                 └── app ── client ── register / auth_headers
    user_service, post_service, make_user
"""

import os
import tempfile

# Environment for the module-level `postboard.main.app`, set BEFORE any
# postboard import so the default Settings never point at production.
_env_dir = tempfile.mkdtemp(prefix="postboard_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_env_dir, 'default.db')}"
os.environ["JWT_SECRET"] = "test-secret-not-for-production-0123456789abcdef"
os.environ["UPLOAD_DIR"] = os.path.join(_env_dir, "uploads")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from postboard.config import Settings
from postboard.database import Database
from postboard.main import create_app
from postboard.models.user import User
from postboard.services.post_service import PostService
from postboard.services.user_service import UserService

TEST_SECRET = "test-secret-not-for-production-0123456789abcdef"


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file and upload directory."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        jwt_secret=TEST_SECRET,
        upload_dir=str(tmp_path / "uploads"),
        bcrypt_rounds=4,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def database(test_settings):
    """A Database with all tables created; disposed after the test."""
    db = Database(test_settings)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    """
    A single session for service-level tests.

    Nothing is committed; every operation in the test shares one
    transaction, which is discarded on close.
    """
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def user_service(test_settings) -> UserService:
    return UserService(test_settings)


@pytest.fixture
def post_service() -> PostService:
    return PostService()


@pytest.fixture
def make_user(db_session):
    """Insert a user row directly (no bcrypt) and return it."""
    async def _make_user(login: str = "alice", full_name: str = "Alice") -> User:
        user = User(login=login, full_name=full_name, password_hash="not-a-real-hash")
        db_session.add(user)
        await db_session.flush()
        return user
    return _make_user


@pytest_asyncio.fixture
async def app(test_settings, database):
    """Application built for test_settings, sharing the `database` fixture."""
    application = create_app(test_settings)
    await application.state.database.dispose()
    application.state.database = database
    return application


@pytest_asyncio.fixture
async def client(app):
    """
    HTTPX AsyncClient talking to the app in-process.

    Usage:
        async def test_health(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def register(client):
    """Register a user over HTTP and return the response body."""
    async def _register(
        login: str = "alice",
        password: str = "rightpass",
        full_name: str = "Alice Liddell",
    ) -> dict:
        response = await client.post(
            "/auth/register",
            json={"login": login, "password": password, "fullName": full_name},
        )
        assert response.status_code == 200, response.text
        return response.json()
    return _register


@pytest.fixture
def auth_headers(register):
    """Register a user and return Authorization headers for them."""
    async def _auth_headers(login: str = "alice") -> dict:
        body = await register(login=login)
        return {"Authorization": f"Bearer {body['token']}"}
    return _auth_headers
