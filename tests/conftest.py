import os

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("JWT_SECRET_KEY", "tests-secret-key-0123456789")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("DB_CONNECT_RETRY_ATTEMPTS", "1")

from identity_service.main import create_application
from identity_service.modules.users.infrastructure.database.models import UserModel  # noqa: F401
from identity_service.modules.users.infrastructure.database.user_repository_impl import UserRepositoryImpl
from identity_service.shared.config.database import DatabaseBase
from identity_service.shared.config.settings import get_settings
from identity_service.shared.core.security import (
    PasswordHasher,
    TokenIssuer,
    get_password_hasher,
    get_token_issuer,
)
from identity_service.shared.infrastructure.database.session import build_session_factory

TEST_ISSUER = "test-issuer"
TEST_AUDIENCE = "test-audience"
TEST_SECRET = "unit-test-secret-key-abcdef"


def _clear_caches():
    get_settings.cache_clear()
    get_password_hasher.cache_clear()
    get_token_issuer.cache_clear()


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'identity-tests.sqlite3'}"


@pytest_asyncio.fixture
async def engine(database_url):
    engine = create_async_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(DatabaseBase.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    factory = build_session_factory(engine)
    async with factory() as session:
        yield session


@pytest.fixture
def repository(session):
    return UserRepositoryImpl(session)


@pytest.fixture
def password_hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_issuer():
    return TokenIssuer(
        secret_key=TEST_SECRET,
        issuer=TEST_ISSUER,
        audience=TEST_AUDIENCE,
    )


@pytest.fixture
def client(database_url, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", database_url)
    monkeypatch.setenv("AUTO_CREATE_SCHEMA", "true")
    _clear_caches()

    app = create_application()
    with TestClient(app) as test_client:
        yield test_client

    _clear_caches()


@pytest.fixture
def user_factory():
    def make_user(username="alice", email="alice@example.com", password_hash="not-a-real-hash", **fields):
        return UserModel(username=username, email=email, password_hash=password_hash, **fields)
    return make_user
