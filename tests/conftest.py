"""Pytest configuration and shared fixtures."""

from collections.abc import Generator

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from swan_fastapi.auth import ClaimsIdentity, TokenValidationParameters
from swan_fastapi.database import BusinessSession
from swan_fastapi.logging import clear_request_context
from tests.models import Base


TEST_SIGNING_KEY = "test-signing-key-with-enough-entropy-0123456789"
TEST_ISSUER = "swan-tests"
TEST_AUDIENCE = "swan-clients"

TEST_USERS = {
    "alice": {"password": "wonderland", "id": "u1", "role": "admin"},
    "bob": {"password": "builder", "id": "u2", "role": "member"},
}


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Create an in-memory SQLite engine with all test tables.

    StaticPool keeps a single connection so every session sees the
    same database.
    """
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[BusinessSession]:
    """Session factory producing business-rules sessions."""
    return sessionmaker(
        bind=engine,
        class_=BusinessSession,
        expire_on_commit=False,
    )


@pytest.fixture
def session(
    session_factory: sessionmaker[BusinessSession],
) -> Generator[BusinessSession, None, None]:
    """Provide a business-rules session for a test."""
    with session_factory() as session:
        yield session


@pytest.fixture
def token_parameters() -> TokenValidationParameters:
    """Validation parameters shared by token tests."""
    return TokenValidationParameters(
        signing_key=TEST_SIGNING_KEY,
        issuer=TEST_ISSUER,
        audience=TEST_AUDIENCE,
    )


async def resolve_test_identity(
    _request: object,
    _grant_type: str,
    username: str,
    password: str,
    _client_id: str,
) -> ClaimsIdentity | None:
    """Identity resolver backed by TEST_USERS."""
    user = TEST_USERS.get(username)
    if user is None or user["password"] != password:
        return None
    return ClaimsIdentity(
        name=username,
        claims={"sub": user["id"], "role": user["role"]},
        authentication_type="password",
    )


@pytest.fixture(autouse=True)
def _reset_request_context() -> Generator[None, None, None]:
    """Make sure no request context leaks between tests."""
    clear_request_context()
    yield
    clear_request_context()


@pytest.fixture
def anyio_backend() -> str:
    """Specify the async backend for anyio."""
    return "asyncio"
