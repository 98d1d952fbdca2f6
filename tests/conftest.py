"""pytest fixtures for Prompt Ledger tests.

Provides:
- postgres_container: Session-scoped testcontainer PostgreSQL instance
- utc_timezone: Autouse fixture enforcing UTC timezone
- session: Function-scoped database session with table cleanup
- uow_factory: Function-scoped UnitOfWork factory
- user / other_user / auth_headers: Seeded users and a bearer token
- FakeImageStorage / FakeVisionClient: In-memory collaborators
"""

import io
import os
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import AsyncGenerator

# Must be set before promptledger.app is imported by any test module
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("STORAGE_ROOT", tempfile.mkdtemp(prefix="promptledger-storage-"))

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from PIL import Image  # noqa: E402
from sqlalchemy import text  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402
from testcontainers.postgres import PostgresContainer  # noqa: E402

from promptledger.core.database import setup_db_session  # noqa: E402
from promptledger.models.access_token import AccessToken  # noqa: E402
from promptledger.models.user import User  # noqa: E402
from promptledger.services.access_tokens import generate_token  # noqa: E402
from promptledger.services.exceptions import StorageError  # noqa: E402

PROJECT_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture(scope="session")
def postgres_container():
    """Provide session-scoped PostgreSQL container with migrations applied.

    Container starts once per test session and is reused across all tests.
    Migrations are applied using subprocess to avoid asyncio event loop conflicts.
    """
    container = PostgresContainer(
        image="postgres:17",
        username="test",
        password="test",
        dbname="test_promptledger",
    ).with_bind_ports(5432, None)
    container.start()

    try:
        db_url = container.get_connection_url(driver="psycopg")

        env = os.environ.copy()
        env["DATABASE_URL"] = db_url

        subprocess.run(
            [sys.executable, "-m", "alembic", "upgrade", "head"],
            check=True,
            capture_output=True,
            text=True,
            env=env,
            cwd=PROJECT_ROOT,
        )

        yield container
    finally:
        container.stop()


@pytest.fixture(scope="session", autouse=True)
def utc_timezone():
    """Enforce UTC timezone for all tests."""
    os.environ["TZ"] = "UTC"
    yield


@pytest_asyncio.fixture(scope="function")
async def session(postgres_container) -> AsyncGenerator[AsyncSession, None]:
    """Provide function-scoped database session with table cleanup.

    Each test gets a fresh session with empty tables.
    """
    db_url = postgres_container.get_connection_url(driver="psycopg")

    session_factory = setup_db_session(db_url, pool_size=5)

    async with session_factory() as session:
        yield session

        await session.rollback()

        # Dependent tables first
        await session.execute(text("DELETE FROM image_generations"))
        await session.execute(text("DELETE FROM access_tokens"))
        await session.execute(text("DELETE FROM users"))
        await session.commit()

    await session_factory.kw["bind"].dispose()


@pytest_asyncio.fixture(scope="function")
async def uow_factory(session: AsyncSession):
    """Provide function-scoped UnitOfWork factory bound to the test database."""
    from sqlalchemy.ext.asyncio import async_sessionmaker

    from promptledger.uow import create_uow_factory

    session_factory = async_sessionmaker(
        bind=session.bind,
        expire_on_commit=False,
    )

    return create_uow_factory(session_factory)


@pytest_asyncio.fixture
async def user(session: AsyncSession) -> User:
    """Persisted user who owns the records under test."""
    user = User(email="u1@example.com", name="User One")
    session.add(user)
    await session.commit()
    return user


@pytest_asyncio.fixture
async def other_user(session: AsyncSession) -> User:
    """Second persisted user for ownership-isolation tests."""
    user = User(email="u2@example.com", name="User Two")
    session.add(user)
    await session.commit()
    return user


@pytest_asyncio.fixture
async def auth_headers(session: AsyncSession, user: User) -> dict[str, str]:
    """Authorization header carrying a freshly issued token for ``user``."""
    plain_token, token_hash = generate_token()
    session.add(AccessToken(user_id=user.id, name="tests", token_hash=token_hash))
    await session.commit()
    return {"Authorization": f"Bearer {plain_token}"}


@pytest_asyncio.fixture
async def other_auth_headers(session: AsyncSession, other_user: User) -> dict[str, str]:
    """Authorization header carrying a token for ``other_user``."""
    plain_token, token_hash = generate_token()
    session.add(AccessToken(user_id=other_user.id, name="tests", token_hash=token_hash))
    await session.commit()
    return {"Authorization": f"Bearer {plain_token}"}


class FakeImageStorage:
    """In-memory image storage that records every write."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.files: dict[str, bytes] = {}

    async def store(self, content: bytes, filename: str) -> str:
        if self.fail:
            raise StorageError("disk full")
        path = f"uploads/images/{filename}"
        if path in self.files:
            raise StorageError(f"Refusing to overwrite existing file: {path}")
        self.files[path] = content
        return path

    def url(self, path: str) -> str:
        return f"/storage/{path}"


class FakeVisionClient:
    """Vision client returning a fixed prompt, or raising a configured error."""

    def __init__(self, prompt: str = "a red bicycle", error: Exception | None = None):
        self.prompt = prompt
        self.error = error
        self.calls: list[tuple[bytes, str | None]] = []

    async def generate_prompt_for_image(self, image: bytes, mime_type: str | None = None) -> str:
        self.calls.append((image, mime_type))
        if self.error is not None:
            raise self.error
        return self.prompt


@pytest.fixture
def fake_storage() -> FakeImageStorage:
    return FakeImageStorage()


@pytest.fixture
def fake_vision() -> FakeVisionClient:
    return FakeVisionClient()


def make_image_bytes(image_format: str = "PNG", size: tuple[int, int] = (4, 4)) -> bytes:
    """Encode a tiny solid-color image in ``image_format``."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(buffer, format=image_format)
    return buffer.getvalue()
