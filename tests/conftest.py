"""
Test configuration and fixtures.

The database URL must be set before any shortcut_analytics module is imported,
because the engine is created at import time. Every test gets freshly created
tables in a throwaway SQLite file.
"""

import os
import sqlite3
import tempfile

_TEST_DB_DIR = tempfile.mkdtemp(prefix="shortcut_analytics_tests_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_DIR}/test.db"
os.environ.setdefault("RATE_LIMIT_WRITE", "10000/minute")
os.environ.setdefault("RATE_LIMIT_READ", "10000/minute")
os.environ.setdefault("RATE_LIMIT_INGEST", "10000/minute")
os.environ.setdefault("RATE_LIMIT_REDIRECT", "10000/minute")

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.exc import OperationalError  # noqa: E402

from shortcut_analytics.db.session import async_session_maker, drop_models, init_models  # noqa: E402
from shortcut_analytics.main import app  # noqa: E402
from shortcut_analytics.services.shortcut_service import ShortcutService  # noqa: E402

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1"
)
FIREFOX_LINUX = "Mozilla/5.0 (X11; Linux x86_64; rv:109.0) Gecko/20100101 Firefox/119.0"


def storage_error(statement="SELECT 1"):
    """The error SQLAlchemy raises when SQLite stays locked past the busy timeout."""
    return OperationalError(statement, {}, sqlite3.OperationalError("database is locked"))


async def raise_storage_error(*args, **kwargs):
    raise storage_error()


@pytest_asyncio.fixture
async def database():
    """Create all tables before the test and drop them afterwards."""
    await drop_models()
    await init_models()
    yield
    await drop_models()


@pytest_asyncio.fixture
async def session(database):
    async with async_session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def shortcut(session):
    """A shortcut named 'docs' with no visits."""
    return await ShortcutService(session).create_shortcut(
        name="docs",
        link="https://example.com/documentation",
        title="Docs"
    )


@pytest_asyncio.fixture
async def client(database):
    """HTTP client talking to the ASGI app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
