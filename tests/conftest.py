"""
Test infrastructure for the forum API.

Strategy
--------
- SQLite in-memory via aiosqlite keeps the suite self-contained; no
  Postgres instance is needed.
- StaticPool makes every session share the single in-memory connection,
  since a new connection would see an empty database.
- The app's ``get_db`` dependency is overridden with the test session
  factory, and ``get_credentials`` with a manager using a fixed secret
  and a low bcrypt cost so hashing stays fast.
- All tables are created before each test and dropped after it.
"""
import os

# Must be set before health_forum.database builds its module-level engine.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from health_forum.database import Base, get_db
from health_forum.dependencies import get_credentials
from health_forum.main import app
from health_forum.security import CredentialManager, TokenSettings
from health_forum.store import SqlAlchemyStore

import health_forum.models  # noqa: F401

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# The sqlite3 driver manages transactions itself and breaks SAVEPOINT; hand
# BEGIN over to SQLAlchemy so nested transactions behave as on Postgres.
@event.listens_for(engine_test.sync_engine, "connect")
def _disable_driver_transactions(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(engine_test.sync_engine, "begin")
def _emit_begin(conn):
    conn.exec_driver_sql("BEGIN")


async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)

TEST_TOKEN_SETTINGS = TokenSettings(
    secret_key="test-secret-key-that-is-long-enough-for-hs256",
    issuer="health-forum-test",
    audience="health-forum-test-clients",
)

test_credentials = CredentialManager(TEST_TOKEN_SETTINGS, bcrypt_rounds=4)


# ---------------------------------------------------------------------------
# Dependency overrides
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_credentials] = lambda: test_credentials


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def store(db_session: AsyncSession) -> SqlAlchemyStore:
    """The persistence port over a live test session, for service-level tests."""
    return SqlAlchemyStore(db_session)


@pytest.fixture
def credentials() -> CredentialManager:
    return test_credentials


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """An httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def signup(async_client: AsyncClient):
    """
    Return a coroutine that registers and logs in a user over HTTP.

    ``await signup("alice")`` yields ``(user_id, headers)`` where *headers*
    carries the bearer token for subsequent requests.
    """

    async def _signup(name: str, password: str = "s3cret-pass") -> tuple[str, dict]:
        email = f"{name}@example.com"
        resp = await async_client.post(
            "/api/users/register",
            json={"email": email, "password": password, "username": name},
        )
        assert resp.status_code == 201, resp.text
        user_id = resp.json()["id"]

        resp = await async_client.post(
            "/api/users/login", json={"email": email, "password": password}
        )
        assert resp.status_code == 200, resp.text
        return user_id, {"Authorization": f"Bearer {resp.json()['token']}"}

    return _signup
