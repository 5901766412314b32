"""
Test infrastructure for the Blog API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.  The auth
  dependency asks for get_db too, so it shares the request's session.
- All tables are created fresh before each test and dropped after.
- The Redis cache is disabled by setting cache._redis = None; the CacheManager
  already handles a None _redis gracefully (no-op reads and writes).
  cached_client swaps in fakeredis for the suites that exercise the cache.
- bcrypt runs at its minimum cost so registrations do not dominate runtime.
"""
import fakeredis
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.database import Base, get_db
from app.main import app
from app.cache import cache
from app.middleware import install_query_counter

settings.BCRYPT_ROUNDS = 4
settings.JWT_SECRET = "test-signing-secret-long-enough-for-hs256"

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Register the per-request SQL query counter on the test engine.
install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Dependency override: replace production get_db with the test session factory
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
            await cache.invalidate_if_stale(session)
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


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
    """
    Yield a live AsyncSession for tests that call services directly.
    """
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """
    Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport.

    Redis is disabled so tests are deterministic and every feed read goes
    to the database.
    """
    cache._redis = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def fake_redis():
    """Point the cache singleton at an in-process fakeredis server."""
    server = fakeredis.FakeAsyncRedis(decode_responses=True)
    cache._redis = server
    yield server
    cache._redis = None
    await server.aclose()


@pytest_asyncio.fixture
async def cached_client(fake_redis) -> AsyncClient:
    """Like async_client, but feed pages go through the (fake) Redis cache."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ---------------------------------------------------------------------------
# HTTP helpers shared by the endpoint suites
# ---------------------------------------------------------------------------

async def register(client: AsyncClient, name: str, email: str, password: str = "pw1") -> dict:
    resp = await client.post("/create-author", json={
        "name": name,
        "password": password,
        "email": email,
    })
    assert resp.status_code == 200, resp.text
    return resp.json()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def alice(async_client: AsyncClient) -> dict:
    """A registered author; the response includes ``id`` and ``token``."""
    return await register(async_client, "alice", "a@x.com")


@pytest.fixture
def alice_headers(alice: dict) -> dict:
    return bearer(alice["token"])
