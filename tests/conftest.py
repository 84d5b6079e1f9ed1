"""
Test infrastructure for the Transactions API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI.  StaticPool makes every session share the one in-memory
  connection so all of them see the same database.
- Tables are created fresh before each test and dropped after.
- Redis is replaced by ``FakeRedis``, an in-memory double implementing the
  handful of ``redis.asyncio`` commands ``CacheManager`` issues.  It counts
  calls and can be told to fail or stall, which is how the fallback and
  timeout behaviour is exercised.
- The app's ``get_db`` and ``get_cache`` dependencies are overridden so
  HTTP tests hit the test database and a per-test cache.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.cache import CacheManager, get_cache
from app.database import Base, get_db
from app.main import app
from app.middleware import install_query_counter
from app.services.transaction_service import TransactionService
from tests.support import CountingStore, FakeRedis, auth_headers

# ---------------------------------------------------------------------------
# Test database engine — SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
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
    async with async_session_test() as session:
        yield session


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def cache_manager(fake_redis: FakeRedis) -> CacheManager:
    return CacheManager(client=fake_redis, timeout=0.2)


@pytest.fixture
def store(db_session: AsyncSession) -> CountingStore:
    return CountingStore(db_session)


@pytest.fixture
def service(store: CountingStore, cache_manager: CacheManager) -> TransactionService:
    return TransactionService(store, cache_manager, list_ttl=60, summary_ttl=300)


@pytest_asyncio.fixture
async def async_client(cache_manager: CacheManager) -> AsyncClient:
    """
    Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport,
    with the app's cache pointed at this test's ``cache_manager``.
    """
    app.dependency_overrides[get_cache] = lambda: cache_manager
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_cache, None)


@pytest.fixture
def alice() -> dict[str, str]:
    return auth_headers("alice")


@pytest.fixture
def bob() -> dict[str, str]:
    return auth_headers("bob")
