"""
Test infrastructure for the Subscriptions API.

Strategy
--------
- SQLite in-memory via aiosqlite, so no Postgres is needed in CI.
- StaticPool makes every session share the single in-memory connection;
  a second connection would see an empty database.
- The app's get_db dependency is overridden to use the test session factory.
- Tables are created before and dropped after every test.
- Redis is disabled (cache._redis = None); the CacheManager treats that as a
  permanent miss, so plan reads always hit the database.
- Argon2 costs are lowered through the environment before the package is
  imported; hashing stays real, just cheap.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("ARGON2_TIME_COST", "1")
os.environ.setdefault("ARGON2_MEMORY_COST", "1024")
os.environ.setdefault("ARGON2_PARALLELISM", "1")

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from subscriptions.cache import cache  # noqa: E402
from subscriptions.database import Base, get_db  # noqa: E402
from subscriptions.main import app  # noqa: E402
from subscriptions.middleware import install_query_counter  # noqa: E402
from subscriptions.services.database_service import DatabaseService  # noqa: E402
from subscriptions.services.plan_service import SubscriptionPlanService  # noqa: E402
from subscriptions.services.user_service import UserService  # noqa: E402

# ---------------------------------------------------------------------------
# Test database engine
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
            await session.commit()
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


@pytest_asyncio.fixture
async def database(db_session: AsyncSession) -> DatabaseService:
    return DatabaseService(db_session)


@pytest_asyncio.fixture
async def user_service(database: DatabaseService) -> UserService:
    return UserService(database)


@pytest_asyncio.fixture
async def plan_service(database: DatabaseService) -> SubscriptionPlanService:
    return SubscriptionPlanService(database)


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """httpx client wired to the app through ASGITransport, Redis disabled."""
    cache._redis = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
