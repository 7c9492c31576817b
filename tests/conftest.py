"""
Pytest fixtures for TaskTrail tests.
"""

import os

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Ensure test config is set before importing tasktrail modules.
os.environ.setdefault("TASKTRAIL_ENV", "development")
os.environ.setdefault("TASKTRAIL_API_KEY", "test-api-key")
os.environ.setdefault("TASKTRAIL_LOG_STORE_BACKEND", "memory")
os.environ.setdefault("TASKTRAIL_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault(
    "TASKTRAIL_DATABASE_URL",
    os.getenv("TASKTRAIL_TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:"),
)

from tasktrail.audit import AuditLogger, InMemoryLogStore
from tasktrail.config import settings
from tasktrail.db.base import Base
from tasktrail.db.repositories import TaskRepository
from tasktrail.engine import TaskService
from tasktrail.models import TaskStatus
from tasktrail.observability.metrics import metrics
import tasktrail.db.tables  # noqa: F401


def _ensure_test_database_url(database_url: str) -> None:
    if database_url.startswith("sqlite"):
        return
    if "test" not in database_url:
        raise RuntimeError(
            "Refusing to run TaskTrail tests against a non-test database. "
            "Set TASKTRAIL_TEST_DATABASE_URL to a dedicated test database."
        )


@pytest.fixture
async def engine():
    """Create a test engine with a fresh schema."""
    _ensure_test_database_url(settings.database_url)
    options = {}
    if settings.database_url.startswith("sqlite"):
        # One shared connection so the in-memory database survives across sessions
        options["poolclass"] = StaticPool
    engine = create_async_engine(settings.database_url, **options)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    """Provide a database session per test."""
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def log_store():
    return InMemoryLogStore()


@pytest.fixture
def audit(log_store):
    return AuditLogger(log_store)


@pytest.fixture
def repository(session):
    return TaskRepository(session)


@pytest.fixture
def service(repository, audit):
    return TaskService(repository, audit)


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def auth_headers():
    return {"X-API-KEY": settings.api_key}


@pytest.fixture
async def client(session, log_store):
    """Async test client with overridden dependencies."""
    from tasktrail.api.deps import get_db_session, get_log_store
    from tasktrail.main import app
    from tasktrail.middleware.rate_limit import rate_limit_dependency

    async def override_get_db_session():
        yield session

    async def override_rate_limit():
        return None

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_log_store] = lambda: log_store
    app.dependency_overrides[rate_limit_dependency] = override_rate_limit

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def seed_tasks(service):
    """Create tasks through the service with the given status mix."""

    async def _seed(pending: int = 0, in_progress: int = 0, completed: int = 0):
        created = []
        for status, count in (
            (TaskStatus.PENDING, pending),
            (TaskStatus.IN_PROGRESS, in_progress),
            (TaskStatus.COMPLETED, completed),
        ):
            for i in range(count):
                created.append(
                    await service.create_task(
                        {"title": f"{status.value} task {i}", "status": status.value}
                    )
                )
        return created

    return _seed
