"""Shared pytest fixtures for the workflow engine test suite.

Provides:
- In-memory async SQLite database (no PostgreSQL needed for tests)
- Session factory and SQL / in-memory workflow stores
- A module catalog with deterministic test functions
- FastAPI test client (httpx.AsyncClient)
- Seed helpers (organization, workflow, credentials)
"""

import os
from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from cryptography.fernet import Fernet
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Override settings BEFORE any app imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENCRYPTION_KEY", Fernet.generate_key().decode())
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("WORKFLOW_STORE", "sql")

from db.base import Base  # noqa: E402
from core.security import CredentialVault  # noqa: E402
from workflow.catalog import ModuleCatalog  # noqa: E402
from workflow.store import InMemoryWorkflowStore, SqlWorkflowStore  # noqa: E402


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh in-memory database for one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    # Import all models so Base.metadata knows about them
    import db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine) -> async_sessionmaker:
    """Session factory bound to the test database."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Provide a DB session for seeding; commits on exit."""
    async with session_factory() as session:
        yield session
        await session.commit()


@pytest.fixture
def sql_store(session_factory) -> SqlWorkflowStore:
    return SqlWorkflowStore(session_factory)


@pytest.fixture
def memory_store() -> InMemoryWorkflowStore:
    return InMemoryWorkflowStore()


@pytest.fixture
def vault() -> CredentialVault:
    return CredentialVault(Fernet.generate_key().decode())


# ---------------------------------------------------------------------------
# Catalog fixtures
# ---------------------------------------------------------------------------

class CallRecorder:
    """Records module calls in order."""

    def __init__(self):
        self.calls: list[tuple[str, tuple]] = []

    def record(self, name: str, *args):
        self.calls.append((name, args))

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture
def calls() -> CallRecorder:
    return CallRecorder()


@pytest.fixture
def catalog(calls) -> ModuleCatalog:
    """Catalog with deterministic ``utilities.test.*`` functions plus the built-ins."""
    from modules.registry import register_builtin_modules

    catalog = ModuleCatalog()
    register_builtin_modules(catalog)

    def echo(value):
        calls.record("echo", value)
        return value

    def concat(a, b, c):
        calls.record("concat", a, b, c)
        return f"{a}{b}{c}"

    def greet(name, greeting="Hello"):
        calls.record("greet", name, greeting)
        return f"{greeting}, {name}"

    async def fetch(url: str):
        calls.record("fetch", url)
        return {"url": url, "items": [1, 2, 3]}

    def boom(message):
        calls.record("boom", message)
        raise RuntimeError(message)

    def ping():
        calls.record("ping")
        return "pong"

    def collect(options: dict):
        calls.record("collect", options)
        return sorted(options)

    catalog.register("utilities", "test", "echo", echo)
    catalog.register("utilities", "test", "concat", concat)
    catalog.register("utilities", "test", "greet", greet)
    catalog.register("utilities", "test", "fetch", fetch)
    catalog.register("utilities", "test", "boom", boom)
    catalog.register("utilities", "test", "ping", ping)
    catalog.register("utilities", "test", "collect", collect)
    return catalog


# ---------------------------------------------------------------------------
# App / HTTP client fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def app(sql_store, catalog, vault):
    """Create a FastAPI app wired to the test database and catalog."""
    from app.dependencies import get_catalog, get_executor, get_store
    from app.main import create_app
    from workflow.executor import WorkflowExecutor

    executor = WorkflowExecutor(store=sql_store, catalog=catalog, vault=vault)

    test_app = create_app()
    test_app.dependency_overrides[get_executor] = lambda: executor
    test_app.dependency_overrides[get_store] = lambda: sql_store
    test_app.dependency_overrides[get_catalog] = lambda: catalog

    yield test_app

    test_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac


# ---------------------------------------------------------------------------
# Test data fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def test_org(db_session):
    """Create an active organization."""
    from db.models import Organization

    unique_suffix = uuid4().hex[:8]
    org = Organization(
        id=str(uuid4()),
        name=f"Test Organization {unique_suffix}",
        slug=f"test-org-{unique_suffix}",
        status="active",
    )
    db_session.add(org)
    await db_session.commit()
    return org


@pytest.fixture
def make_workflow(db_session):
    """Factory that stores a workflow with the given steps."""
    from db.models import Workflow

    async def _make(steps, organization_id=None, user_id="user-1", name="Test Workflow"):
        workflow = Workflow(
            id=str(uuid4()),
            user_id=user_id,
            organization_id=organization_id,
            name=name,
            description="A workflow for testing",
            config={"steps": steps},
            status="active",
            run_count=0,
        )
        db_session.add(workflow)
        await db_session.commit()
        return workflow

    return _make
