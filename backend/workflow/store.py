"""Workflow storage port.

Everything the engine reads or writes goes through a ``WorkflowStore``:

- ``SqlWorkflowStore``: SQLAlchemy async sessions (SQLite or PostgreSQL,
  whichever ``DATABASE_URL`` names).
- ``InMemoryWorkflowStore``: process-local dicts, for tests and dry runs.

The implementation is chosen once, by ``get_workflow_store()``, from the
``WORKFLOW_STORE`` setting.
"""

import copy
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import select, update as sa_update
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.config import get_settings
from db.models import Organization, UserCredential, Workflow, WorkflowRun


class WorkflowStore(ABC):
    """Persistence operations the engine depends on."""

    @abstractmethod
    async def get_workflow(self, workflow_id: str) -> Optional[Workflow]:
        """Load a workflow that has not been soft-deleted."""

    @abstractmethod
    async def get_organization(self, organization_id: str) -> Optional[Organization]:
        """Load an organization by id."""

    @abstractmethod
    async def get_user_credentials(self, user_id: str) -> list[UserCredential]:
        """All stored credential rows of a user."""

    @abstractmethod
    async def create_run(self, run: WorkflowRun) -> WorkflowRun:
        """Insert a new run record (status ``running``)."""

    @abstractmethod
    async def update_run(self, run_id: str, **values: Any) -> None:
        """Update fields of an existing run record."""

    @abstractmethod
    async def update_workflow_stats(
        self,
        workflow_id: str,
        status: str,
        error: Optional[str],
        completed_at: datetime,
    ) -> None:
        """Increment ``run_count`` and set the ``last_run*`` fields."""

    @abstractmethod
    async def get_run(self, run_id: str) -> Optional[WorkflowRun]:
        """Load a run record by id."""


class SqlWorkflowStore(WorkflowStore):
    """Store backed by SQLAlchemy async sessions.

    Each operation runs in its own short session so that a long run never
    holds a connection between steps.
    """

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        if session_factory is None:
            from db.database import AsyncSessionLocal

            session_factory = AsyncSessionLocal
        self.session_factory = session_factory

    async def get_workflow(self, workflow_id: str) -> Optional[Workflow]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Workflow).where(
                    Workflow.id == workflow_id,
                    Workflow.is_deleted == False,  # noqa: E712
                )
            )
            return result.scalar_one_or_none()

    async def get_organization(self, organization_id: str) -> Optional[Organization]:
        async with self.session_factory() as session:
            return await session.get(Organization, organization_id)

    async def get_user_credentials(self, user_id: str) -> list[UserCredential]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(UserCredential).where(
                    UserCredential.user_id == user_id,
                    UserCredential.is_deleted == False,  # noqa: E712
                )
            )
            return list(result.scalars().all())

    async def create_run(self, run: WorkflowRun) -> WorkflowRun:
        async with self.session_factory() as session:
            session.add(run)
            await session.commit()
            return run

    async def update_run(self, run_id: str, **values: Any) -> None:
        async with self.session_factory() as session:
            await session.execute(
                sa_update(WorkflowRun).where(WorkflowRun.id == run_id).values(**values)
            )
            await session.commit()

    async def update_workflow_stats(
        self,
        workflow_id: str,
        status: str,
        error: Optional[str],
        completed_at: datetime,
    ) -> None:
        async with self.session_factory() as session:
            # Incremented in SQL so concurrent runs never lose a count
            await session.execute(
                sa_update(Workflow)
                .where(Workflow.id == workflow_id)
                .values(
                    run_count=Workflow.run_count + 1,
                    last_run=completed_at,
                    last_run_status=status,
                    last_run_error=error,
                )
            )
            await session.commit()

    async def get_run(self, run_id: str) -> Optional[WorkflowRun]:
        async with self.session_factory() as session:
            return await session.get(WorkflowRun, run_id)


class InMemoryWorkflowStore(WorkflowStore):
    """Store kept in process memory.

    Holds transient ORM instances; nothing is flushed to a database.
    ``get_run`` returns a copy so callers cannot mutate the stored record.
    """

    def __init__(self):
        self.workflows: dict[str, Workflow] = {}
        self.organizations: dict[str, Organization] = {}
        self.credentials: list[UserCredential] = []
        self.runs: dict[str, WorkflowRun] = {}

    # ─── Seeding ──────────────────────────────────────────────

    def add_workflow(self, workflow: Workflow) -> Workflow:
        workflow.id = workflow.id or str(uuid4())
        if workflow.run_count is None:
            workflow.run_count = 0
        if workflow.is_deleted is None:
            workflow.is_deleted = False
        self.workflows[workflow.id] = workflow
        return workflow

    def add_organization(self, organization: Organization) -> Organization:
        organization.id = organization.id or str(uuid4())
        self.organizations[organization.id] = organization
        return organization

    def add_credential(self, credential: UserCredential) -> UserCredential:
        credential.id = credential.id or str(uuid4())
        if credential.is_deleted is None:
            credential.is_deleted = False
        self.credentials.append(credential)
        return credential

    # ─── Port ─────────────────────────────────────────────────

    async def get_workflow(self, workflow_id: str) -> Optional[Workflow]:
        workflow = self.workflows.get(workflow_id)
        if workflow is None or workflow.is_deleted:
            return None
        return workflow

    async def get_organization(self, organization_id: str) -> Optional[Organization]:
        return self.organizations.get(organization_id)

    async def get_user_credentials(self, user_id: str) -> list[UserCredential]:
        return [c for c in self.credentials if c.user_id == user_id and not c.is_deleted]

    async def create_run(self, run: WorkflowRun) -> WorkflowRun:
        self.runs[run.id] = run
        return run

    async def update_run(self, run_id: str, **values: Any) -> None:
        run = self.runs[run_id]
        for key, value in values.items():
            setattr(run, key, value)

    async def update_workflow_stats(
        self,
        workflow_id: str,
        status: str,
        error: Optional[str],
        completed_at: datetime,
    ) -> None:
        workflow = self.workflows.get(workflow_id)
        if workflow is None:
            return
        workflow.run_count = (workflow.run_count or 0) + 1
        workflow.last_run = completed_at
        workflow.last_run_status = status
        workflow.last_run_error = error

    async def get_run(self, run_id: str) -> Optional[WorkflowRun]:
        run = self.runs.get(run_id)
        if run is None:
            return None
        return WorkflowRun(**{key: copy.deepcopy(value) for key, value in run.to_dict().items()})


# Singleton
_store: Optional[WorkflowStore] = None


def get_workflow_store() -> WorkflowStore:
    """Get or create the process-wide store selected by ``WORKFLOW_STORE``."""
    global _store
    if _store is None:
        backend = get_settings().WORKFLOW_STORE.lower()
        if backend == "memory":
            _store = InMemoryWorkflowStore()
        elif backend == "sql":
            _store = SqlWorkflowStore()
        else:
            raise ValueError(f"Unknown WORKFLOW_STORE: {backend}")
    return _store
