"""Tests for workflow store selection and the in-memory store."""

import pytest

import workflow.store as store_module
from app.config import get_settings
from db.base import utcnow
from db.models import Workflow, WorkflowRun
from workflow.store import InMemoryWorkflowStore, SqlWorkflowStore, get_workflow_store


@pytest.fixture
def fresh_store(monkeypatch):
    """Reset the store singleton and settings cache around a test."""
    monkeypatch.setattr(store_module, "_store", None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.mark.unit
class TestStoreSelection:
    @pytest.mark.parametrize("backend, expected", [("memory", InMemoryWorkflowStore), ("SQL", SqlWorkflowStore)])
    def test_backend_selected_from_settings(self, fresh_store, monkeypatch, backend, expected):
        monkeypatch.setenv("WORKFLOW_STORE", backend)
        store = get_workflow_store()
        assert isinstance(store, expected)
        assert get_workflow_store() is store

    def test_unknown_backend(self, fresh_store, monkeypatch):
        monkeypatch.setenv("WORKFLOW_STORE", "redis")
        with pytest.raises(ValueError, match="Unknown WORKFLOW_STORE"):
            get_workflow_store()


@pytest.mark.unit
class TestInMemoryStore:
    @pytest.mark.asyncio
    async def test_soft_deleted_workflow_hidden(self, memory_store):
        workflow = memory_store.add_workflow(Workflow(user_id="u", name="wf", description="", config={"steps": []}))
        workflow.soft_delete()
        assert await memory_store.get_workflow(workflow.id) is None

    @pytest.mark.asyncio
    async def test_get_run_returns_copy(self, memory_store):
        run = await memory_store.create_run(WorkflowRun(
            id="run-1",
            workflow_id=None,
            user_id="u",
            status="running",
            trigger_type="manual",
            trigger_data={"a": [1]},
            started_at=utcnow(),
        ))

        copy = await memory_store.get_run("run-1")
        copy.trigger_data["a"].append(2)

        assert run.trigger_data == {"a": [1]}

    @pytest.mark.asyncio
    async def test_stats_for_unknown_workflow_ignored(self, memory_store):
        await memory_store.update_workflow_stats("missing", "success", None, utcnow())
        assert memory_store.workflows == {}
