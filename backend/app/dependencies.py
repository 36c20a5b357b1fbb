"""FastAPI dependency injection functions."""

from workflow.catalog import ModuleCatalog, get_module_catalog
from workflow.executor import WorkflowExecutor, get_workflow_executor
from workflow.store import WorkflowStore, get_workflow_store


def get_executor() -> WorkflowExecutor:
    """Provide the process-wide workflow executor."""
    return get_workflow_executor()


def get_store() -> WorkflowStore:
    """Provide the process-wide workflow store."""
    return get_workflow_store()


def get_catalog() -> ModuleCatalog:
    """Provide the module catalog."""
    return get_module_catalog()
