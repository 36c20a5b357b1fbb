"""Database models for the workflow automation engine.

This module imports all models to ensure they are registered
with SQLAlchemy's declarative base.
"""

from db.models.organization import Organization
from db.models.workflow import Workflow
from db.models.workflow_run import WorkflowRun
from db.models.credential import UserCredential

__all__ = [
    "Organization",
    "Workflow",
    "WorkflowRun",
    "UserCredential",
]
