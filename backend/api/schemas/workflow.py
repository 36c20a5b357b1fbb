"""Workflow execution schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from core.constants import TriggerType


class ExecuteWorkflowRequest(BaseModel):
    """Request to execute a stored workflow."""

    user_id: str = Field(min_length=1, description="User whose credentials the run uses")
    trigger_type: TriggerType = Field(default=TriggerType.MANUAL, description="How the run was started")
    trigger_data: Optional[Dict[str, Any]] = Field(default=None, description="Trigger payload ({{trigger.*}})")


class ExecuteTestRequest(BaseModel):
    """Request to dry-run an exported workflow document."""

    workflow_json: str = Field(min_length=1, description="Workflow export JSON text")
    user_id: str = Field(min_length=1, description="User whose credentials the run uses")
    trigger_data: Optional[Dict[str, Any]] = Field(default=None, description="Trigger payload")


class ExecutionResultResponse(BaseModel):
    """Outcome of a run."""

    success: bool = Field(description="Whether every step succeeded")
    run_id: Optional[str] = Field(default=None, description="Run record id")
    output: Optional[Any] = Field(default=None, description="Result of the last action")
    error: Optional[str] = Field(default=None, description="Error message (failed runs)")
    error_step: Optional[str] = Field(default=None, description="Id of the failing step")


class ExecuteTestResponse(ExecutionResultResponse):
    """Dry-run outcome plus what the workflow needs."""

    workflow_name: str = Field(description="Name of the imported workflow")
    required_credentials: List[str] = Field(default=[], description="Platforms the workflow needs credentials for")


class WorkflowRunResponse(BaseModel):
    """Stored run record."""

    id: str = Field(description="Run id")
    workflow_id: Optional[str] = Field(description="Workflow id (None for inline runs)")
    user_id: str = Field(description="User id")
    organization_id: Optional[str] = Field(default=None, description="Owning organization")
    status: str = Field(description="running, success or error")
    trigger_type: str = Field(description="How the run was started")
    trigger_data: Optional[Dict[str, Any]] = Field(default=None, description="Trigger payload")
    output: Optional[Any] = Field(default=None, description="Output snapshot")
    error: Optional[str] = Field(default=None, description="Error message")
    error_step: Optional[str] = Field(default=None, description="Failing step id")
    started_at: datetime = Field(description="Run start")
    completed_at: Optional[datetime] = Field(default=None, description="Run end")
    duration_ms: Optional[int] = Field(default=None, description="Run duration")

    class Config:
        from_attributes = True
