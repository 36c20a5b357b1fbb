"""WorkflowRun model for the workflow automation engine."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import RunStatus, TriggerType
from db.base import TimestampedModel


class WorkflowRun(TimestampedModel):
    """One execution attempt of a workflow.

    Created with status ``running`` before the first step executes and
    updated exactly once more when the run finishes.

    Attributes:
        id: Run id (the execution context's run_id)
        workflow_id: Workflow that ran; None for persisted inline runs
        user_id: User whose credentials the run used
        organization_id: Owning organization of the workflow, if any
        status: running / success / error
        trigger_type: manual, cron, webhook, ...
        trigger_data: Snapshot of the trigger payload
        output: Output snapshot (success only)
        error: Error message (error only)
        error_step: Id of the step that failed (error only)
        started_at: Run start
        completed_at: Run end (set iff status != running)
        duration_ms: Run duration (set iff status != running)
    """

    __tablename__ = "workflow_runs"

    workflow_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("workflows.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(nullable=False, index=True)
    organization_id: Mapped[Optional[str]] = mapped_column(nullable=True, index=True)
    status: Mapped[str] = mapped_column(
        default=RunStatus.RUNNING.value, index=True
    )
    trigger_type: Mapped[str] = mapped_column(default=TriggerType.MANUAL.value)
    trigger_data: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    output: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    error: Mapped[Optional[str]] = mapped_column(nullable=True)
    error_step: Mapped[Optional[str]] = mapped_column(nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    duration_ms: Mapped[Optional[int]] = mapped_column(nullable=True)

    workflow: Mapped[Optional["Workflow"]] = relationship(
        "Workflow", back_populates="runs", lazy="noload"
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "workflow_id": self.workflow_id,
            "user_id": self.user_id,
            "organization_id": self.organization_id,
            "status": self.status,
            "trigger_type": self.trigger_type,
            "trigger_data": self.trigger_data,
            "output": self.output,
            "error": self.error,
            "error_step": self.error_step,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "duration_ms": self.duration_ms,
        }
