"""Workflow model for the workflow automation engine."""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import WorkflowStatus
from db.base import BaseModel


class Workflow(BaseModel):
    """A stored workflow definition plus its run statistics.

    The engine treats everything except the run statistics as read-only.

    Attributes:
        id: Unique identifier (UUID string)
        user_id: Owning user
        organization_id: Optional owning client organization
        name: Workflow name
        description: Workflow description
        config: Step tree ``{"steps": [...], "outputDisplay"?: {...}}``
        trigger: Optional trigger descriptor ``{"type": ..., "config": {...}}``
        status: draft / active / paused
        run_count: Number of completed runs (success or error)
        last_run: Completion time of the most recent run
        last_run_status: success / error
        last_run_error: Error message of the most recent run, if it failed
    """

    __tablename__ = "workflows"

    user_id: Mapped[str] = mapped_column(nullable=False, index=True)
    organization_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(nullable=False, index=True)
    description: Mapped[str] = mapped_column(nullable=False, default="")
    config: Mapped[dict] = mapped_column(JSON, nullable=False)
    trigger: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(
        default=WorkflowStatus.DRAFT.value, index=True
    )

    # Run statistics
    run_count: Mapped[int] = mapped_column(default=0, nullable=False)
    last_run: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_run_status: Mapped[Optional[str]] = mapped_column(nullable=True)
    last_run_error: Mapped[Optional[str]] = mapped_column(nullable=True)

    # Relationships
    organization: Mapped[Optional["Organization"]] = relationship(
        "Organization", back_populates="workflows", lazy="noload"
    )
    runs: Mapped[list["WorkflowRun"]] = relationship(
        "WorkflowRun",
        back_populates="workflow",
        cascade="all, delete-orphan",
        lazy="noload",
    )
