"""Run recorder: WorkflowRun lifecycle and workflow run statistics.

A run record is created with status ``running`` before the first step
executes and updated exactly once when the run ends. Failures while
recording the *outcome* are logged and swallowed so they never replace the
run's own result.
"""

import json
from datetime import datetime
from typing import Any, Optional

import structlog

from core.constants import RunStatus
from db.base import utcnow
from db.models import WorkflowRun
from workflow.context import ExecutionContext
from workflow.store import WorkflowStore

logger = structlog.get_logger(__name__)


def snapshot(value: Any) -> Any:
    """JSON-safe deep copy of a value, for storing in a JSON column."""
    if value is None:
        return None
    return json.loads(json.dumps(value, default=str))


class RunRecorder:
    """Persists the lifecycle of runs through a ``WorkflowStore``."""

    def __init__(self, store: WorkflowStore):
        self.store = store

    async def start(
        self,
        context: ExecutionContext,
        trigger_type: str,
        trigger_data: Optional[dict] = None,
        workflow_id: Optional[str] = None,
    ) -> WorkflowRun:
        """Create the run record with status ``running``.

        Raises whatever the store raises: a run that cannot be recorded
        does not start.
        """
        run = WorkflowRun(
            id=context.run_id,
            workflow_id=workflow_id,
            user_id=context.user_id,
            organization_id=context.organization_id,
            status=RunStatus.RUNNING.value,
            trigger_type=trigger_type,
            trigger_data=snapshot(trigger_data or {}),
            started_at=utcnow(),
        )
        run = await self.store.create_run(run)
        logger.info(
            "Run started",
            run_id=run.id,
            workflow_id=workflow_id,
            trigger_type=trigger_type,
        )
        return run

    async def complete(
        self, run: WorkflowRun, output: Any, update_stats: bool = True
    ) -> Optional[str]:
        """Mark a run successful and store its output snapshot.

        Returns the error recorded instead when the output cannot be stored
        as JSON (cyclic, non-string keys, ...); the run is then marked failed.
        """
        return await self._finish(run, RunStatus.SUCCESS, output=output, update_stats=update_stats)

    async def fail(
        self,
        run: WorkflowRun,
        error: str,
        error_step: Optional[str],
        update_stats: bool = True,
    ) -> None:
        """Mark a run failed with its error and failing step."""
        await self._finish(
            run, RunStatus.ERROR, error=error, error_step=error_step, update_stats=update_stats
        )

    async def _finish(
        self,
        run: WorkflowRun,
        status: RunStatus,
        output: Any = None,
        error: Optional[str] = None,
        error_step: Optional[str] = None,
        update_stats: bool = True,
    ) -> Optional[str]:
        completed_at = utcnow()
        duration_ms = _duration_ms(run.started_at, completed_at)

        values: dict[str, Any] = {
            "status": status.value,
            "completed_at": completed_at,
            "duration_ms": duration_ms,
        }
        if status == RunStatus.SUCCESS:
            try:
                values["output"] = snapshot(output)
            except (TypeError, ValueError, RecursionError) as e:
                logger.error("Run output is not serializable", run_id=run.id, error=str(e))
                status = RunStatus.ERROR
                error = f"Run output could not be serialized: {e}"
                values["status"] = status.value

        if status == RunStatus.ERROR:
            values["error"] = error
            values["error_step"] = error_step

        try:
            await self.store.update_run(run.id, **values)
        except Exception as e:
            logger.error("Failed to record run outcome", run_id=run.id, error=str(e), exc_info=True)

        if update_stats and run.workflow_id:
            try:
                await self.store.update_workflow_stats(
                    run.workflow_id,
                    status=status.value,
                    error=error if status == RunStatus.ERROR else None,
                    completed_at=completed_at,
                )
            except Exception as e:
                logger.error(
                    "Failed to update workflow statistics",
                    workflow_id=run.workflow_id,
                    error=str(e),
                    exc_info=True,
                )

        logger.info(
            "Run finished",
            run_id=run.id,
            workflow_id=run.workflow_id,
            status=status.value,
            error_step=error_step,
            duration_ms=duration_ms,
        )
        return error if status == RunStatus.ERROR else None


def _duration_ms(started_at: Optional[datetime], completed_at: datetime) -> int:
    if started_at is None:
        return 0
    if started_at.tzinfo is None:
        started_at = started_at.replace(tzinfo=completed_at.tzinfo)
    return max(int((completed_at - started_at).total_seconds() * 1000), 0)
