"""Workflow Executor: runs a stored or inline workflow end to end.

One call:

1. loads the workflow and checks its organization is active,
2. parses the step tree (a snapshot; later edits do not affect the run),
3. records a ``running`` WorkflowRun,
4. loads the user's credentials into the execution context,
5. interprets the steps,
6. records the outcome and the workflow's run statistics.

The executor never raises. Every outcome, including a missing workflow, is
returned as an ``ExecutionResult``.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

import structlog

from core.constants import INLINE_WORKFLOW_ID, TriggerType
from core.exceptions import (
    OrganizationInactiveError,
    StepFailedError,
    WorkflowNotFoundError,
    error_message,
)
from core.logging_config import run_log_context
from core.security import CredentialVault
from workflow.catalog import ModuleCatalog
from workflow.context import ExecutionContext
from workflow.credentials import CredentialLoader
from workflow.dispatcher import ModuleDispatcher
from workflow.interpreter import ControlFlowInterpreter
from workflow.recorder import RunRecorder
from workflow.steps import WorkflowStep, parse_config
from workflow.store import WorkflowStore, get_workflow_store

logger = structlog.get_logger(__name__)


@dataclass
class ExecutionResult:
    """Outcome of one run.

    ``run_id`` is None when the run was rejected before a run record was
    created (missing workflow, inactive organization, invalid step tree).
    ``exception`` keeps the underlying error for callers that map it to a
    status code; it is not part of the serialized result.
    """

    success: bool
    output: Any = None
    error: Optional[str] = None
    error_step: Optional[str] = None
    run_id: Optional[str] = None
    exception: Optional[Exception] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"success": self.success, "run_id": self.run_id}
        if self.success:
            data["output"] = self.output
        else:
            data["error"] = self.error
            data["error_step"] = self.error_step
        return data

    @classmethod
    def failure(
        cls,
        exc: Exception,
        error_step: Optional[str] = None,
        run_id: Optional[str] = None,
    ) -> "ExecutionResult":
        return cls(
            success=False,
            error=error_message(exc),
            error_step=error_step,
            run_id=run_id,
            exception=exc,
        )


class WorkflowExecutor:
    """Orchestrates context, interpreter, dispatcher and run recording."""

    def __init__(
        self,
        store: Optional[WorkflowStore] = None,
        catalog: Optional[ModuleCatalog] = None,
        vault: Optional[CredentialVault] = None,
    ):
        self.store = store or get_workflow_store()
        self.dispatcher = ModuleDispatcher(catalog)
        self.interpreter = ControlFlowInterpreter(self.dispatcher)
        self.recorder = RunRecorder(self.store)
        self.credentials = CredentialLoader(self.store, vault)

    async def execute_workflow(
        self,
        workflow_id: str,
        user_id: str,
        trigger_type: str = TriggerType.MANUAL.value,
        trigger_data: Optional[dict] = None,
    ) -> ExecutionResult:
        """Execute a stored workflow.

        Args:
            workflow_id: Workflow to run
            user_id: User whose credentials the run uses
            trigger_type: manual, cron, webhook, ...
            trigger_data: Trigger payload, exposed as ``{{trigger.*}}``

        Returns:
            ExecutionResult (never raises)
        """
        trigger_type = _trigger_value(trigger_type)

        with run_log_context(workflow_id=workflow_id, user_id=user_id):
            try:
                workflow = await self.store.get_workflow(workflow_id)
                if workflow is None:
                    raise WorkflowNotFoundError(workflow_id)

                if workflow.organization_id:
                    organization = await self.store.get_organization(workflow.organization_id)
                    if organization is not None and not organization.is_active:
                        raise OrganizationInactiveError(workflow.organization_id)

                steps = parse_config(workflow.config)
            except Exception as e:
                logger.warning("Workflow rejected before execution", error=error_message(e))
                return ExecutionResult.failure(e)

            context = ExecutionContext.create(
                workflow_id=workflow.id,
                user_id=user_id,
                trigger_data=trigger_data,
                organization_id=workflow.organization_id,
            )

            try:
                run = await self.recorder.start(
                    context, trigger_type, trigger_data, workflow_id=workflow.id
                )
            except Exception as e:
                logger.error("Failed to create run record", error=error_message(e), exc_info=True)
                return ExecutionResult.failure(e)

            with run_log_context(run_id=run.id):
                return await self._run(steps, context, run=run, update_stats=True)

    async def execute_workflow_config(
        self,
        config: dict,
        user_id: str,
        trigger_data: Optional[dict] = None,
        persist: bool = False,
    ) -> ExecutionResult:
        """Execute an inline step tree that is not stored as a workflow.

        Used for dry runs of imported workflows. With ``persist`` a run record
        (without a workflow id) is kept; workflow statistics are never touched.
        """
        with run_log_context(workflow_id=INLINE_WORKFLOW_ID, user_id=user_id):
            try:
                steps = parse_config(config)
            except Exception as e:
                logger.warning("Inline workflow rejected", error=error_message(e))
                return ExecutionResult.failure(e)

            context = ExecutionContext.create(
                workflow_id=INLINE_WORKFLOW_ID,
                user_id=user_id,
                trigger_data=trigger_data,
            )

            run = None
            if persist:
                try:
                    run = await self.recorder.start(context, TriggerType.TEST.value, trigger_data)
                except Exception as e:
                    logger.error("Failed to create run record", error=error_message(e), exc_info=True)
                    return ExecutionResult.failure(e)

            with run_log_context(run_id=context.run_id):
                return await self._run(steps, context, run=run, update_stats=False)

    async def _run(
        self,
        steps: list[WorkflowStep],
        context: ExecutionContext,
        run=None,
        update_stats: bool = True,
    ) -> ExecutionResult:
        credentials = await self.credentials.load_user_credentials(context.user_id)
        user = context.variables["user"]
        user.update(credentials)
        user["id"] = context.user_id
        run_id = run.id if run is not None else None

        try:
            output = await self.interpreter.run(steps, context)
        except StepFailedError as e:
            logger.error("Workflow run failed", error_step=e.step_id, error=e.message)
            if run is not None:
                await self.recorder.fail(run, e.message, e.step_id, update_stats=update_stats)
            return ExecutionResult.failure(e, error_step=e.step_id, run_id=run_id)
        except Exception as e:
            logger.error("Workflow run failed", error=error_message(e), exc_info=True)
            if run is not None:
                await self.recorder.fail(run, error_message(e), None, update_stats=update_stats)
            return ExecutionResult.failure(e, run_id=run_id)

        if run is not None:
            error = await self.recorder.complete(run, output, update_stats=update_stats)
            if error is not None:
                return ExecutionResult(success=False, error=error, run_id=run_id)
        logger.info("Workflow run succeeded")
        return ExecutionResult(success=True, output=output, run_id=run_id)


def _trigger_value(trigger_type: Any) -> str:
    return trigger_type.value if isinstance(trigger_type, TriggerType) else str(trigger_type)


# Singleton
_executor: Optional[WorkflowExecutor] = None


def get_workflow_executor() -> WorkflowExecutor:
    """Get or create the process-wide executor."""
    global _executor
    if _executor is None:
        _executor = WorkflowExecutor()
    return _executor


async def execute_workflow(
    workflow_id: str,
    user_id: str,
    trigger_type: str = TriggerType.MANUAL.value,
    trigger_data: Optional[dict] = None,
) -> ExecutionResult:
    """Execute a stored workflow with the process-wide executor."""
    return await get_workflow_executor().execute_workflow(
        workflow_id, user_id, trigger_type, trigger_data
    )


async def execute_workflow_config(
    config: dict,
    user_id: str,
    trigger_data: Optional[dict] = None,
    persist: bool = False,
) -> ExecutionResult:
    """Execute an inline step tree with the process-wide executor."""
    return await get_workflow_executor().execute_workflow_config(
        config, user_id, trigger_data, persist
    )
