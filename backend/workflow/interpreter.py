"""Control-flow interpreter: walks a parsed step tree sequentially.

- Action: resolve inputs, dispatch, store the result under ``outputAs``.
- Condition: resolve ``test`` and run ``then`` or ``else``.
- Loop: resolve ``over`` to a list and run the body once per item, in order,
  with the item bound to ``itemVariable`` for that iteration only.

The first failure aborts the whole run. The error carries the id of the
innermost step that failed; there are no retries and no error branches.
"""

import time
from typing import Any

import structlog

from core.exceptions import ResolutionError, StepFailedError
from workflow.context import ExecutionContext
from workflow.dispatcher import ModuleDispatcher
from workflow.resolver import is_truthy, resolve, resolve_inputs
from workflow.steps import ActionStep, ConditionStep, LoopStep, WorkflowStep

logger = structlog.get_logger(__name__)

_NO_OUTPUT = object()


class ControlFlowInterpreter:
    """Executes step trees against a dispatcher."""

    def __init__(self, dispatcher: ModuleDispatcher):
        self.dispatcher = dispatcher

    async def run(self, steps: list[WorkflowStep], context: ExecutionContext) -> Any:
        """Run ``steps`` and return the result of the last action executed.

        Raises:
            StepFailedError: On the first failing step.
        """
        output = await self._run_steps(steps, context, _NO_OUTPUT)
        return None if output is _NO_OUTPUT else output

    async def _run_steps(
        self, steps: list[WorkflowStep], context: ExecutionContext, output: Any
    ) -> Any:
        for step in steps:
            output = await self._run_step(step, context, output)
        return output

    async def _run_step(self, step: WorkflowStep, context: ExecutionContext, output: Any) -> Any:
        try:
            if isinstance(step, ActionStep):
                return await self._run_action(step, context)
            if isinstance(step, ConditionStep):
                return await self._run_condition(step, context, output)
            if isinstance(step, LoopStep):
                return await self._run_loop(step, context, output)
            raise ResolutionError(f"Unsupported step type: {type(step).__name__}")
        except StepFailedError:
            raise
        except Exception as e:
            raise StepFailedError(step.id, e) from e

    async def _run_action(self, step: ActionStep, context: ExecutionContext) -> Any:
        inputs = resolve_inputs(step.inputs, context.variables)

        logger.info("Executing step", step_id=step.id, module_path=step.module)
        start = time.monotonic()
        result = await self.dispatcher.dispatch(step.module, inputs)
        logger.info(
            "Step completed",
            step_id=step.id,
            module_path=step.module,
            duration_ms=int((time.monotonic() - start) * 1000),
        )

        if step.output_as:
            context.set_variable(step.output_as, result)
        return result

    async def _run_condition(
        self, step: ConditionStep, context: ExecutionContext, output: Any
    ) -> Any:
        value = resolve(step.test, context.variables)
        branch = step.then if is_truthy(value) else step.else_
        logger.debug("Condition evaluated", step_id=step.id, branch="then" if branch is step.then else "else")
        return await self._run_steps(branch, context, output)

    async def _run_loop(self, step: LoopStep, context: ExecutionContext, output: Any) -> Any:
        items = resolve(step.over, context.variables)
        if not isinstance(items, (list, tuple)):
            raise ResolutionError(
                f"Loop {step.id} expected a list to iterate over, got "
                f"{'nothing' if items is None else type(items).__name__}"
            )

        logger.debug("Loop started", step_id=step.id, item_count=len(items))
        for item in items:
            with context.bind(step.item_variable, item):
                output = await self._run_steps(step.steps, context, output)
        return output
