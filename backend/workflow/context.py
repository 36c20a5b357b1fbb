"""Execution context: the variable bag threaded through one workflow run."""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional
from uuid import uuid4

_UNSET = object()


@dataclass
class ExecutionContext:
    """Mutable state of one in-flight run.

    ``variables`` holds ``user`` (id + decrypted credentials), ``trigger``
    (the payload that started the run) and one entry per step ``outputAs``.
    A context is owned by exactly one run and discarded when it finishes.
    """

    workflow_id: str
    user_id: str
    run_id: str = field(default_factory=lambda: str(uuid4()))
    organization_id: Optional[str] = None
    variables: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        workflow_id: str,
        user_id: str,
        credentials: Optional[dict[str, Any]] = None,
        trigger_data: Optional[dict[str, Any]] = None,
        run_id: Optional[str] = None,
        organization_id: Optional[str] = None,
    ) -> "ExecutionContext":
        """Build the initial context of a run."""
        variables = {
            "user": {"id": user_id, **(credentials or {})},
            "trigger": dict(trigger_data or {}),
        }
        return cls(
            workflow_id=workflow_id,
            user_id=user_id,
            run_id=run_id or str(uuid4()),
            organization_id=organization_id,
            variables=variables,
        )

    def set_variable(self, name: str, value: Any) -> None:
        """Set a run-wide variable (visible to every later step)."""
        self.variables[name] = value

    @contextmanager
    def bind(self, name: str, value: Any) -> Iterator[None]:
        """Bind ``name`` for the duration of a block (one loop iteration).

        A variable shadowed by the binding is restored on exit; a name that
        did not exist before is removed again.
        """
        previous = self.variables.get(name, _UNSET)
        self.variables[name] = value
        try:
            yield
        finally:
            if previous is _UNSET:
                self.variables.pop(name, None)
            else:
                self.variables[name] = previous
