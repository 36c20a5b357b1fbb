"""Workflow step tree: typed model of the stored step JSON.

Stored wire format (kept stable for workflows already in the database)::

    { "id": "s1", "module": "category.module.function", "inputs": {...}, "outputAs": "x" }
    { "id": "c1", "kind": "condition", "test": "{{x.ok}}", "then": [...], "else": [...] }
    { "id": "l1", "kind": "loop", "over": "{{x.items}}", "itemVariable": "item", "steps": [...] }

A step without ``kind`` is an action. The tree is parsed once at the start of
a run, so later edits to the stored workflow do not affect an in-flight run.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from core.exceptions import StepDefinitionError


@dataclass
class ActionStep:
    """Invoke one catalog function."""

    id: str
    module: str
    inputs: dict[str, Any] = field(default_factory=dict)
    output_as: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"id": self.id, "module": self.module, "inputs": self.inputs}
        if self.output_as:
            data["outputAs"] = self.output_as
        return data


@dataclass
class ConditionStep:
    """Run ``then`` when ``test`` resolves truthy, ``else_`` otherwise."""

    id: str
    test: Any
    then: list["WorkflowStep"] = field(default_factory=list)
    else_: list["WorkflowStep"] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "kind": "condition",
            "test": self.test,
            "then": [s.to_dict() for s in self.then],
        }
        if self.else_:
            data["else"] = [s.to_dict() for s in self.else_]
        return data


@dataclass
class LoopStep:
    """Run ``steps`` once per element of ``over``, in order."""

    id: str
    over: Any
    item_variable: str
    steps: list["WorkflowStep"] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": "loop",
            "over": self.over,
            "itemVariable": self.item_variable,
            "steps": [s.to_dict() for s in self.steps],
        }


WorkflowStep = Union[ActionStep, ConditionStep, LoopStep]


def parse_step(data: Any) -> WorkflowStep:
    """Build a typed step from its stored JSON form.

    Raises:
        StepDefinitionError: If the step is not an object, lacks an id, or
            is missing the fields its kind requires.
    """
    if not isinstance(data, dict):
        raise StepDefinitionError(f"Step must be an object, got {type(data).__name__}")

    step_id = data.get("id")
    if not step_id or not isinstance(step_id, str):
        raise StepDefinitionError("Step missing id field")

    kind = data.get("kind") or "action"

    if kind == "action":
        module = data.get("module")
        if not module or not isinstance(module, str):
            raise StepDefinitionError(f"Step {step_id} missing module field")
        inputs = data.get("inputs")
        if inputs is None:
            inputs = {}
        if not isinstance(inputs, dict):
            raise StepDefinitionError(f"Step {step_id} missing or invalid inputs field")
        output_as = data.get("outputAs")
        if output_as is not None and not isinstance(output_as, str):
            raise StepDefinitionError(f"Step {step_id} has a non-string outputAs")
        return ActionStep(id=step_id, module=module, inputs=inputs, output_as=output_as or None)

    if kind == "condition":
        if "test" not in data:
            raise StepDefinitionError(f"Condition {step_id} missing test field")
        return ConditionStep(
            id=step_id,
            test=data["test"],
            then=parse_steps(data.get("then") or [], allow_empty=True, owner=step_id),
            else_=parse_steps(data.get("else") or [], allow_empty=True, owner=step_id),
        )

    if kind == "loop":
        if "over" not in data:
            raise StepDefinitionError(f"Loop {step_id} missing over field")
        item_variable = data.get("itemVariable")
        if not item_variable or not isinstance(item_variable, str):
            raise StepDefinitionError(f"Loop {step_id} missing itemVariable field")
        return LoopStep(
            id=step_id,
            over=data["over"],
            item_variable=item_variable,
            steps=parse_steps(data.get("steps") or [], allow_empty=False, owner=step_id),
        )

    raise StepDefinitionError(f"Step {step_id} has unknown kind: {kind}")


def parse_steps(
    items: Any,
    allow_empty: bool = False,
    owner: Optional[str] = None,
) -> list[WorkflowStep]:
    """Parse a step list, enforcing unique ids within the list."""
    where = f" in {owner}" if owner else ""
    if not isinstance(items, list):
        raise StepDefinitionError(f"Steps{where} must be a list")
    if not items and not allow_empty:
        raise StepDefinitionError(f"Steps{where} must not be empty")

    steps = [parse_step(item) for item in items]

    seen: set[str] = set()
    for step in steps:
        if step.id in seen:
            raise StepDefinitionError(f"Duplicate step id{where}: {step.id}")
        seen.add(step.id)
    return steps


def parse_config(config: Any) -> list[WorkflowStep]:
    """Parse a workflow config ``{"steps": [...]}`` into its step tree."""
    if not isinstance(config, dict) or "steps" not in config:
        raise StepDefinitionError("Workflow config missing steps")
    return parse_steps(config["steps"])

