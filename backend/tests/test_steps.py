"""Tests for step tree parsing."""

import pytest

from core.exceptions import StepDefinitionError
from workflow.steps import (
    ActionStep,
    ConditionStep,
    LoopStep,
    parse_config,
    parse_step,
    parse_steps,
)


@pytest.mark.unit
class TestParseStep:
    def test_action_without_kind(self):
        step = parse_step({"id": "s1", "module": "utilities.test.echo", "inputs": {"v": 1}, "outputAs": "x"})
        assert step == ActionStep(id="s1", module="utilities.test.echo", inputs={"v": 1}, output_as="x")

    def test_action_with_explicit_kind(self):
        step = parse_step({"id": "s1", "kind": "action", "module": "a.b.c", "inputs": {}})
        assert isinstance(step, ActionStep)

    def test_missing_inputs_defaults_to_empty(self):
        step = parse_step({"id": "s1", "module": "a.b.c"})
        assert step.inputs == {}

    def test_condition(self):
        step = parse_step({
            "id": "c1",
            "kind": "condition",
            "test": "{{x}}",
            "then": [{"id": "t1", "module": "a.b.c", "inputs": {}}],
        })
        assert isinstance(step, ConditionStep)
        assert step.then[0].id == "t1"
        assert step.else_ == []

    def test_loop(self):
        step = parse_step({
            "id": "l1",
            "kind": "loop",
            "over": "{{items}}",
            "itemVariable": "item",
            "steps": [{"id": "b1", "module": "a.b.c", "inputs": {}}],
        })
        assert isinstance(step, LoopStep)
        assert step.item_variable == "item"

    def test_unknown_kind_rejected(self):
        with pytest.raises(StepDefinitionError, match="unknown kind"):
            parse_step({"id": "s1", "kind": "parallel"})

    def test_missing_id_rejected(self):
        with pytest.raises(StepDefinitionError, match="missing id"):
            parse_step({"module": "a.b.c", "inputs": {}})

    def test_missing_module_rejected(self):
        with pytest.raises(StepDefinitionError, match="missing module"):
            parse_step({"id": "s1", "inputs": {}})

    def test_non_object_inputs_rejected(self):
        with pytest.raises(StepDefinitionError, match="inputs"):
            parse_step({"id": "s1", "module": "a.b.c", "inputs": ["x"]})

    def test_loop_with_empty_body_rejected(self):
        with pytest.raises(StepDefinitionError):
            parse_step({"id": "l1", "kind": "loop", "over": [], "itemVariable": "i", "steps": []})


@pytest.mark.unit
class TestParseSteps:
    def test_duplicate_ids_rejected(self):
        items = [
            {"id": "s1", "module": "a.b.c", "inputs": {}},
            {"id": "s1", "module": "a.b.c", "inputs": {}},
        ]
        with pytest.raises(StepDefinitionError, match="Duplicate step id"):
            parse_steps(items)

    def test_same_id_in_different_lists_allowed(self):
        items = [
            {"id": "s1", "module": "a.b.c", "inputs": {}},
            {
                "id": "c1",
                "kind": "condition",
                "test": True,
                "then": [{"id": "s1", "module": "a.b.c", "inputs": {}}],
            },
        ]
        assert len(parse_steps(items)) == 2

    def test_empty_config_rejected(self):
        with pytest.raises(StepDefinitionError):
            parse_config({"steps": []})

    def test_config_without_steps_rejected(self):
        with pytest.raises(StepDefinitionError, match="missing steps"):
            parse_config({})

    def test_round_trip_to_wire_shape(self):
        items = [
            {"id": "s1", "module": "a.b.c", "inputs": {"v": 1}, "outputAs": "x"},
            {
                "id": "c1",
                "kind": "condition",
                "test": "{{x}}",
                "then": [{"id": "t1", "module": "a.b.c", "inputs": {}}],
                "else": [{"id": "e1", "module": "a.b.c", "inputs": {}}],
            },
            {
                "id": "l1",
                "kind": "loop",
                "over": "{{x}}",
                "itemVariable": "item",
                "steps": [{"id": "b1", "module": "a.b.c", "inputs": {"i": "{{item}}"}}],
            },
        ]
        assert [s.to_dict() for s in parse_steps(items)] == items
