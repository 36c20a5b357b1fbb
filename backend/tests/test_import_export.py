"""Tests for workflow import/export."""

import json

import pytest

from core.exceptions import ValidationError
from workflow.import_export import (
    export_workflow,
    export_workflow_to_json,
    extract_required_credentials,
    generate_workflow_file_name,
    import_workflow,
    validate_workflow_export,
)

CONFIG = {
    "steps": [
        {
            "id": "s1",
            "module": "ai.openai.generateText",
            "inputs": {"apiKey": "{{user.openai}}", "prompt": "Hi {{user.id}}"},
            "outputAs": "text",
        },
        {
            "id": "l1",
            "kind": "loop",
            "over": "{{text.lines}}",
            "itemVariable": "line",
            "steps": [
                {
                    "id": "b1",
                    "module": "communication.slack.postMessage",
                    "inputs": {"token": "{{user.slack}}", "text": "{{line}}"},
                },
            ],
        },
    ],
}


def _export(**overrides) -> dict:
    data = {
        "version": "1.0",
        "name": "Daily Digest",
        "description": "Posts a digest",
        "config": CONFIG,
    }
    data.update(overrides)
    return data


@pytest.mark.unit
class TestExport:
    def test_export_shape(self):
        exported = export_workflow("Daily Digest", "Posts a digest", CONFIG, {"author": "ops"})
        assert exported["version"] == "1.0"
        assert exported["config"] == CONFIG
        assert exported["metadata"]["author"] == "ops"
        assert "created" in exported["metadata"]
        assert "trigger" not in exported

    def test_export_with_trigger(self):
        trigger = {"type": "cron", "config": {"schedule": "0 9 * * *"}}
        assert export_workflow("a", "b", CONFIG, trigger=trigger)["trigger"] == trigger

    def test_export_to_json_imports_back(self):
        text = export_workflow_to_json("Daily Digest", "Posts a digest", CONFIG)
        assert "\n  " in text
        assert import_workflow(text)["config"] == CONFIG


@pytest.mark.unit
class TestImport:
    def test_valid(self):
        assert import_workflow(json.dumps(_export()))["name"] == "Daily Digest"

    def test_malformed_json(self):
        with pytest.raises(ValidationError, match="^Failed to import workflow: Invalid JSON"):
            import_workflow("{not json")

    @pytest.mark.parametrize("field", ["version", "name", "description"])
    def test_missing_top_level_field(self, field):
        data = _export()
        del data[field]
        with pytest.raises(ValidationError, match=f"Missing {field} field"):
            import_workflow(json.dumps(data))

    def test_missing_steps(self):
        with pytest.raises(ValidationError, match="Missing config.steps"):
            import_workflow(json.dumps(_export(config={})))

    def test_module_path_needs_three_segments(self):
        config = {"steps": [{"id": "s1", "module": "utilities.now", "inputs": {}}]}
        with pytest.raises(ValidationError, match="invalid module path: utilities.now"):
            import_workflow(json.dumps(_export(config=config)))

    def test_inputs_must_be_object(self):
        config = {"steps": [{"id": "s1", "module": "a.b.c", "inputs": "x"}]}
        with pytest.raises(ValidationError, match="missing or invalid inputs"):
            import_workflow(json.dumps(_export(config=config)))

    def test_nested_step_errors_found(self):
        config = {"steps": [{
            "id": "l1",
            "kind": "loop",
            "over": [],
            "itemVariable": "i",
            "steps": [{"id": "b1", "module": "bad", "inputs": {}}],
        }]}
        with pytest.raises(ValidationError, match="invalid module path: bad"):
            import_workflow(json.dumps(_export(config=config)))

    def test_other_version_accepted(self):
        assert import_workflow(json.dumps(_export(version="2.0")))["version"] == "2.0"


@pytest.mark.unit
class TestValidateExport:
    def test_valid(self):
        assert validate_workflow_export(_export()) == (True, [])

    def test_not_an_object(self):
        assert validate_workflow_export([]) == (False, ["Workflow must be an object"])

    def test_collects_all_errors(self):
        data = {
            "version": 1,
            "name": "x",
            "config": {"steps": [
                {"module": "a.b.c", "inputs": {}},
                {"id": "s2", "kind": "parallel"},
                {"id": "s3", "module": "a.b.c", "inputs": {}},
                {"id": "s3", "module": "a.b.c", "inputs": {}},
            ]},
        }
        valid, errors = validate_workflow_export(data)
        assert valid is False
        assert "Missing or invalid version field" in errors
        assert "Missing or invalid description field" in errors
        assert "Step 0 missing id field" in errors
        assert "Step s2 has unknown kind: parallel" in errors
        assert "Step 3 has duplicate id: s3" in errors


@pytest.mark.unit
class TestHelpers:
    def test_extract_required_credentials(self):
        data = _export(metadata={"requiresCredentials": ["stripe", "openai"]})
        assert extract_required_credentials(data) == ["openai", "slack", "stripe"]

    def test_user_id_is_not_a_credential(self):
        config = {"steps": [{"id": "s1", "module": "a.b.c", "inputs": {"u": "{{user.id}}"}}]}
        assert extract_required_credentials(_export(config=config)) == []

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Daily Digest", "daily-digest.workflow.json"),
            ("  Reddit -> Slack!! ", "reddit-slack.workflow.json"),
        ],
    )
    def test_file_name(self, name, expected):
        assert generate_workflow_file_name(name) == expected
