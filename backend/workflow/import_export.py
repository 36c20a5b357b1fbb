"""Workflow import/export.

Workflows are shared as portable JSON documents::

    {
        "version": "1.0",
        "name": "...",
        "description": "...",
        "trigger": {"type": "manual", "config": {}},
        "config": {"steps": [...], "outputDisplay": {...}},
        "metadata": {"author": "...", "tags": [...], "requiresCredentials": ["openai"]}
    }
"""

import json
import re
from typing import Any, Optional

import structlog

from core.exceptions import ValidationError
from db.base import utcnow
from workflow.resolver import find_references

logger = structlog.get_logger(__name__)

EXPORT_VERSION = "1.0"

_CREDENTIAL_REF_RE = re.compile(r"^user\.(\w+)$")
_STEP_KINDS = ("action", "condition", "loop")


def export_workflow(
    name: str,
    description: str,
    config: dict,
    metadata: Optional[dict] = None,
    trigger: Optional[dict] = None,
) -> dict:
    """Build the shareable export document of a workflow."""
    logger.info("Exporting workflow", name=name)

    export: dict[str, Any] = {
        "version": EXPORT_VERSION,
        "name": name,
        "description": description,
    }
    if trigger:
        export["trigger"] = trigger
    export["config"] = config
    export["metadata"] = {**(metadata or {}), "created": utcnow().isoformat()}
    return export


def export_workflow_to_json(
    name: str,
    description: str,
    config: dict,
    metadata: Optional[dict] = None,
    trigger: Optional[dict] = None,
) -> str:
    """Export a workflow as indented JSON text."""
    return json.dumps(
        export_workflow(name, description, config, metadata, trigger),
        indent=2,
        ensure_ascii=False,
    )


def validate_steps(steps: Any, path: str = "config.steps") -> list[str]:
    """Collect every problem in a (possibly nested) step list."""
    if not isinstance(steps, list):
        return [f"{path} must be an array"]

    errors: list[str] = []
    seen: set[str] = set()

    for index, step in enumerate(steps):
        where = f"Step {index}" if path == "config.steps" else f"{path}[{index}]"
        if not isinstance(step, dict):
            errors.append(f"{where} must be an object")
            continue

        step_id = step.get("id")
        if not step_id or not isinstance(step_id, str):
            errors.append(f"{where} missing id field")
        elif step_id in seen:
            errors.append(f"{where} has duplicate id: {step_id}")
        else:
            seen.add(step_id)
            where = f"Step {step_id}"

        kind = step.get("kind") or "action"
        if kind not in _STEP_KINDS:
            errors.append(f"{where} has unknown kind: {kind}")
            continue

        if kind == "action":
            module = step.get("module")
            if not module or not isinstance(module, str):
                errors.append(f"{where} missing module field")
            elif len(module.split(".")) != 3:
                errors.append(
                    f"{where} has invalid module path: {module}. "
                    "Expected format: category.module.function"
                )
            if not isinstance(step.get("inputs"), dict):
                errors.append(f"{where} missing or invalid inputs field")
            output_as = step.get("outputAs")
            if output_as is not None and not isinstance(output_as, str):
                errors.append(f"{where} has invalid outputAs field")

        elif kind == "condition":
            if "test" not in step:
                errors.append(f"{where} missing test field")
            then = step.get("then") or []
            otherwise = step.get("else") or []
            if not then and not otherwise:
                errors.append(f"{where} has no steps in then or else")
            errors.extend(validate_steps(then, f"{where}.then"))
            errors.extend(validate_steps(otherwise, f"{where}.else"))

        else:
            if "over" not in step:
                errors.append(f"{where} missing over field")
            if not step.get("itemVariable") or not isinstance(step.get("itemVariable"), str):
                errors.append(f"{where} missing itemVariable field")
            body = step.get("steps")
            if not body:
                errors.append(f"{where} has no steps")
            else:
                errors.extend(validate_steps(body, f"{where}.steps"))

    return errors


def validate_workflow_export(workflow: Any) -> tuple[bool, list[str]]:
    """Validate an export document without raising.

    Returns:
        (valid, errors)
    """
    if not isinstance(workflow, dict):
        return False, ["Workflow must be an object"]

    errors: list[str] = []
    for key in ("version", "name", "description"):
        if not workflow.get(key) or not isinstance(workflow.get(key), str):
            errors.append(f"Missing or invalid {key} field")

    config = workflow.get("config")
    if not isinstance(config, dict):
        errors.append("Missing or invalid config field")
    else:
        errors.extend(validate_steps(config.get("steps")))

    return not errors, errors


def import_workflow(json_data: str) -> dict:
    """Parse and validate an exported workflow.

    Raises:
        ValidationError: ``"Failed to import workflow: <reason>"``
    """
    logger.info("Importing workflow from JSON")

    try:
        try:
            workflow = json.loads(json_data)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid JSON: {e}") from e

        if not isinstance(workflow, dict):
            raise ValueError("Workflow must be an object")
        if not workflow.get("version"):
            raise ValueError("Missing version field in workflow")
        if not workflow.get("name"):
            raise ValueError("Missing name field in workflow")
        if not workflow.get("description"):
            raise ValueError("Missing description field in workflow")
        config = workflow.get("config")
        if not isinstance(config, dict) or not config.get("steps"):
            raise ValueError("Missing config.steps in workflow")

        if workflow["version"] != EXPORT_VERSION:
            logger.warning(
                "Workflow version may not be fully compatible", version=workflow["version"]
            )

        errors = validate_steps(config["steps"])
        if errors:
            raise ValueError(errors[0])
    except ValueError as e:
        logger.error("Failed to import workflow", error=str(e))
        raise ValidationError(f"Failed to import workflow: {e}") from e

    logger.info(
        "Workflow imported successfully",
        name=workflow["name"],
        step_count=len(config["steps"]),
    )
    return workflow


def extract_required_credentials(workflow: dict) -> list[str]:
    """Platforms a workflow needs credentials for, sorted.

    Combines ``metadata.requiresCredentials`` with every ``{{user.<platform>}}``
    reference in the step tree. ``user.id`` is not a credential.
    """
    credentials: set[str] = set()

    metadata = workflow.get("metadata") or {}
    credentials.update(metadata.get("requiresCredentials") or [])

    steps = (workflow.get("config") or {}).get("steps") or []
    for ref in find_references(steps):
        match = _CREDENTIAL_REF_RE.match(ref.strip())
        if match and match.group(1) != "id":
            credentials.add(match.group(1))

    return sorted(credentials)


def generate_workflow_file_name(workflow_name: str) -> str:
    """File-system safe name: ``"My Flow!"`` -> ``"my-flow.workflow.json"``."""
    slug = re.sub(r"[^a-z0-9]+", "-", workflow_name.lower()).strip("-")
    return f"{slug}.workflow.json"
