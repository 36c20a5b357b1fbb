"""Variable resolution for step inputs.

Replaces ``{{path.to.value}}`` tokens inside JSON-like trees with values
from the running execution context:

- ``"{{ts}}"`` (the whole string is one token) becomes the raw value,
  keeping its type (dict, list, number, ...).
- ``"at {{ts}} by {{user.id}}"`` is interpolated into a string.
- Lists and dicts are resolved recursively; anything else passes through.

Missing paths resolve to ``None``. The resolver never raises; a missing
value surfaces later, where a step actually needs it.
"""

import json
import math
import re
from datetime import date, datetime
from typing import Any, Mapping

_TOKEN = r"\{\{\s*([^{}]+?)\s*\}\}"
_TOKEN_RE = re.compile(_TOKEN)
_PATH_SPLIT_RE = re.compile(r"[.\[\]]")


def split_path(path: str) -> list[str]:
    """``items[0].name`` -> ``["items", "0", "name"]``."""
    return [part.strip() for part in _PATH_SPLIT_RE.split(path) if part.strip()]


def get_path(variables: Mapping[str, Any], path: str) -> Any:
    """Walk ``variables`` along a dotted path through mappings and lists.

    Returns None when a segment is missing or the value at that point is
    neither a mapping nor a list.
    """
    current: Any = variables
    for part in split_path(path):
        if isinstance(current, Mapping):
            if part not in current:
                return None
            current = current[part]
        elif isinstance(current, (list, tuple)):
            if not part.isdigit():
                return None
            index = int(part)
            if index >= len(current):
                return None
            current = current[index]
        else:
            return None
    return current


def stringify(value: Any) -> str:
    """String form of a value for textual interpolation."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, default=str, ensure_ascii=False)
    return str(value)


def resolve(value: Any, variables: Mapping[str, Any]) -> Any:
    """Resolve every ``{{path}}`` token in ``value`` against ``variables``."""
    if isinstance(value, str):
        if "{{" not in value:
            return value
        exact = _TOKEN_RE.fullmatch(value)
        if exact:
            return get_path(variables, exact.group(1))
        return _TOKEN_RE.sub(lambda m: stringify(get_path(variables, m.group(1))), value)

    if isinstance(value, list):
        return [resolve(item, variables) for item in value]

    if isinstance(value, tuple):
        return tuple(resolve(item, variables) for item in value)

    if isinstance(value, dict):
        return {key: resolve(item, variables) for key, item in value.items()}

    return value


def resolve_inputs(inputs: Mapping[str, Any], variables: Mapping[str, Any]) -> dict[str, Any]:
    """Resolve a step's named input map."""
    return {key: resolve(value, variables) for key, value in inputs.items()}


def find_references(value: Any) -> list[str]:
    """Every token path referenced anywhere in ``value``, in order of appearance."""
    refs: list[str] = []
    if isinstance(value, str):
        refs.extend(m.group(1) for m in _TOKEN_RE.finditer(value))
    elif isinstance(value, (list, tuple)):
        for item in value:
            refs.extend(find_references(item))
    elif isinstance(value, dict):
        for item in value.values():
            refs.extend(find_references(item))
    return refs


def is_truthy(value: Any) -> bool:
    """Condition truthiness.

    Falsy: None, False, 0, 0.0, NaN and "". Everything else is truthy,
    including empty lists and dicts.
    """
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return False
        return value != 0
    if isinstance(value, str):
        return value != ""
    return True
