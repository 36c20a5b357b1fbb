"""JSON object helpers (``utilities.json-transform``)."""

import copy
from typing import Any

from workflow.resolver import get_path, split_path


def get_nested_value(obj: dict, path: str) -> Any:
    """Read a dotted path (``a.b[0].c``); None when missing."""
    return get_path(obj, path)


def set_nested_value(obj: dict, path: str, value: Any) -> dict:
    """Copy of ``obj`` with ``value`` set at a dotted path, creating objects on the way."""
    result = copy.deepcopy(obj) if isinstance(obj, dict) else {}
    parts = split_path(path)
    if not parts:
        raise ValueError("path must not be empty")

    current = result
    for part in parts[:-1]:
        nxt = current.get(part)
        if not isinstance(nxt, dict):
            nxt = {}
            current[part] = nxt
        current = nxt
    current[parts[-1]] = value
    return result


def flatten_object(obj: dict, prefix: str = "", separator: str = ".") -> dict:
    """``{"a": {"b": 1}}`` -> ``{"a.b": 1}``."""
    flat: dict[str, Any] = {}
    for key, value in (obj or {}).items():
        name = f"{prefix}{separator}{key}" if prefix else str(key)
        if isinstance(value, dict) and value:
            flat.update(flatten_object(value, name, separator))
        else:
            flat[name] = value
    return flat


def merge_deep(target: dict, source: dict) -> dict:
    """Recursively merge ``source`` into a copy of ``target``."""
    result = copy.deepcopy(target) if isinstance(target, dict) else {}
    for key, value in (source or {}).items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_deep(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


MODULE = "json-transform"

FUNCTIONS = {
    "getNestedValue": {"func": get_nested_value},
    "setNestedValue": {"func": set_nested_value},
    "flattenObject": {
        "func": flatten_object,
        "parameter_names": ["obj", "prefix", "separator"],
        "required_parameters": ["obj"],
    },
    "mergeDeep": {"func": merge_deep},
}
