"""Array helpers (``utilities.array-utils``)."""

import json
from typing import Any, Optional


def _require_list(value: Any, name: str = "array") -> list:
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"{name} must be an array, got {type(value).__name__}")
    return list(value)


def first(array: list, count: Optional[int] = None) -> Any:
    """First item, or the first ``count`` items."""
    items = _require_list(array)
    if count is None:
        return items[0] if items else None
    return items[: int(count)]


def last(array: list, count: Optional[int] = None) -> Any:
    """Last item, or the last ``count`` items."""
    items = _require_list(array)
    if count is None:
        return items[-1] if items else None
    count = int(count)
    return items[-count:] if count > 0 else []


def unique(array: list) -> list:
    """Unique values, first occurrence order kept."""
    seen: set[str] = set()
    result = []
    for item in _require_list(array):
        key = json.dumps(item, sort_keys=True, default=str)
        if key not in seen:
            seen.add(key)
            result.append(item)
    return result


def chunk(array: list, size: int) -> list[list]:
    """Split into chunks of ``size``."""
    items = _require_list(array)
    size = int(size)
    if size < 1:
        raise ValueError("size must be at least 1")
    return [items[i : i + size] for i in range(0, len(items), size)]


def sort_by(array: list, key: str, order: str = "asc") -> list:
    """Sort objects by a property; missing values sort last."""
    items = _require_list(array)
    present = [item for item in items if isinstance(item, dict) and item.get(key) is not None]
    missing = [item for item in items if not (isinstance(item, dict) and item.get(key) is not None)]
    present.sort(key=lambda item: item[key], reverse=str(order).lower() == "desc")
    return present + missing


def group_by(array: list, key: str) -> dict[str, list]:
    """Group objects by a property."""
    groups: dict[str, list] = {}
    for item in _require_list(array):
        value = item.get(key) if isinstance(item, dict) else None
        groups.setdefault(str(value), []).append(item)
    return groups


def sum_values(array: list) -> float:
    """Sum of the numbers in an array."""
    total = 0
    for item in _require_list(array):
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            raise ValueError(f"Cannot sum non-numeric value: {item!r}")
        total += item
    return total


MODULE = "array-utils"

FUNCTIONS = {
    "first": {
        "func": first,
        "parameter_names": ["array", "count"],
        "required_parameters": ["array"],
    },
    "last": {
        "func": last,
        "parameter_names": ["array", "count"],
        "required_parameters": ["array"],
    },
    "unique": {"func": unique},
    "chunk": {"func": chunk},
    "sortBy": {
        "func": sort_by,
        "parameter_names": ["array", "key", "order"],
        "required_parameters": ["array", "key"],
    },
    "groupBy": {"func": group_by},
    "sum": {"func": sum_values, "parameter_names": ["array"]},
}
