"""Date/time helpers (``utilities.datetime``).

Dates travel between steps as ISO 8601 strings; every function accepts an
ISO string or a ``datetime`` and returns an ISO string.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Union

DateInput = Union[str, datetime]

# date-fns style tokens -> strftime directives, longest first
_FORMAT_TOKENS = [
    ("yyyy", "%Y"),
    ("yy", "%y"),
    ("MMMM", "%B"),
    ("MMM", "%b"),
    ("MM", "%m"),
    ("dd", "%d"),
    ("EEEE", "%A"),
    ("EEE", "%a"),
    ("HH", "%H"),
    ("hh", "%I"),
    ("mm", "%M"),
    ("ss", "%S"),
]
_FORMAT_TOKEN_RE = re.compile("|".join(token for token, _ in _FORMAT_TOKENS))
_FORMAT_MAP = dict(_FORMAT_TOKENS)


def _to_datetime(value: DateInput) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    else:
        raise ValueError(f"Expected an ISO 8601 date string, got {type(value).__name__}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _shift(value: DateInput, **delta: float) -> str:
    return (_to_datetime(value) + timedelta(**delta)).isoformat()


def now() -> str:
    """Get current date/time."""
    return datetime.now(timezone.utc).isoformat()


def to_iso(date: DateInput) -> str:
    """Format a date as an ISO 8601 string."""
    return _to_datetime(date).isoformat()


def from_iso(iso_string: str) -> str:
    """Parse an ISO 8601 string (normalized, timezone-aware)."""
    return _to_datetime(iso_string).isoformat()


def format_date(date: DateInput, format_string: str) -> str:
    """Format a date with a pattern such as ``yyyy-MM-dd HH:mm``."""
    pattern = _FORMAT_TOKEN_RE.sub(lambda m: _FORMAT_MAP[m.group(0)], format_string.replace("%", "%%"))
    return _to_datetime(date).strftime(pattern)


def add_days(date: DateInput, days: float) -> str:
    return _shift(date, days=float(days))


def add_hours(date: DateInput, hours: float) -> str:
    return _shift(date, hours=float(hours))


def add_minutes(date: DateInput, minutes: float) -> str:
    return _shift(date, minutes=float(minutes))


def sub_days(date: DateInput, days: float) -> str:
    return _shift(date, days=-float(days))


def sub_hours(date: DateInput, hours: float) -> str:
    return _shift(date, hours=-float(hours))


def sub_minutes(date: DateInput, minutes: float) -> str:
    return _shift(date, minutes=-float(minutes))


MODULE = "datetime"

FUNCTIONS = {
    "now": {"func": now},
    "toISO": {"func": to_iso, "parameter_names": ["date"]},
    "fromISO": {"func": from_iso, "parameter_names": ["isoString"]},
    "formatDate": {"func": format_date, "parameter_names": ["date", "formatString"]},
    "addDays": {"func": add_days, "parameter_names": ["date", "days"]},
    "addHours": {"func": add_hours, "parameter_names": ["date", "hours"]},
    "addMinutes": {"func": add_minutes, "parameter_names": ["date", "minutes"]},
    "subDays": {"func": sub_days, "parameter_names": ["date", "days"]},
    "subHours": {"func": sub_hours, "parameter_names": ["date", "hours"]},
    "subMinutes": {"func": sub_minutes, "parameter_names": ["date", "minutes"]},
}
