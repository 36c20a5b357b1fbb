"""Structured logging for the engine using structlog.

JSON lines in production, colored console output in development. Run-scoped
fields (workflow_id, run_id, user_id) are carried through contextvars so every
entry written while a workflow executes can be correlated with its run record.
"""

import logging
import re
import sys
from typing import Any

import structlog
from app.config import get_settings

# Key segments (split on "_" / "-") whose values never reach a log line in clear text.
SENSITIVE_KEY_PARTS = frozenset(
    {"key", "apikey", "secret", "token", "password", "credentials", "authorization"}
)

# Libraries that are chatty at INFO.
_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "aiosqlite")


def mask_value(value: Any) -> str:
    """Keep the last four characters of long strings, star the rest."""
    text = str(value)
    if len(text) > 8:
        return "*" * (len(text) - 4) + text[-4:]
    return "*" * len(text)


def _is_sensitive(key: str) -> bool:
    return any(part in SENSITIVE_KEY_PARTS for part in re.split(r"[_\-]", key.lower()))


def redact_sensitive_fields(logger: Any, method_name: str, event_dict: dict) -> dict:
    """structlog processor masking values bound under sensitive keys.

    Nested dicts one level deep are masked too, which covers
    ``credentials={"openai": "sk-..."}`` style fields.
    """
    for key, value in list(event_dict.items()):
        if key == "event" or value is None:
            continue
        if _is_sensitive(key):
            if isinstance(value, dict):
                event_dict[key] = {k: mask_value(v) for k, v in value.items()}
            else:
                event_dict[key] = mask_value(value)
        elif isinstance(value, dict):
            event_dict[key] = {
                k: mask_value(v) if _is_sensitive(str(k)) and v is not None else v
                for k, v in value.items()
            }
    return event_dict


def _select_renderer(settings) -> Any:
    if settings.is_development or settings.LOG_FORMAT == "text":
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    return structlog.processors.JSONRenderer()


def setup_logging() -> None:
    """Configure structlog and route stdlib logging through it.

    Safe to call more than once; the root handler is replaced each time.
    """
    settings = get_settings()

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_sensitive_fields,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _select_renderer(settings),
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.SQLALCHEMY_ECHO else logging.WARNING
    )


def run_log_context(**fields):
    """Bind run-scoped fields (workflow_id, run_id, ...) to every log entry.

    Usage::

        with run_log_context(workflow_id=wf_id, run_id=run_id):
            ...
    """
    return structlog.contextvars.bound_contextvars(
        **{k: v for k, v in fields.items() if v is not None}
    )
