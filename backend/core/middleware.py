"""Request tracking and error responses for the HTTP API.

Every request gets an ``X-Request-ID`` (taken from the client when sent) that
is bound into the structlog context, so log lines written by the executor while
serving that request carry the same id as the access log entry.
"""

import time
from typing import Any, Optional
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import get_settings
from core.exceptions import StepFailedError, WorkflowEngineError

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_UNLOGGED_PATHS = ("/health", "/health/ready")


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id, time it and log the outcome."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id
        started = time.monotonic()

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.error(
                    "Unhandled exception",
                    method=request.method,
                    path=request.url.path,
                    duration_ms=_elapsed_ms(started),
                    error=str(exc),
                    exc_info=True,
                )
                return _error_response(
                    request_id,
                    500,
                    "Internal server error" if get_settings().is_production else (str(exc) or "Internal server error"),
                )

            duration_ms = _elapsed_ms(started)
            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers["X-Process-Time"] = f"{duration_ms:.2f}ms"

            if request.url.path not in _UNLOGGED_PATHS:
                log = logger.warning if response.status_code >= 400 else logger.info
                log(
                    f"{request.method} {request.url.path} -> {response.status_code}",
                    status_code=response.status_code,
                    duration_ms=duration_ms,
                )

        return response


def _elapsed_ms(started: float) -> float:
    return round((time.monotonic() - started) * 1000, 2)


def _error_response(
    request_id: Optional[str],
    status_code: int,
    detail: str,
    **extra: Any,
) -> JSONResponse:
    content = {"detail": detail, "request_id": request_id, **extra}
    headers = {REQUEST_ID_HEADER: request_id} if request_id else None
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def setup_exception_handlers(app: FastAPI) -> None:
    """Map engine errors to JSON error bodies."""

    @app.exception_handler(WorkflowEngineError)
    async def engine_error_handler(request: Request, exc: WorkflowEngineError):
        extra = {"error_step": exc.step_id} if isinstance(exc, StepFailedError) else {}
        return _error_response(
            getattr(request.state, "request_id", None),
            exc.status_code,
            exc.message,
            **extra,
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return _error_response(getattr(request.state, "request_id", None), 400, str(exc))
