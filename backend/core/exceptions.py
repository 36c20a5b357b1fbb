"""Custom exceptions for the workflow automation engine."""

from typing import Optional, Sequence


class WorkflowEngineError(Exception):
    """Base exception for the workflow automation engine."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code.

        Args:
            message: Exception message
            status_code: HTTP status code
        """
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(WorkflowEngineError):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize NotFoundError with 404 status code."""
        super().__init__(message, 404)


class ForbiddenError(WorkflowEngineError):
    """Forbidden access exception."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize ForbiddenError with 403 status code."""
        super().__init__(message, 403)


class ValidationError(WorkflowEngineError):
    """Validation error exception."""

    def __init__(self, message: str = "Validation failed"):
        """Initialize ValidationError with 422 status code."""
        super().__init__(message, 422)


class ConflictError(WorkflowEngineError):
    """Resource conflict exception."""

    def __init__(self, message: str = "Resource conflict"):
        """Initialize ConflictError with 409 status code."""
        super().__init__(message, 409)


# ─── Workflow preconditions ───────────────────────────────────


class WorkflowNotFoundError(NotFoundError):
    """No workflow exists with the requested id."""

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow {workflow_id} not found")


class OrganizationInactiveError(ForbiddenError):
    """The workflow's owning organization is inactive."""

    def __init__(self, organization_id: str):
        self.organization_id = organization_id
        super().__init__("Cannot execute workflow: client organization is inactive")


class StepDefinitionError(ValidationError):
    """A stored step tree does not match the step wire format."""


# ─── Dispatch ─────────────────────────────────────────────────


class InvalidModulePathError(ValidationError):
    """A module path does not resolve to a known category."""

    def __init__(self, module_path: str):
        self.module_path = module_path
        super().__init__(
            f"Invalid module path: {module_path}. Expected format: category.module.function"
        )


class ModuleFunctionNotFoundError(NotFoundError):
    """A module path names no registered operation."""

    def __init__(self, module_path: str, detail: str = ""):
        self.module_path = module_path
        message = f"Module function not found: {module_path}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class ParameterMismatchError(ValidationError):
    """Declared step inputs cannot be bound to the target's parameters."""

    def __init__(self, module_path: str, expected: Sequence[str], provided: Sequence[str]):
        self.module_path = module_path
        self.expected = list(expected)
        self.provided = list(provided)
        super().__init__(
            f"Parameter mismatch for {module_path}: function expects "
            f"[{', '.join(self.expected)}] but workflow provided [{', '.join(self.provided)}]"
        )


class OperationError(WorkflowEngineError):
    """The dispatched operation itself failed."""

    def __init__(self, module_path: str, message: str):
        self.module_path = module_path
        super().__init__(f"Failed to execute {module_path}: {message}", 502)


class ResolutionError(WorkflowEngineError):
    """A resolved value could not be used where the step needed it."""

    def __init__(self, message: str):
        super().__init__(message, 422)


class StepFailedError(WorkflowEngineError):
    """A step aborted the run. Carries the id of the innermost failing step."""

    def __init__(self, step_id: str, cause: Exception):
        self.step_id = step_id
        self.cause = cause
        message = getattr(cause, "message", None) or str(cause) or type(cause).__name__
        super().__init__(message, getattr(cause, "status_code", 500))


def error_message(exc: Optional[BaseException]) -> str:
    """Best human-readable message for an exception."""
    if exc is None:
        return "Unknown error"
    return getattr(exc, "message", None) or str(exc) or type(exc).__name__
