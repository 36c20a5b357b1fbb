"""Workflow execution endpoints: execute a stored workflow, dry-run an export, read runs."""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
import structlog

from api.schemas.workflow import (
    ExecuteTestRequest,
    ExecuteTestResponse,
    ExecuteWorkflowRequest,
    ExecutionResultResponse,
    WorkflowRunResponse,
)
from app.config import get_settings
from app.dependencies import get_executor, get_store
from core.exceptions import ForbiddenError, NotFoundError, ValidationError
from workflow.executor import ExecutionResult, WorkflowExecutor
from workflow.import_export import extract_required_credentials, import_workflow
from workflow.store import WorkflowStore

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["workflows"])


def _rejection_status(result: ExecutionResult) -> int:
    """Status code for a failed result; a failed run is a 400."""
    exc = result.exception
    if result.run_id is None and isinstance(exc, (NotFoundError, ForbiddenError)):
        return exc.status_code
    return status.HTTP_400_BAD_REQUEST


@router.post("/execute-test", response_model=ExecuteTestResponse)
async def execute_test_workflow(
    request: ExecuteTestRequest,
    executor: WorkflowExecutor = Depends(get_executor),
):
    """
    Import a workflow export and run it without storing the workflow.

    Disabled in production and when ALLOW_TEST_EXECUTION is off.
    """
    settings = get_settings()
    if not settings.test_execution_enabled:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Test execution is disabled",
        )

    try:
        workflow = import_workflow(request.workflow_json)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    logger.info("Dry-running imported workflow", name=workflow["name"], user_id=request.user_id)

    result = await executor.execute_workflow_config(
        workflow["config"],
        request.user_id,
        trigger_data=request.trigger_data,
    )
    body = ExecuteTestResponse(
        **result.to_dict(),
        workflow_name=workflow["name"],
        required_credentials=extract_required_credentials(workflow),
    )
    if not result.success:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=body.model_dump(mode="json"),
        )
    return body


@router.get("/runs/{run_id}", response_model=WorkflowRunResponse)
async def get_workflow_run(
    run_id: str,
    store: WorkflowStore = Depends(get_store),
) -> WorkflowRunResponse:
    """
    Get a stored run record.
    """
    run = await store.get_run(run_id)
    if run is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Run {run_id} not found",
        )
    return WorkflowRunResponse.model_validate(run)


@router.post("/{workflow_id}/execute", response_model=ExecutionResultResponse)
async def execute_workflow(
    workflow_id: str,
    request: ExecuteWorkflowRequest,
    executor: WorkflowExecutor = Depends(get_executor),
):
    """
    Execute a stored workflow and wait for the result.

    A run that fails returns 400 with ``error`` and ``error_step``; a missing
    workflow or inactive organization returns 404 / 403 and records no run.
    """
    result = await executor.execute_workflow(
        workflow_id,
        request.user_id,
        trigger_type=request.trigger_type.value,
        trigger_data=request.trigger_data,
    )

    if not result.success:
        status_code = _rejection_status(result)
        if status_code != status.HTTP_400_BAD_REQUEST:
            raise HTTPException(status_code=status_code, detail=result.error)
        return JSONResponse(
            status_code=status_code,
            content=ExecutionResultResponse(**result.to_dict()).model_dump(mode="json"),
        )

    return ExecutionResultResponse(**result.to_dict())
