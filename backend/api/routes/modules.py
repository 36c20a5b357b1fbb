"""Module catalog endpoints: what workflow steps can call."""

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from app.dependencies import get_catalog
from workflow.catalog import ModuleCatalog

router = APIRouter(tags=["modules"])


@router.get("/", response_model=dict[str, Any])
async def list_modules(catalog: ModuleCatalog = Depends(get_catalog)) -> dict[str, Any]:
    """
    List every registered module function with its calling convention.
    """
    functions = catalog.list_all()
    return {"modules": functions, "total": len(functions)}


@router.get("/docs", response_class=PlainTextResponse)
async def module_docs(catalog: ModuleCatalog = Depends(get_catalog)) -> str:
    """
    Catalog rendered as markdown, for workflow authoring tools.
    """
    return catalog.generate_module_docs()
