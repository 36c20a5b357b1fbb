"""API v1 aggregated router.

All v1 endpoints are registered here and mounted under /api/v1 in main.py.
"""

from fastapi import APIRouter

from api.routes import modules, workflows

api_v1_router = APIRouter()

# Workflow execution and runs
api_v1_router.include_router(
    workflows.router,
    prefix="/workflows",
    tags=["Workflows"],
)

# Module catalog
api_v1_router.include_router(
    modules.router,
    prefix="/modules",
    tags=["Modules"],
)
