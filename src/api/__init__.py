"""API router aggregation."""

from fastapi import APIRouter

from src.api.analytics import router as analytics_router
from src.api.auth import router as auth_router
from src.api.commission import router as commission_router
from src.api.deals import router as deals_router
from src.api.health import router as health_router
from src.api.lead_sources import router as lead_sources_router
from src.api.pipeline_statuses import router as pipeline_statuses_router
from src.api.workspace import router as workspace_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(commission_router)
api_router.include_router(deals_router)
api_router.include_router(lead_sources_router)
api_router.include_router(pipeline_statuses_router)
api_router.include_router(analytics_router)
api_router.include_router(workspace_router)

__all__ = ["api_router"]
