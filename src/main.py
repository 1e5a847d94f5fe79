"""
Realty CRM - commission tracking and deal pipeline for brokerages

Main FastAPI application with:
- Workspace-scoped authentication (admin/sales manager/team lead/agent)
- Commission breakdown engine
- CSV deal import
- Closed-deal and lead source analytics
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.api import api_router
from src.config import settings
from src.db import get_db_context
from src.services.workspace_data import bootstrap_workspace

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Creates the workspace and admin account if missing
    - Seeds the default pipeline statuses
    """
    logger.info("Starting Realty CRM...")

    async with get_db_context() as db:
        workspace = await bootstrap_workspace(db)

    logger.info(f"Realty CRM started (workspace {workspace.id})")

    yield

    logger.info("Shutting down Realty CRM...")


app = FastAPI(
    title="Realty CRM",
    description="Real-estate CRM: commissions, pipeline and CSV import",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

app.include_router(api_router)  # /api/* endpoints


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
