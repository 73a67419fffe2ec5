"""Health and status endpoints, used by load balancers and the demo banner."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from locallink import __version__
from locallink.database import check_db_connectivity
from locallink.dependencies import get_catalog_service
from locallink.schemas.catalog import CatalogStatus
from locallink.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health(service: CatalogService = Depends(get_catalog_service)) -> dict:
    """Liveness probe: returns 200 if the process is running, plus the data source."""
    catalog_status = service.status()
    return {
        "ok": True,
        "version": __version__,
        "message": "Server is healthy",
        **catalog_status.model_dump(by_alias=True, exclude={"metadata", "business_count"}),
    }


@router.get("/ready")
async def ready(request: Request) -> JSONResponse:
    """
    Readiness probe: checks Review Store connectivity.
    Returns 200 with {"db": "ok"} when ready, or 503 with "error".
    """
    db_ok = await check_db_connectivity(request.app.state.session_factory)
    if not db_ok:
        logger.warning("Readiness check failed: review store unreachable")
    return JSONResponse(
        content={"db": "ok" if db_ok else "error"},
        status_code=200 if db_ok else 503,
    )


@router.get("/demo-status", response_model=CatalogStatus)
async def demo_status(service: CatalogService = Depends(get_catalog_service)) -> CatalogStatus:
    """Offline-mode flag and snapshot metadata for the demo banner."""
    return service.status()
