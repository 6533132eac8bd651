"""Health check router with a real store connectivity check."""

import asyncio
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from catalog.db import CatalogDB
from catalog.documents import utcnow
from config.settings import Settings, get_settings
from core.dependencies import get_catalog_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

CHECK_TIMEOUT = 3.0
SERVICE_NAME = "Excess Music API"


async def _check_database(db: CatalogDB) -> str:
    """Ping MongoDB."""
    return "ok" if await db.is_available() else "error"


async def _run_check(coro) -> str:
    """Run a single health check with a timeout."""
    try:
        return await asyncio.wait_for(coro, timeout=CHECK_TIMEOUT)
    except TimeoutError:
        return "timeout"


@router.get(
    "/health",
    summary="Health check",
    responses={
        200: {"description": "Service is up and the store answers"},
        503: {"description": "The document store is unreachable"},
    },
)
async def health_check(
    settings: Settings = Depends(get_settings),
    db: CatalogDB = Depends(get_catalog_db),
):
    database = await _run_check(_check_database(db))
    status = "OK" if database == "ok" else "UNAVAILABLE"
    if status != "OK":
        logger.warning(f"Health check failed: database={database}")

    body = {
        "status": status,
        "timestamp": utcnow().isoformat(),
        "service": SERVICE_NAME,
        "version": settings.app_version,
        "services": {"database": database},
    }
    return JSONResponse(content=body, status_code=200 if status == "OK" else 503)
