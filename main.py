"""Main application entry point for the Excess Music catalog API."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pymongo.errors import PyMongoError

from admin.router import router as admin_router
from artists.router import router as artists_router
from catalog.db import CatalogDB
from config.settings import get_settings
from contact.router import router as contact_router
from core.dependencies import flush_posthog, shutdown_posthog
from core.exceptions import ServiceInitializationError
from core.logging import setup_logging
from core.middleware import BodySizeLimitMiddleware, SecurityHeadersMiddleware
from core.ratelimit import ApiRateLimitMiddleware
from core.responses import register_exception_handlers
from core.sentry import init_sentry
from releases.router import router as releases_router
from routers.health import router as health_router
from uploads.router import router as uploads_router
from uploads.storage import PARTITIONS

load_dotenv()

settings = get_settings()

init_sentry(
    dsn=settings.sentry_dsn,
    environment=settings.environment,
    release=settings.app_version,
)

log_file = None
if settings.log_level != "DEBUG":
    log_dir = Path("/app/logs") if Path("/app/logs").exists() else Path("logs")
    log_file = log_dir / "excess-music-api.log"
setup_logging(level=settings.log_level, log_file=log_file)

logger = logging.getLogger(__name__)

for partition in PARTITIONS:
    (settings.upload_dir / partition).mkdir(parents=True, exist_ok=True)


async def open_catalog_db() -> CatalogDB:
    """Connect to MongoDB; a failure is fatal except in development."""
    db = CatalogDB(
        uri=settings.mongodb_uri,
        db_name=settings.resolved_db_name,
        timeout_ms=settings.mongodb_timeout_ms,
    )
    try:
        await db.connect()
        await db.ensure_indexes()
    except PyMongoError as e:
        if not settings.is_development:
            logger.critical(f"MongoDB connection failed: {e}")
            raise ServiceInitializationError(f"MongoDB connection failed: {e}") from e
        logger.warning(f"MongoDB connection failed, continuing in development mode: {e}")
    return db


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan with proper startup and shutdown."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}, log level: {settings.log_level}")
    logger.info(f"Contact email: {'configured' if settings.email_enabled else 'disabled'}")

    app.state.catalog_db = await open_catalog_db()

    yield

    logger.info("Shutting down application")
    shutdown_posthog()
    await app.state.catalog_db.close()
    logger.info("All services shut down")


app = FastAPI(
    title=settings.app_name,
    description="Artist and release catalog for the Excess Music label",
    version=settings.app_version,
    lifespan=lifespan,
)

register_exception_handlers(app)

# Added in reverse order of execution: CORS runs first, the rate limiter last
app.add_middleware(ApiRateLimitMiddleware)
app.add_middleware(BodySizeLimitMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.resolved_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def posthog_flush_middleware(request: Request, call_next):
    """Flush PostHog events after each request to prevent data loss."""
    response = await call_next(request)
    flush_posthog()
    return response


app.include_router(health_router, prefix="/api", tags=["health"])
app.include_router(artists_router, prefix="/api", tags=["artists"])
app.include_router(releases_router, prefix="/api", tags=["releases"])
app.include_router(contact_router, prefix="/api", tags=["contact"])
app.include_router(admin_router, prefix="/api", tags=["admin"])
app.include_router(uploads_router, prefix="/api", tags=["upload"])

app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
