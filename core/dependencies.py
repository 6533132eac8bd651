"""FastAPI dependency injection providers."""

import logging

from fastapi import Depends, Request
from posthog import Posthog

from artists.service import ArtistService
from catalog.db import CatalogDB
from config.settings import Settings, get_settings
from contact.mailer import Mailer
from core.exceptions import ServiceInitializationError
from releases.service import ReleaseService
from uploads.storage import UploadStorage

logger = logging.getLogger(__name__)

_posthog_client: Posthog | None = None


async def get_catalog_db(request: Request) -> CatalogDB:
    """Get the store handle opened by the application lifespan.

    Raises:
        ServiceInitializationError: If the lifespan did not attach a handle
    """
    db = getattr(request.app.state, "catalog_db", None)
    if db is None:
        raise ServiceInitializationError("Catalog database is not initialized")
    return db


def get_artist_service(db: CatalogDB = Depends(get_catalog_db)) -> ArtistService:
    return ArtistService(db)


def get_release_service(db: CatalogDB = Depends(get_catalog_db)) -> ReleaseService:
    return ReleaseService(db)


def get_mailer(settings: Settings = Depends(get_settings)) -> Mailer | None:
    """Get the contact mailer, or None when SMTP credentials are not configured."""
    if not settings.email_enabled:
        logger.debug("EMAIL_USER/EMAIL_PASS not set - contact mail disabled")
        return None
    return Mailer(settings)


def get_upload_storage(settings: Settings = Depends(get_settings)) -> UploadStorage:
    return UploadStorage(
        root=settings.upload_dir,
        max_file_size=settings.max_upload_size_bytes,
        max_files=settings.max_upload_files,
    )


def get_posthog_client(settings: Settings = Depends(get_settings)) -> Posthog | None:
    """Get PostHog client instance.

    Returns:
        Optional[Posthog]: PostHog client if configured and enabled, None otherwise
    """
    global _posthog_client

    if not settings.enable_telemetry:
        logger.debug("Telemetry disabled")
        return None

    if not settings.posthog_api_key:
        logger.debug("POSTHOG_API_KEY not set - telemetry disabled")
        return None

    if _posthog_client is None:
        _posthog_client = Posthog(
            project_api_key=settings.posthog_api_key,
            host=settings.posthog_host,
        )
        logger.info(f"PostHog client initialized (host: {settings.posthog_host})")

    return _posthog_client


def flush_posthog() -> None:
    """Flush any buffered PostHog events."""
    if _posthog_client:
        _posthog_client.flush()


def shutdown_posthog() -> None:
    """Shutdown PostHog client gracefully."""
    global _posthog_client
    if _posthog_client:
        _posthog_client.shutdown()
        _posthog_client = None
        logger.info("PostHog client shutdown")
