"""Admin endpoints for content management and statistics."""

import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from admin import stats
from admin.auth import check_credentials, create_admin_token, require_admin
from artists.service import ArtistService
from catalog.db import CatalogDB
from catalog.query import ListQuery
from config.settings import Settings, get_settings
from core.dependencies import get_artist_service, get_catalog_db, get_release_service
from core.exceptions import AuthenticationError, CatalogServiceError
from core.responses import envelope, server_error
from releases.service import ReleaseService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


class LoginRequest(BaseModel):
    username: str
    password: str


@router.post(
    "/login",
    summary="Exchange the admin credentials for a bearer token",
    responses={
        200: {"description": "Login successful"},
        401: {"description": "Invalid credentials"},
        403: {"description": "Admin authentication not configured"},
    },
)
async def login(body: LoginRequest, settings: Settings = Depends(get_settings)):
    if not check_credentials(settings, body.username, body.password):
        logger.warning(f"Failed admin login for {body.username!r}")
        raise AuthenticationError("Invalid credentials")

    token = create_admin_token(settings)
    logger.info("Admin login successful")
    return envelope(
        data={
            "token": token,
            "user": {"id": "admin", "username": settings.admin_username, "role": "admin"},
        },
        message="Login successful",
    )


@router.get("/dashboard", summary="Dashboard statistics", dependencies=[Depends(require_admin)])
async def get_dashboard(db: CatalogDB = Depends(get_catalog_db)):
    try:
        data = await stats.dashboard(db)
    except Exception as e:
        raise server_error("Failed to fetch dashboard data", e) from e
    return envelope(data=data)


@router.get("/analytics", summary="Play and catalog analytics", dependencies=[Depends(require_admin)])
async def get_analytics(
    period: str = Query(stats.DEFAULT_PERIOD, description="7d, 30d, 90d or 1y"),
    db: CatalogDB = Depends(get_catalog_db),
):
    try:
        data = await stats.analytics(db, period)
    except Exception as e:
        raise server_error("Failed to fetch analytics", e) from e
    return envelope(data=data)


@router.get(
    "/artists",
    summary="List all artists, including inactive ones",
    dependencies=[Depends(require_admin)],
)
async def admin_list_artists(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str | None = Query(None),
    status: str = Query("all", pattern="^(all|active|inactive)$"),
    sort: str = Query("-createdAt"),
    service: ArtistService = Depends(get_artist_service),
):
    params = ListQuery(page=page, limit=limit, search=search, status=status, sort=sort)
    try:
        artists, pagination = await service.list_artists(params, include_hidden=True)
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to fetch artists", e) from e
    return envelope(data=artists, pagination=pagination)


@router.get(
    "/releases",
    summary="List all releases, including unpublished ones",
    dependencies=[Depends(require_admin)],
)
async def admin_list_releases(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str | None = Query(None),
    status: str = Query("all", pattern="^(all|published|unpublished)$"),
    artist: str | None = Query(None),
    sort: str = Query("-createdAt"),
    service: ReleaseService = Depends(get_release_service),
):
    params = ListQuery(
        page=page, limit=limit, search=search, status=status, artist=artist, sort=sort
    )
    try:
        releases, pagination = await service.list_releases(params, include_hidden=True)
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to fetch releases", e) from e
    return envelope(data=releases, pagination=pagination)


@router.post(
    "/releases/{release_id}/publish",
    summary="Toggle a release's published flag",
    dependencies=[Depends(require_admin)],
)
async def toggle_publish(
    release_id: str,
    service: ReleaseService = Depends(get_release_service),
):
    try:
        release = await service.toggle_published(release_id)
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to toggle release status", e) from e
    state = "published" if release.get("published") else "unpublished"
    return envelope(data=release, message=f"Release {state} successfully")


@router.get("/settings", summary="Site settings", dependencies=[Depends(require_admin)])
async def admin_settings(
    settings: Settings = Depends(get_settings),
    db: CatalogDB = Depends(get_catalog_db),
):
    return envelope(
        data={
            "siteName": "Excess Music",
            "version": settings.app_version,
            "environment": settings.environment,
            "features": {
                "emailEnabled": settings.email_enabled,
                "mongoDbConnected": await db.is_available(),
                "uploadsEnabled": True,
            },
            "limits": {
                "maxFileSize": f"{settings.max_upload_size_mb}MB",
                "maxFilesPerUpload": settings.max_upload_files,
                "contactFormRateLimit": (
                    f"{settings.contact_rate_limit} per "
                    f"{settings.contact_rate_window_seconds // 60} minutes"
                ),
            },
        }
    )
