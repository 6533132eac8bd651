"""Release router with dependency injection."""

import logging

from fastapi import APIRouter, Body, Depends, Query
from posthog import Posthog

from admin.auth import require_admin
from catalog.db import CatalogDB
from catalog.query import DEFAULT_RELEASE_SORT, ListQuery
from core.dependencies import get_catalog_db, get_posthog_client, get_release_service
from core.exceptions import CatalogServiceError
from core.responses import envelope, server_error
from core.telemetry import capture_event, track_step
from releases.models import PlayRequest, ReleaseIn
from releases.plays import record_play
from releases.service import ReleaseService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/releases", tags=["releases"])


@router.get(
    "",
    summary="List published releases",
    description="""
    Page through published releases, most recent release date first by default.

    Filters:
    - `genre`: comma-separated genres, matching any
    - `artist`: artist id
    - `releaseType`: single, ep, album, compilation or remix
    - `featured`: `true` to list only featured releases
    - `search`: full-text search over title, description and track titles
    - `sort`: a field name, prefixed with `-` for descending

    Example request:
    ```
    GET /api/releases?genre=techno,house&page=2&limit=5
    ```
    """,
    responses={
        200: {"description": "Releases with pagination metadata"},
        400: {"description": "Invalid paging parameters"},
        500: {"description": "Internal server error"},
    },
)
async def list_releases(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(12, ge=1, le=100, description="Page size"),
    genre: str | None = Query(None, description="Comma-separated genres"),
    artist: str | None = Query(None, description="Artist id"),
    release_type: str | None = Query(None, alias="releaseType", description="Release type"),
    featured: str | None = Query(None, description="'true' to list featured releases only"),
    search: str | None = Query(None, description="Full-text search"),
    sort: str = Query(DEFAULT_RELEASE_SORT, description="Sort field, '-' prefix for descending"),
    service: ReleaseService = Depends(get_release_service),
):
    params = ListQuery(
        page=page,
        limit=limit,
        genre=genre,
        featured=featured,
        search=search,
        sort=sort,
        artist=artist,
        release_type=release_type,
    )
    try:
        releases, pagination = await service.list_releases(params)
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to fetch releases", e) from e
    return envelope(data=releases, pagination=pagination)


@router.get("/featured", summary="Featured releases")
async def featured_releases(
    limit: int = Query(8, ge=1, le=50),
    service: ReleaseService = Depends(get_release_service),
):
    try:
        releases = await service.featured(limit)
    except Exception as e:
        raise server_error("Failed to fetch featured releases", e) from e
    return envelope(data=releases)


@router.get("/latest", summary="Latest releases")
async def latest_releases(
    limit: int = Query(6, ge=1, le=50),
    service: ReleaseService = Depends(get_release_service),
):
    try:
        releases = await service.latest(limit)
    except Exception as e:
        raise server_error("Failed to fetch latest releases", e) from e
    return envelope(data=releases)


@router.get(
    "/{slug}",
    summary="Get a published release by slug",
    responses={404: {"description": "Release not found or unpublished"}},
)
async def get_release(slug: str, service: ReleaseService = Depends(get_release_service)):
    try:
        release = await service.get_by_slug(slug)
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to fetch release", e) from e
    return envelope(data=release)


@router.post(
    "",
    status_code=201,
    summary="Create a release",
    responses={
        201: {"description": "Release created"},
        400: {"description": "Validation failed, unknown artist or duplicate catalog number"},
        401: {"description": "Missing or invalid admin token"},
    },
    dependencies=[Depends(require_admin)],
)
async def create_release(
    payload: ReleaseIn,
    service: ReleaseService = Depends(get_release_service),
):
    try:
        release = await service.create(payload)
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to create release", e) from e
    return envelope(data=release, message="Release created successfully")


@router.put("/{release_id}", summary="Replace a release", dependencies=[Depends(require_admin)])
async def update_release(
    release_id: str,
    payload: ReleaseIn,
    service: ReleaseService = Depends(get_release_service),
):
    try:
        release = await service.update(release_id, payload)
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to update release", e) from e
    return envelope(data=release, message="Release updated successfully")


@router.delete("/{release_id}", summary="Delete a release", dependencies=[Depends(require_admin)])
async def delete_release(
    release_id: str,
    service: ReleaseService = Depends(get_release_service),
):
    try:
        await service.delete(release_id)
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to delete release", e) from e
    return envelope(message="Release deleted successfully")


@router.post(
    "/{release_id}/play",
    summary="Count a play of a release or one of its tracks",
    responses={
        200: {"description": "Updated play count"},
        400: {"description": "Invalid release id"},
        404: {"description": "Release or track not found"},
    },
)
async def play_release(
    release_id: str,
    body: PlayRequest | None = Body(None),
    db: CatalogDB = Depends(get_catalog_db),
    posthog_client: Posthog | None = Depends(get_posthog_client),
):
    """Increment a track counter (when ``trackId`` is given) and refresh the play totals."""
    track_id = body.track_id if body else None
    try:
        with track_step() as timer:
            result = await record_play(db, release_id, track_id)
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to update play count", e) from e

    capture_event(
        posthog_client,
        "release_played",
        {
            "release_id": str(result.release_id),
            "track_id": track_id,
            "release_total": result.release_total,
        },
        timer=timer,
    )
    return envelope(data={"plays": result.plays})


@router.post(
    "/{release_id}/toggle-featured",
    summary="Toggle a release's featured flag",
    dependencies=[Depends(require_admin)],
)
async def toggle_release_featured(
    release_id: str,
    service: ReleaseService = Depends(get_release_service),
):
    try:
        release = await service.toggle_featured(release_id)
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to toggle featured status", e) from e
    state = "featured" if release.get("featured") else "unfeatured"
    return envelope(data=release, message=f"Release {state} successfully")
