"""Artist router with dependency injection."""

import logging

from fastapi import APIRouter, Depends, Query

from admin.auth import require_admin
from artists.models import ArtistIn
from artists.service import ArtistService
from catalog.query import DEFAULT_ARTIST_SORT, ListQuery
from core.dependencies import get_artist_service
from core.exceptions import CatalogServiceError
from core.responses import envelope, server_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/artists", tags=["artists"])


@router.get(
    "",
    summary="List active artists",
    description="""
    Page through active artists, newest first by default.

    Filters:
    - `genre`: comma-separated genres, matching any
    - `featured`: `true` to list only featured artists
    - `search`: full-text search over name and bio
    - `sort`: a field name, prefixed with `-` for descending (e.g. `-totalPlays`)

    Example request:
    ```
    GET /api/artists?genre=techno,house&page=2&limit=5
    ```
    """,
    responses={
        200: {"description": "Artists with pagination metadata"},
        400: {"description": "Invalid paging parameters"},
        500: {"description": "Internal server error"},
    },
)
async def list_artists(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Page size"),
    genre: str | None = Query(None, description="Comma-separated genres"),
    featured: str | None = Query(None, description="'true' to list featured artists only"),
    search: str | None = Query(None, description="Full-text search"),
    sort: str = Query(DEFAULT_ARTIST_SORT, description="Sort field, '-' prefix for descending"),
    service: ArtistService = Depends(get_artist_service),
):
    params = ListQuery(
        page=page, limit=limit, genre=genre, featured=featured, search=search, sort=sort
    )
    try:
        artists, pagination = await service.list_artists(params)
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to fetch artists", e) from e
    return envelope(data=artists, pagination=pagination)


@router.get("/featured", summary="Featured artists")
async def featured_artists(
    limit: int = Query(6, ge=1, le=50),
    service: ArtistService = Depends(get_artist_service),
):
    try:
        artists = await service.featured(limit)
    except Exception as e:
        raise server_error("Failed to fetch featured artists", e) from e
    return envelope(data=artists)


@router.get(
    "/{slug}",
    summary="Get an active artist by slug",
    responses={404: {"description": "Artist not found or inactive"}},
)
async def get_artist(slug: str, service: ArtistService = Depends(get_artist_service)):
    try:
        artist = await service.get_by_slug(slug)
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to fetch artist", e) from e
    return envelope(data=artist)


@router.post(
    "",
    status_code=201,
    summary="Create an artist",
    responses={
        201: {"description": "Artist created"},
        400: {"description": "Validation failed or name already taken"},
        401: {"description": "Missing or invalid admin token"},
    },
    dependencies=[Depends(require_admin)],
)
async def create_artist(payload: ArtistIn, service: ArtistService = Depends(get_artist_service)):
    try:
        artist = await service.create(payload)
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to create artist", e) from e
    return envelope(data=artist, message="Artist created successfully")


@router.put("/{artist_id}", summary="Replace an artist", dependencies=[Depends(require_admin)])
async def update_artist(
    artist_id: str,
    payload: ArtistIn,
    service: ArtistService = Depends(get_artist_service),
):
    try:
        artist = await service.update(artist_id, payload)
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to update artist", e) from e
    return envelope(data=artist, message="Artist updated successfully")


@router.delete(
    "/{artist_id}",
    summary="Delete an artist, or deactivate it if it has releases",
    dependencies=[Depends(require_admin)],
)
async def delete_artist(artist_id: str, service: ArtistService = Depends(get_artist_service)):
    try:
        message = await service.delete(artist_id)
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to delete artist", e) from e
    return envelope(message=message)


@router.post(
    "/{artist_id}/toggle-featured",
    summary="Toggle an artist's featured flag",
    dependencies=[Depends(require_admin)],
)
async def toggle_artist_featured(
    artist_id: str,
    service: ArtistService = Depends(get_artist_service),
):
    try:
        artist = await service.toggle_featured(artist_id)
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to toggle featured status", e) from e
    state = "featured" if artist.get("featured") else "unfeatured"
    return envelope(data=artist, message=f"Artist {state} successfully")
