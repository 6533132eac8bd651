"""Translate listing query parameters into MongoDB filters, sorts and pages.

Public listings are always restricted to ``active`` artists and ``published``
releases; admin listings pass ``include_hidden=True`` and may narrow by status
instead. Genre and sort values are handed to the store unvalidated.
"""

import math
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pymongo import ASCENDING, DESCENDING

from catalog.documents import coerce_id

DEFAULT_ARTIST_SORT = "-createdAt"
DEFAULT_RELEASE_SORT = "-releaseDate"


@dataclass
class ListQuery:
    """Listing parameters shared by the artist and release endpoints."""

    page: int = 1
    limit: int = 10
    genre: str | None = None
    featured: str | None = None
    search: str | None = None
    sort: str = DEFAULT_ARTIST_SORT
    artist: str | None = None
    release_type: str | None = None
    status: str = "all"

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


class Pagination(BaseModel):
    """Pagination metadata returned with every list response."""

    model_config = ConfigDict(populate_by_name=True)

    page: int
    pages: int
    total: int
    limit: int
    has_next: bool = Field(serialization_alias="hasNext")
    has_prev: bool = Field(serialization_alias="hasPrev")


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    pages = math.ceil(total / limit) if limit else 0
    return Pagination(
        page=page,
        pages=pages,
        total=total,
        limit=limit,
        has_next=page < pages,
        has_prev=page > 1,
    )


def parse_genres(genre: str | None) -> list[str]:
    if not genre:
        return []
    return [g.strip() for g in genre.split(",") if g.strip()]


def parse_sort(sort: str | None, default: str) -> list[tuple[str, int]]:
    """Turn a ``field`` / ``-field`` token into a single-key pymongo sort spec."""
    token = (sort or "").strip() or default
    if token.startswith("-"):
        return [(token[1:], DESCENDING)]
    return [(token.lstrip("+"), ASCENDING)]


def _apply_common_filters(query: dict[str, Any], params: ListQuery) -> None:
    genres = parse_genres(params.genre)
    if genres:
        query["genre"] = {"$in": genres}
    if params.featured == "true":
        query["featured"] = True
    if params.search:
        query["$text"] = {"$search": params.search}


def build_artist_filter(params: ListQuery, include_hidden: bool = False) -> dict[str, Any]:
    """Build the artist filter document.

    Args:
        params: Parsed listing parameters
        include_hidden: Admin listing; ``params.status`` (all/active/inactive) replaces
            the public ``active: true`` restriction
    """
    query: dict[str, Any] = {}
    if include_hidden:
        if params.status == "active":
            query["active"] = True
        elif params.status == "inactive":
            query["active"] = False
    else:
        query["active"] = True

    _apply_common_filters(query, params)
    return query


def build_release_filter(params: ListQuery, include_hidden: bool = False) -> dict[str, Any]:
    """Build the release filter document.

    Args:
        params: Parsed listing parameters
        include_hidden: Admin listing; ``params.status`` (all/published/unpublished)
            replaces the public ``published: true`` restriction
    """
    query: dict[str, Any] = {}
    if include_hidden:
        if params.status == "published":
            query["published"] = True
        elif params.status == "unpublished":
            query["published"] = False
    else:
        query["published"] = True

    _apply_common_filters(query, params)
    if params.artist:
        query["artist"] = coerce_id(params.artist)
    if params.release_type:
        query["releaseType"] = params.release_type
    return query
