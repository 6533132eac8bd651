"""Artist persistence and listing over the catalog store."""

import logging
from collections import defaultdict
from typing import Any

from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from artists.models import ArtistIn
from catalog.db import CatalogDB
from catalog.documents import to_object_id, utcnow
from catalog.query import (
    DEFAULT_ARTIST_SORT,
    ListQuery,
    Pagination,
    build_artist_filter,
    build_pagination,
    parse_sort,
)
from catalog.slugs import slugify
from core.exceptions import DuplicateEntryError, NotFoundError, ValidationFailedError

logger = logging.getLogger(__name__)

DUPLICATE_NAME = "Artist with this name already exists"

# Release fields embedded in artist listings
RELEASE_PREVIEW = {"title": 1, "artwork": 1, "releaseDate": 1, "totalPlays": 1, "artist": 1}
ADMIN_RELEASE_PREVIEW = {"title": 1, "releaseDate": 1, "published": 1, "artist": 1}


class ArtistService:
    """Artist reads and writes; one instance per request."""

    def __init__(self, db: CatalogDB):
        self.db = db

    async def list_artists(
        self, params: ListQuery, include_hidden: bool = False
    ) -> tuple[list[dict], Pagination]:
        """Page through artists matching ``params``.

        Public listings embed the five latest published releases per artist;
        admin listings embed the three latest releases of any status.
        """
        query = build_artist_filter(params, include_hidden=include_hidden)
        cursor = (
            self.db.artists.find(query)
            .sort(parse_sort(params.sort, DEFAULT_ARTIST_SORT))
            .skip(params.skip)
            .limit(params.limit)
        )
        artists = await cursor.to_list(length=None)
        total = await self.db.artists.count_documents(query)

        if include_hidden:
            await self._attach_releases(
                artists, ADMIN_RELEASE_PREVIEW, per_artist=3, published_only=False
            )
        else:
            await self._attach_releases(artists, RELEASE_PREVIEW, per_artist=5)

        return artists, build_pagination(params.page, params.limit, total)

    async def featured(self, limit: int = 6) -> list[dict]:
        cursor = (
            self.db.artists.find({"featured": True, "active": True})
            .sort([("totalPlays", DESCENDING), ("createdAt", DESCENDING)])
            .limit(limit)
        )
        artists = await cursor.to_list(length=None)
        await self._attach_releases(
            artists, {"title": 1, "artwork": 1, "releaseDate": 1, "artist": 1}, per_artist=3
        )
        return artists

    async def get_by_slug(self, slug: str) -> dict:
        artist = await self.db.artists.find_one({"slug": slug, "active": True})
        if artist is None:
            raise NotFoundError("Artist not found")
        await self._attach_releases([artist], None, per_artist=None)
        return artist

    async def create(self, payload: ArtistIn) -> dict:
        doc = payload.to_document()
        slug = self._derive_slug(payload.name)
        if await self.db.artists.find_one({"slug": slug}, {"_id": 1}) is not None:
            raise DuplicateEntryError(DUPLICATE_NAME, {"field": "name"})

        now = utcnow()
        doc.update(
            slug=slug,
            joinedDate=now,
            totalReleases=0,
            totalPlays=0,
            createdAt=now,
            updatedAt=now,
        )
        try:
            result = await self.db.artists.insert_one(doc)
        except DuplicateKeyError as e:
            raise DuplicateEntryError(DUPLICATE_NAME, {"field": "name"}) from e

        doc["_id"] = result.inserted_id
        logger.info(f"Created artist {slug} ({result.inserted_id})")
        return doc

    async def update(self, artist_id: str, payload: ArtistIn) -> dict:
        oid = to_object_id(artist_id)
        existing = await self.db.artists.find_one({"_id": oid})
        if existing is None:
            raise NotFoundError("Artist not found")

        changes = payload.to_document()
        slug = self._derive_slug(payload.name)
        if slug != existing.get("slug"):
            clash = await self.db.artists.find_one({"slug": slug, "_id": {"$ne": oid}}, {"_id": 1})
            if clash is not None:
                raise DuplicateEntryError(DUPLICATE_NAME, {"field": "name"})
        changes["slug"] = slug
        changes["updatedAt"] = utcnow()

        try:
            updated = await self.db.artists.find_one_and_update(
                {"_id": oid}, {"$set": changes}, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError as e:
            raise DuplicateEntryError(DUPLICATE_NAME, {"field": "name"}) from e

        if updated is None:
            raise NotFoundError("Artist not found")
        return updated

    async def delete(self, artist_id: str) -> str:
        """Delete an artist, or deactivate it when releases still reference it.

        Returns:
            The user-facing outcome message
        """
        oid = to_object_id(artist_id)
        artist = await self.db.artists.find_one({"_id": oid}, {"_id": 1})
        if artist is None:
            raise NotFoundError("Artist not found")

        release_count = await self.db.releases.count_documents({"artist": oid})
        if release_count > 0:
            await self.db.artists.update_one(
                {"_id": oid}, {"$set": {"active": False, "updatedAt": utcnow()}}
            )
            logger.info(f"Deactivated artist {oid} ({release_count} releases)")
            return "Artist deactivated (has releases)"

        await self.db.artists.delete_one({"_id": oid})
        logger.info(f"Deleted artist {oid}")
        return "Artist deleted successfully"

    async def toggle_featured(self, artist_id: str) -> dict:
        oid = to_object_id(artist_id)
        artist = await self.db.artists.find_one({"_id": oid}, {"featured": 1})
        if artist is None:
            raise NotFoundError("Artist not found")

        updated = await self.db.artists.find_one_and_update(
            {"_id": oid},
            {"$set": {"featured": not artist.get("featured", False), "updatedAt": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise NotFoundError("Artist not found")
        return updated

    @staticmethod
    def _derive_slug(name: str) -> str:
        slug = slugify(name)
        if not slug:
            raise ValidationFailedError(
                "Validation failed",
                {"field": "name", "message": "Artist name must contain letters or digits"},
            )
        return slug

    async def _attach_releases(
        self,
        artists: list[dict],
        projection: dict[str, Any] | None,
        per_artist: int | None,
        published_only: bool = True,
    ) -> None:
        """Embed each artist's releases (newest first) under ``releases``."""
        ids = [artist["_id"] for artist in artists]
        if not ids:
            return

        query: dict[str, Any] = {"artist": {"$in": ids}}
        if published_only:
            query["published"] = True

        cursor = self.db.releases.find(query, projection).sort([("releaseDate", DESCENDING)])
        releases = await cursor.to_list(length=None)

        grouped: dict[Any, list[dict]] = defaultdict(list)
        for release in releases:
            bucket = grouped[release["artist"]]
            if per_artist is None or len(bucket) < per_artist:
                bucket.append(release)

        for artist in artists:
            artist["releases"] = grouped.get(artist["_id"], [])
