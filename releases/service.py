"""Release persistence and listing over the catalog store."""

import logging
from typing import Any

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from catalog.db import CatalogDB
from catalog.documents import coerce_id, to_datetime, to_object_id, utcnow
from catalog.query import (
    DEFAULT_RELEASE_SORT,
    ListQuery,
    Pagination,
    build_pagination,
    build_release_filter,
    parse_sort,
)
from catalog.slugs import unique_release_slug
from core.exceptions import DuplicateEntryError, NotFoundError, ValidationFailedError
from releases.models import ReleaseIn
from releases.plays import recompute_release_totals, refresh_artist_counters

logger = logging.getLogger(__name__)

DUPLICATE_CATALOG_NUMBER = "Release with this catalog number already exists"
DUPLICATE_SLUG = "Release with this slug already exists"

ARTIST_SUMMARY = {"name": 1, "slug": 1, "profileImage": 1}
ARTIST_DETAIL = {"name": 1, "slug": 1, "profileImage": 1, "bio": 1, "socialLinks": 1}


def duplicate_entry(e: DuplicateKeyError) -> DuplicateEntryError:
    """Name the unique index a write collided with."""
    key_pattern = (e.details or {}).get("keyPattern") or {}
    if "slug" in key_pattern:
        return DuplicateEntryError(DUPLICATE_SLUG, {"field": "slug"})
    return DuplicateEntryError(DUPLICATE_CATALOG_NUMBER, {"field": "catalogNumber"})


def prepare_tracks(tracks: list[dict], previous: list[dict] | None = None) -> list[dict]:
    """Assign embedded track ids and carry over play counts from a replaced release.

    Tracks arrive with an optional ``id``; matching ids keep their ``plays``,
    new tracks start at zero.
    """
    previous_plays = {str(t.get("_id")): int(t.get("plays") or 0) for t in previous or []}
    prepared = []
    for track in tracks:
        track = dict(track)
        track_id = track.pop("id", None)
        track["_id"] = coerce_id(track_id) if track_id else ObjectId()
        track["plays"] = previous_plays.get(str(track["_id"]), 0)
        prepared.append(track)
    return prepared


class ReleaseService:
    """Release reads and writes; one instance per request."""

    def __init__(self, db: CatalogDB):
        self.db = db

    async def list_releases(
        self, params: ListQuery, include_hidden: bool = False
    ) -> tuple[list[dict], Pagination]:
        query = build_release_filter(params, include_hidden=include_hidden)
        cursor = (
            self.db.releases.find(query)
            .sort(parse_sort(params.sort, DEFAULT_RELEASE_SORT))
            .skip(params.skip)
            .limit(params.limit)
        )
        releases = await cursor.to_list(length=None)
        total = await self.db.releases.count_documents(query)
        await self._attach_artists(releases, ARTIST_SUMMARY)
        return releases, build_pagination(params.page, params.limit, total)

    async def featured(self, limit: int = 8) -> list[dict]:
        cursor = (
            self.db.releases.find({"featured": True, "published": True})
            .sort([("releaseDate", DESCENDING), ("totalPlays", DESCENDING)])
            .limit(limit)
        )
        releases = await cursor.to_list(length=None)
        await self._attach_artists(releases, ARTIST_SUMMARY)
        return releases

    async def latest(self, limit: int = 6) -> list[dict]:
        cursor = (
            self.db.releases.find({"published": True})
            .sort([("releaseDate", DESCENDING)])
            .limit(limit)
        )
        releases = await cursor.to_list(length=None)
        await self._attach_artists(releases, ARTIST_SUMMARY)
        return releases

    async def get_by_slug(self, slug: str) -> dict:
        release = await self.db.releases.find_one({"slug": slug, "published": True})
        if release is None:
            raise NotFoundError("Release not found")
        await self._attach_artists([release], ARTIST_DETAIL)
        return release

    async def create(self, payload: ReleaseIn) -> dict:
        artist = await self._require_artist(payload.artist)

        doc = payload.to_document()
        await self._check_catalog_number(doc["catalogNumber"])

        now = utcnow()
        doc["artist"] = artist["_id"]
        doc["releaseDate"] = to_datetime(payload.release_date)
        doc["tracks"] = prepare_tracks(doc["tracks"])
        doc["totalPlays"] = recompute_release_totals(doc)
        doc["totalDownloads"] = 0
        doc["slug"] = await unique_release_slug(self.db.releases, artist["name"], payload.title)
        doc["createdAt"] = now
        doc["updatedAt"] = now

        try:
            result = await self.db.releases.insert_one(doc)
        except DuplicateKeyError as e:
            raise duplicate_entry(e) from e

        doc["_id"] = result.inserted_id
        logger.info(f"Created release {doc['slug']} ({result.inserted_id})")

        await refresh_artist_counters(self.db, artist["_id"])
        await self._attach_artists([doc], ARTIST_SUMMARY)
        return doc

    async def update(self, release_id: str, payload: ReleaseIn) -> dict:
        oid = to_object_id(release_id)
        existing = await self.db.releases.find_one({"_id": oid})
        if existing is None:
            raise NotFoundError("Release not found")
        artist = await self._require_artist(payload.artist)

        changes = payload.to_document()
        await self._check_catalog_number(changes["catalogNumber"], exclude_id=oid)

        changes["artist"] = artist["_id"]
        changes["releaseDate"] = to_datetime(payload.release_date)
        changes["tracks"] = prepare_tracks(changes["tracks"], existing.get("tracks"))
        changes["totalPlays"] = recompute_release_totals(changes)
        changes["updatedAt"] = utcnow()

        previous_artist = existing.get("artist")
        if payload.title != existing.get("title") or artist["_id"] != previous_artist:
            changes["slug"] = await unique_release_slug(
                self.db.releases, artist["name"], payload.title, exclude_id=oid
            )

        try:
            updated = await self.db.releases.find_one_and_update(
                {"_id": oid}, {"$set": changes}, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError as e:
            raise duplicate_entry(e) from e
        if updated is None:
            raise NotFoundError("Release not found")

        await refresh_artist_counters(self.db, artist["_id"])
        if previous_artist is not None and previous_artist != artist["_id"]:
            await refresh_artist_counters(self.db, previous_artist)

        await self._attach_artists([updated], ARTIST_SUMMARY)
        return updated

    async def delete(self, release_id: str) -> None:
        oid = to_object_id(release_id)
        deleted = await self.db.releases.find_one_and_delete({"_id": oid})
        if deleted is None:
            raise NotFoundError("Release not found")
        logger.info(f"Deleted release {deleted.get('slug')} ({oid})")
        await refresh_artist_counters(self.db, deleted.get("artist"))

    async def toggle_featured(self, release_id: str) -> dict:
        return await self._toggle(release_id, "featured")

    async def toggle_published(self, release_id: str) -> dict:
        return await self._toggle(release_id, "published")

    async def _toggle(self, release_id: str, flag: str) -> dict:
        oid = to_object_id(release_id)
        release = await self.db.releases.find_one({"_id": oid}, {flag: 1})
        if release is None:
            raise NotFoundError("Release not found")

        updated = await self.db.releases.find_one_and_update(
            {"_id": oid},
            {"$set": {flag: not release.get(flag, False), "updatedAt": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise NotFoundError("Release not found")

        await refresh_artist_counters(self.db, updated.get("artist"))
        return updated

    async def _require_artist(self, artist_id: str) -> dict:
        artist = await self.db.artists.find_one({"_id": to_object_id(artist_id)}, {"name": 1})
        if artist is None:
            raise ValidationFailedError("Artist not found", {"field": "artist"})
        return artist

    async def _check_catalog_number(
        self, catalog_number: str, exclude_id: ObjectId | None = None
    ) -> None:
        query: dict[str, Any] = {"catalogNumber": catalog_number}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        if await self.db.releases.find_one(query, {"_id": 1}) is not None:
            raise DuplicateEntryError(DUPLICATE_CATALOG_NUMBER, {"field": "catalogNumber"})

    async def _attach_artists(self, releases: list[dict], projection: dict[str, Any]) -> None:
        """Replace each release's ``artist`` id with an artist summary document."""
        ids = list({r["artist"] for r in releases if isinstance(r.get("artist"), ObjectId)})
        if not ids:
            return

        cursor = self.db.artists.find({"_id": {"$in": ids}}, projection)
        artists = {a["_id"]: a for a in await cursor.to_list(length=None)}
        for release in releases:
            artist_id = release.get("artist")
            if artist_id in artists:
                release["artist"] = artists[artist_id]
