"""Play counting and the denormalized counters derived from it.

Counters flow bottom-up: a track's ``plays`` is incremented atomically, the
release ``totalPlays`` is recomputed from its tracks, then the artist
``totalPlays`` from all of the artist's releases. The three writes are not
atomic as a group, so a reader may see a release updated before its artist.
"""

import logging
from dataclasses import dataclass

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from catalog.db import CatalogDB
from catalog.documents import coerce_id, to_object_id
from core.exceptions import NotFoundError
from core.sentry import add_store_breadcrumb, capture_exception

logger = logging.getLogger(__name__)


@dataclass
class PlayResult:
    release_id: ObjectId
    artist_id: ObjectId | None
    plays: int
    release_total: int


def recompute_release_totals(release: dict) -> int:
    """Sum of track plays for a release document."""
    return sum(int(track.get("plays") or 0) for track in release.get("tracks", []))


async def recompute_artist_totals(db: CatalogDB, artist_id: ObjectId) -> int:
    """Set the artist's ``totalPlays`` to the sum over all of its releases.

    Unpublished releases are counted as well.
    """
    cursor = await db.releases.aggregate(
        [
            {"$match": {"artist": artist_id}},
            {"$group": {"_id": None, "totalPlays": {"$sum": "$totalPlays"}}},
        ]
    )
    rows = await cursor.to_list(length=None)
    total = int(rows[0]["totalPlays"]) if rows else 0
    await db.artists.update_one({"_id": artist_id}, {"$set": {"totalPlays": total}})
    return total


async def recompute_release_count(db: CatalogDB, artist_id: ObjectId) -> int:
    """Set the artist's ``totalReleases`` to the number of its published releases."""
    count = await db.releases.count_documents({"artist": artist_id, "published": True})
    await db.artists.update_one({"_id": artist_id}, {"$set": {"totalReleases": count}})
    return count


async def refresh_artist_counters(db: CatalogDB, artist_id: ObjectId | None) -> None:
    """Recompute both artist counters after a release write; failures are logged only."""
    if artist_id is None:
        return
    try:
        await recompute_release_count(db, artist_id)
        await recompute_artist_totals(db, artist_id)
    except PyMongoError as e:
        logger.error(f"Error updating counters for artist {artist_id}: {e}")
        capture_exception(e, {"artist_id": str(artist_id)})


async def record_play(db: CatalogDB, release_id: str, track_id: str | None = None) -> PlayResult:
    """Count one play of a release, or of one of its tracks.

    Args:
        db: Catalog store handle
        release_id: Release ObjectId (hex string)
        track_id: Optional embedded track id; its counter is incremented by exactly one

    Returns:
        PlayResult: the track's new count when ``track_id`` was given, else the release total

    Raises:
        InvalidIdError: ``release_id`` is malformed
        NotFoundError: release or track does not exist
    """
    oid = to_object_id(release_id)
    add_store_breadcrumb("record_play", {"release_id": release_id, "track_id": track_id})

    if track_id:
        tid = coerce_id(track_id)
        release = await db.releases.find_one_and_update(
            {"_id": oid, "tracks._id": tid},
            {"$inc": {"tracks.$.plays": 1}},
            return_document=ReturnDocument.AFTER,
        )
        if release is None:
            if await db.releases.find_one({"_id": oid}, {"_id": 1}) is None:
                raise NotFoundError("Release not found")
            raise NotFoundError("Track not found")
    else:
        release = await db.releases.find_one({"_id": oid})
        if release is None:
            raise NotFoundError("Release not found")

    release_total = recompute_release_totals(release)
    await db.releases.update_one({"_id": oid}, {"$set": {"totalPlays": release_total}})

    artist_id = release.get("artist")
    if artist_id is not None:
        try:
            await recompute_artist_totals(db, artist_id)
        except PyMongoError as e:
            # Track and release counters are already committed
            logger.error(f"Error updating artist play total for release {oid}: {e}")
            capture_exception(e, {"release_id": str(oid), "artist_id": str(artist_id)})

    plays = release_total
    if track_id:
        track = next(t for t in release["tracks"] if t.get("_id") == tid)
        plays = int(track.get("plays") or 0)

    return PlayResult(release_id=oid, artist_id=artist_id, plays=plays, release_total=release_total)
