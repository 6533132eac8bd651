"""Aggregation queries behind the admin dashboard and analytics views."""

import asyncio
import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from pymongo import DESCENDING

from catalog.db import CatalogDB
from catalog.documents import utcnow

logger = logging.getLogger(__name__)

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}
DEFAULT_PERIOD = "30d"

GENRE_STATS_PIPELINE = [
    {"$match": {"published": True}},
    {"$unwind": "$genre"},
    {"$group": {"_id": "$genre", "count": {"$sum": 1}}},
    {"$sort": {"count": -1}},
]


def period_start(period: str, now: datetime | None = None) -> datetime:
    """Start of an analytics window; unknown periods fall back to 30 days."""
    now = now or utcnow()
    return now - timedelta(days=PERIOD_DAYS.get(period, PERIOD_DAYS[DEFAULT_PERIOD]))


def monthly_window_start(now: datetime | None = None) -> datetime:
    """First day of the month eleven months before ``now`` (a trailing 12-month window)."""
    now = now or utcnow()
    month_index = now.year * 12 + (now.month - 1) - 11
    return datetime(month_index // 12, month_index % 12 + 1, 1, tzinfo=UTC)


async def _aggregate(collection, pipeline: list[dict[str, Any]]) -> list[dict]:
    cursor = await collection.aggregate(pipeline)
    return await cursor.to_list(length=None)


async def dashboard(db: CatalogDB) -> dict[str, Any]:
    """Overview counters, recent activity and genre/monthly breakdowns."""
    recent_cursor = (
        db.releases.find({"published": True}).sort([("releaseDate", DESCENDING)]).limit(5)
    )
    top_cursor = (
        db.artists.find(
            {"active": True},
            {"name": 1, "slug": 1, "totalPlays": 1, "totalReleases": 1, "profileImage": 1},
        )
        .sort([("totalPlays", DESCENDING), ("totalReleases", DESCENDING)])
        .limit(5)
    )

    (
        total_artists,
        active_artists,
        total_releases,
        published_releases,
        featured_artists,
        featured_releases,
        recent_releases,
        top_artists,
    ) = await asyncio.gather(
        db.artists.count_documents({}),
        db.artists.count_documents({"active": True}),
        db.releases.count_documents({}),
        db.releases.count_documents({"published": True}),
        db.artists.count_documents({"featured": True}),
        db.releases.count_documents({"featured": True}),
        recent_cursor.to_list(length=None),
        top_cursor.to_list(length=None),
    )

    plays_rows, genre_stats, monthly_stats = await asyncio.gather(
        _aggregate(
            db.releases,
            [
                {"$match": {"published": True}},
                {"$group": {"_id": None, "totalPlays": {"$sum": "$totalPlays"}}},
            ],
        ),
        _aggregate(db.releases, GENRE_STATS_PIPELINE),
        _aggregate(
            db.releases,
            [
                {
                    "$match": {
                        "published": True,
                        "releaseDate": {"$gte": monthly_window_start()},
                    }
                },
                {
                    "$group": {
                        "_id": {
                            "year": {"$year": "$releaseDate"},
                            "month": {"$month": "$releaseDate"},
                        },
                        "count": {"$sum": 1},
                    }
                },
                {"$sort": {"_id.year": 1, "_id.month": 1}},
            ],
        ),
    )

    # Recent releases show the artist name and slug
    artist_ids = list({r["artist"] for r in recent_releases if r.get("artist") is not None})
    if artist_ids:
        names_cursor = db.artists.find({"_id": {"$in": artist_ids}}, {"name": 1, "slug": 1})
        names = {a["_id"]: a for a in await names_cursor.to_list(length=None)}
        for release in recent_releases:
            release["artist"] = names.get(release.get("artist"), release.get("artist"))

    return {
        "overview": {
            "totalArtists": total_artists,
            "activeArtists": active_artists,
            "totalReleases": total_releases,
            "publishedReleases": published_releases,
            "featuredArtists": featured_artists,
            "featuredReleases": featured_releases,
            "totalPlays": plays_rows[0]["totalPlays"] if plays_rows else 0,
        },
        "recentReleases": recent_releases,
        "topArtists": top_artists,
        "genreStats": genre_stats,
        "monthlyStats": monthly_stats,
    }


async def analytics(db: CatalogDB, period: str = DEFAULT_PERIOD) -> dict[str, Any]:
    """Top tracks plus genre and release-type distributions of published releases.

    Play counters are lifetime totals, so ``period`` is reported back along
    with the start of its window but does not filter the play data.
    """
    top_tracks, genre_distribution, release_type_distribution = await asyncio.gather(
        _aggregate(
            db.releases,
            [
                {"$match": {"published": True}},
                {"$unwind": "$tracks"},
                {"$sort": {"tracks.plays": -1}},
                {"$limit": 10},
                {
                    "$lookup": {
                        "from": "artists",
                        "localField": "artist",
                        "foreignField": "_id",
                        "as": "artistInfo",
                    }
                },
                {
                    "$project": {
                        "trackTitle": "$tracks.title",
                        "trackPlays": "$tracks.plays",
                        "releaseTitle": "$title",
                        "artistName": {"$arrayElemAt": ["$artistInfo.name", 0]},
                    }
                },
            ],
        ),
        _aggregate(
            db.releases,
            [
                {"$match": {"published": True}},
                {"$unwind": "$genre"},
                {
                    "$group": {
                        "_id": "$genre",
                        "count": {"$sum": 1},
                        "plays": {"$sum": "$totalPlays"},
                    }
                },
                {"$sort": {"count": -1}},
            ],
        ),
        _aggregate(
            db.releases,
            [
                {"$match": {"published": True}},
                {"$group": {"_id": "$releaseType", "count": {"$sum": 1}}},
                {"$sort": {"count": -1}},
            ],
        ),
    )

    return {
        "topTracks": top_tracks,
        "genreDistribution": genre_distribution,
        "releaseTypeDistribution": release_type_distribution,
        "period": period,
        "since": period_start(period),
    }
