"""Slug derivation for artists and releases."""

import re

from bson import ObjectId
from pymongo.asynchronous.collection import AsyncCollection

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_REPEATED_HYPHENS = re.compile(r"-+")


def slugify(text: str) -> str:
    """Lowercase ``text`` and collapse every run of non [a-z0-9] characters into one hyphen.

    Leading and trailing hyphens are stripped, so "Test Artist!!" becomes "test-artist".
    """
    slug = _NON_ALNUM.sub("-", text.lower())
    slug = _REPEATED_HYPHENS.sub("-", slug)
    return slug.strip("-")


def release_slug_base(artist_name: str, title: str) -> str:
    return slugify(f"{artist_name}-{title}")


async def unique_release_slug(
    releases: AsyncCollection,
    artist_name: str,
    title: str,
    exclude_id: ObjectId | None = None,
) -> str:
    """Derive a release slug, suffixing the smallest free positive integer on collision."""
    base = release_slug_base(artist_name, title)
    slug = base
    counter = 1
    while True:
        query: dict = {"slug": slug}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        if await releases.find_one(query, {"_id": 1}) is None:
            return slug
        slug = f"{base}-{counter}"
        counter += 1
