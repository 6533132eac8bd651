"""Unit tests for releases/service.py."""

from unittest.mock import AsyncMock, Mock, patch

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from catalog.query import ListQuery
from core.exceptions import DuplicateEntryError, NotFoundError, ValidationFailedError
from releases.models import ReleaseIn
from releases.service import (
    DUPLICATE_CATALOG_NUMBER,
    DUPLICATE_SLUG,
    ReleaseService,
    duplicate_entry,
    prepare_tracks,
)
from tests.conftest import make_cursor
from tests.factories import make_artist_doc, make_release_doc, make_track_doc, release_payload


class TestPrepareTracks:
    def test_new_tracks_get_ids_and_zero_plays(self):
        tracks = prepare_tracks([{"title": "A", "id": None}, {"title": "B"}])
        assert all(isinstance(t["_id"], ObjectId) for t in tracks)
        assert [t["plays"] for t in tracks] == [0, 0]
        assert "id" not in tracks[0]

    def test_plays_carried_over_by_id(self):
        kept = make_track_doc("Intro", plays=7)
        tracks = prepare_tracks(
            [{"title": "Intro v2", "id": str(kept["_id"])}, {"title": "New"}],
            previous=[kept, make_track_doc("Gone", plays=9)],
        )
        assert tracks[0]["_id"] == kept["_id"]
        assert tracks[0]["plays"] == 7
        assert tracks[1]["plays"] == 0


def _release_in(artist_id, **kwargs):
    return ReleaseIn(**release_payload(artist_id, **kwargs))


class TestListReleases:
    @pytest.mark.asyncio
    async def test_embeds_artist_summary(self, mock_catalog_db):
        artist = make_artist_doc("Test Artist")
        release = make_release_doc(artist=artist["_id"])
        release_cursor = make_cursor([release])
        mock_catalog_db.releases.find.return_value = release_cursor
        mock_catalog_db.releases.count_documents = AsyncMock(return_value=1)
        mock_catalog_db.artists.find.return_value = make_cursor([artist])

        releases, pagination = await ReleaseService(mock_catalog_db).list_releases(
            ListQuery(genre="techno", limit=12, sort="-releaseDate")
        )

        query = mock_catalog_db.releases.find.call_args[0][0]
        assert query == {"published": True, "genre": {"$in": ["techno"]}}
        release_cursor.sort.assert_called_once_with([("releaseDate", -1)])
        assert releases[0]["artist"]["name"] == "Test Artist"
        assert pagination.total == 1

    @pytest.mark.asyncio
    async def test_admin_listing_includes_unpublished(self, mock_catalog_db):
        await ReleaseService(mock_catalog_db).list_releases(
            ListQuery(status="all"), include_hidden=True
        )
        assert mock_catalog_db.releases.find.call_args[0][0] == {}


class TestGetBySlug:
    @pytest.mark.asyncio
    async def test_published_only(self, mock_catalog_db):
        with pytest.raises(NotFoundError) as exc_info:
            await ReleaseService(mock_catalog_db).get_by_slug("hidden")
        assert exc_info.value.message == "Release not found"
        mock_catalog_db.releases.find_one.assert_awaited_once_with(
            {"slug": "hidden", "published": True}
        )


class TestCreate:
    @pytest.mark.asyncio
    async def test_creates_with_slug_and_counters(self, mock_catalog_db):
        artist = make_artist_doc("Test Artist")
        new_id = ObjectId()
        # artist lookup, catalog number check, slug check
        mock_catalog_db.artists.find_one = AsyncMock(return_value=artist)
        mock_catalog_db.releases.find_one = AsyncMock(return_value=None)
        mock_catalog_db.releases.insert_one = AsyncMock(return_value=Mock(inserted_id=new_id))
        mock_catalog_db.artists.find.return_value = make_cursor([artist])

        with patch("releases.service.refresh_artist_counters", new_callable=AsyncMock) as refresh:
            doc = await ReleaseService(mock_catalog_db).create(_release_in(artist["_id"]))

        assert doc["_id"] == new_id
        assert doc["slug"] == "test-artist-night-drive"
        assert doc["catalogNumber"] == "EXC001"
        assert doc["totalPlays"] == 0
        assert doc["tracks"][0]["plays"] == 0
        assert doc["releaseDate"].year == 2024
        assert doc["artist"]["name"] == "Test Artist"
        refresh.assert_awaited_once_with(mock_catalog_db, artist["_id"])

    @pytest.mark.asyncio
    async def test_unknown_artist(self, mock_catalog_db):
        with pytest.raises(ValidationFailedError) as exc_info:
            await ReleaseService(mock_catalog_db).create(_release_in(ObjectId()))
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Artist not found"

    @pytest.mark.asyncio
    async def test_duplicate_catalog_number(self, mock_catalog_db):
        artist = make_artist_doc("Test Artist")
        mock_catalog_db.artists.find_one = AsyncMock(return_value=artist)
        mock_catalog_db.releases.find_one = AsyncMock(return_value={"_id": ObjectId()})

        with pytest.raises(DuplicateEntryError) as exc_info:
            await ReleaseService(mock_catalog_db).create(_release_in(artist["_id"]))
        assert exc_info.value.message == DUPLICATE_CATALOG_NUMBER
        mock_catalog_db.releases.insert_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_slug_race_reports_slug(self, mock_catalog_db):
        artist = make_artist_doc("Test Artist")
        mock_catalog_db.artists.find_one = AsyncMock(return_value=artist)
        mock_catalog_db.releases.find_one = AsyncMock(return_value=None)
        mock_catalog_db.releases.insert_one = AsyncMock(
            side_effect=DuplicateKeyError("dup", 11000, {"keyPattern": {"slug": 1}})
        )

        with pytest.raises(DuplicateEntryError) as exc_info:
            await ReleaseService(mock_catalog_db).create(_release_in(artist["_id"]))
        assert exc_info.value.message == DUPLICATE_SLUG
        assert exc_info.value.details == {"field": "slug"}


class TestDuplicateEntry:
    def test_slug_index(self):
        error = duplicate_entry(DuplicateKeyError("dup", 11000, {"keyPattern": {"slug": 1}}))
        assert error.message == DUPLICATE_SLUG

    def test_catalog_number_index(self):
        error = duplicate_entry(
            DuplicateKeyError("dup", 11000, {"keyPattern": {"catalogNumber": 1}})
        )
        assert error.message == DUPLICATE_CATALOG_NUMBER
        assert error.details == {"field": "catalogNumber"}

    def test_no_details(self):
        assert duplicate_entry(DuplicateKeyError("dup")).message == DUPLICATE_CATALOG_NUMBER


class TestUpdate:
    @pytest.mark.asyncio
    async def test_same_title_keeps_slug_and_plays(self, mock_catalog_db):
        artist = make_artist_doc("Test Artist")
        track = make_track_doc("Intro", plays=4)
        existing = make_release_doc(artist=artist["_id"], tracks=[track])
        mock_catalog_db.releases.find_one = AsyncMock(side_effect=[existing, None])
        mock_catalog_db.artists.find_one = AsyncMock(return_value=artist)
        mock_catalog_db.releases.find_one_and_update = AsyncMock(return_value=dict(existing))

        payload = _release_in(
            artist["_id"],
            tracks=[
                {
                    "id": str(track["_id"]),
                    "title": "Intro",
                    "audioFile": "/uploads/audio/intro.mp3",
                    "trackNumber": 1,
                }
            ],
        )
        with patch("releases.service.refresh_artist_counters", new_callable=AsyncMock) as refresh:
            await ReleaseService(mock_catalog_db).update(str(existing["_id"]), payload)

        changes = mock_catalog_db.releases.find_one_and_update.call_args[0][1]["$set"]
        assert "slug" not in changes
        assert changes["tracks"][0]["plays"] == 4
        assert changes["totalPlays"] == 4
        refresh.assert_awaited_once_with(mock_catalog_db, artist["_id"])

    @pytest.mark.asyncio
    async def test_new_artist_reslugs_and_refreshes_both(self, mock_catalog_db):
        old_artist = ObjectId()
        artist = make_artist_doc("Other Artist")
        existing = make_release_doc(artist=old_artist)
        # existing release, catalog number check, slug check
        mock_catalog_db.releases.find_one = AsyncMock(side_effect=[existing, None, None])
        mock_catalog_db.artists.find_one = AsyncMock(return_value=artist)
        mock_catalog_db.releases.find_one_and_update = AsyncMock(return_value=dict(existing))

        with patch("releases.service.refresh_artist_counters", new_callable=AsyncMock) as refresh:
            await ReleaseService(mock_catalog_db).update(
                str(existing["_id"]), _release_in(artist["_id"])
            )

        changes = mock_catalog_db.releases.find_one_and_update.call_args[0][1]["$set"]
        assert changes["slug"] == "other-artist-night-drive"
        refreshed = [c.args[1] for c in refresh.await_args_list]
        assert refreshed == [artist["_id"], old_artist]

    @pytest.mark.asyncio
    async def test_missing(self, mock_catalog_db):
        with pytest.raises(NotFoundError):
            await ReleaseService(mock_catalog_db).update(str(ObjectId()), _release_in(ObjectId()))


class TestDelete:
    @pytest.mark.asyncio
    async def test_refreshes_artist(self, mock_catalog_db):
        release = make_release_doc()
        mock_catalog_db.releases.find_one_and_delete = AsyncMock(return_value=release)

        with patch("releases.service.refresh_artist_counters", new_callable=AsyncMock) as refresh:
            await ReleaseService(mock_catalog_db).delete(str(release["_id"]))

        refresh.assert_awaited_once_with(mock_catalog_db, release["artist"])

    @pytest.mark.asyncio
    async def test_missing(self, mock_catalog_db):
        with pytest.raises(NotFoundError):
            await ReleaseService(mock_catalog_db).delete(str(ObjectId()))


class TestToggles:
    @pytest.mark.asyncio
    async def test_toggle_published(self, mock_catalog_db):
        release = make_release_doc(published=False)
        mock_catalog_db.releases.find_one = AsyncMock(return_value=release)
        mock_catalog_db.releases.find_one_and_update = AsyncMock(
            return_value={**release, "published": True}
        )

        with patch("releases.service.refresh_artist_counters", new_callable=AsyncMock) as refresh:
            result = await ReleaseService(mock_catalog_db).toggle_published(str(release["_id"]))

        assert result["published"] is True
        update = mock_catalog_db.releases.find_one_and_update.call_args[0][1]["$set"]
        assert update["published"] is True
        refresh.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_toggle_featured_missing(self, mock_catalog_db):
        with pytest.raises(NotFoundError):
            await ReleaseService(mock_catalog_db).toggle_featured(str(ObjectId()))


class TestFeaturedAndLatest:
    @pytest.mark.asyncio
    async def test_featured_sort(self, mock_catalog_db):
        cursor = make_cursor([])
        mock_catalog_db.releases.find.return_value = cursor
        await ReleaseService(mock_catalog_db).featured()
        assert mock_catalog_db.releases.find.call_args[0][0] == {
            "featured": True,
            "published": True,
        }
        cursor.sort.assert_called_once_with([("releaseDate", -1), ("totalPlays", -1)])
        cursor.limit.assert_called_once_with(8)

    @pytest.mark.asyncio
    async def test_latest_limit(self, mock_catalog_db):
        cursor = make_cursor([])
        mock_catalog_db.releases.find.return_value = cursor
        await ReleaseService(mock_catalog_db).latest()
        cursor.limit.assert_called_once_with(6)
