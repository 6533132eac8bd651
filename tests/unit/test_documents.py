"""Unit tests for catalog/documents.py."""

from datetime import UTC, date, datetime

import pytest
from bson import ObjectId

from catalog.documents import coerce_id, serialize, to_datetime, to_object_id
from core.exceptions import InvalidIdError


class TestToObjectId:
    def test_valid_hex(self):
        oid = ObjectId()
        assert to_object_id(str(oid)) == oid

    def test_passthrough(self):
        oid = ObjectId()
        assert to_object_id(oid) is oid

    @pytest.mark.parametrize("value", ["", "123", "zzzzzzzzzzzzzzzzzzzzzzzz"])
    def test_invalid_raises(self, value):
        with pytest.raises(InvalidIdError) as exc_info:
            to_object_id(value)
        assert exc_info.value.status_code == 400


class TestCoerceId:
    def test_hex_becomes_object_id(self):
        oid = ObjectId()
        assert coerce_id(str(oid)) == oid

    def test_other_strings_kept(self):
        assert coerce_id("t1") == "t1"


class TestToDatetime:
    def test_date_promoted_to_midnight_utc(self):
        assert to_datetime(date(2024, 3, 1)) == datetime(2024, 3, 1, tzinfo=UTC)

    def test_naive_datetime_gets_utc(self):
        assert to_datetime(datetime(2024, 3, 1, 12)).tzinfo == UTC


class TestSerialize:
    def test_nested_document(self):
        artist_id = ObjectId()
        track_id = ObjectId()
        doc = {
            "_id": artist_id,
            "createdAt": datetime(2024, 1, 1, tzinfo=UTC),
            "releases": [{"_id": track_id, "title": "x"}],
        }
        assert serialize(doc) == {
            "id": str(artist_id),
            "createdAt": "2024-01-01T00:00:00+00:00",
            "releases": [{"id": str(track_id), "title": "x"}],
        }

    def test_scalars_untouched(self):
        assert serialize(5) == 5
        assert serialize(None) is None
