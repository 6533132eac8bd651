"""Shared test fixtures for pytest."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from tests.factories import make_artist_doc, make_release_doc


def make_cursor(docs=None):
    """Chainable stand-in for a pymongo async cursor.

    ``sort``/``skip``/``limit`` return the cursor itself and ``to_list``
    resolves to ``docs``.
    """
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(docs or []))
    return cursor


def make_collection():
    """MagicMock mimicking pymongo's AsyncCollection.

    ``find`` is synchronous and returns a cursor; ``aggregate`` is awaited
    and resolves to a cursor.
    """
    coll = MagicMock()
    coll.find = MagicMock(return_value=make_cursor())
    coll.find_one = AsyncMock(return_value=None)
    coll.find_one_and_update = AsyncMock(return_value=None)
    coll.find_one_and_delete = AsyncMock(return_value=None)
    coll.insert_one = AsyncMock()
    coll.update_one = AsyncMock()
    coll.delete_one = AsyncMock()
    coll.count_documents = AsyncMock(return_value=0)
    coll.aggregate = AsyncMock(return_value=make_cursor())
    coll.create_indexes = AsyncMock()
    return coll


@pytest.fixture
def mock_catalog_db():
    """Create a mock catalog database with artist and release collections."""
    db = MagicMock()
    db.artists = make_collection()
    db.releases = make_collection()
    db.connect = AsyncMock()
    db.ensure_indexes = AsyncMock()
    db.close = AsyncMock()
    db.is_available = AsyncMock(return_value=True)
    return db


@pytest.fixture
def sample_artist():
    """Create a sample artist document for testing."""
    return make_artist_doc(name="Test Artist", slug="test-artist")


@pytest.fixture
def sample_release(sample_artist):
    """Create a sample release document with two tracks."""
    return make_release_doc(artist=sample_artist["_id"])
