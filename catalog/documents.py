"""Helpers for moving documents between MongoDB and JSON responses."""

from datetime import UTC, date, datetime
from typing import Any

from bson import ObjectId

from core.exceptions import InvalidIdError


def utcnow() -> datetime:
    return datetime.now(UTC)


def to_object_id(value: str | ObjectId) -> ObjectId:
    """Parse a 24-hex identifier, raising InvalidIdError otherwise."""
    if isinstance(value, ObjectId):
        return value
    if not ObjectId.is_valid(value):
        raise InvalidIdError()
    return ObjectId(value)


def coerce_id(value: str | ObjectId) -> str | ObjectId:
    """ObjectId when ``value`` looks like one, else the raw string (for legacy track ids)."""
    if isinstance(value, ObjectId):
        return value
    return ObjectId(value) if ObjectId.is_valid(value) else value


def to_datetime(value: date | datetime) -> datetime:
    """BSON has no date type; promote dates to midnight UTC."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    return datetime(value.year, value.month, value.day, tzinfo=UTC)


def serialize(value: Any) -> Any:
    """Recursively convert a stored document into JSON-safe data.

    ``_id`` keys are exposed as ``id``; ObjectIds become hex strings and
    datetimes ISO-8601 strings.
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        out = {}
        for key, item in value.items():
            out["id" if key == "_id" else key] = serialize(item)
        return out
    if isinstance(value, list):
        return [serialize(item) for item in value]
    return value
