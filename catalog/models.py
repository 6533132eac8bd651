"""Shared schema pieces for artist and release payloads."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, HttpUrl, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel


class Genre(StrEnum):
    ELECTRONIC = "electronic"
    TECHNO = "techno"
    HOUSE = "house"
    AMBIENT = "ambient"
    EXPERIMENTAL = "experimental"
    DRUM_AND_BASS = "drum-and-bass"
    DUBSTEP = "dubstep"
    TRANCE = "trance"
    OTHER = "other"


class CamelModel(BaseModel):
    """Base for request payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        use_enum_values=True,
    )

    def to_document(self) -> dict:
        """Dump with camelCase keys, ready to store."""
        return self.model_dump(by_alias=True)


_HTTP_URL = TypeAdapter(HttpUrl)


def check_uri(value: str | None, allow_relative: bool = False) -> str | None:
    """Accept empty strings or absolute http(s) URLs, returned unchanged.

    With ``allow_relative`` a root-relative path such as the ``/uploads/...``
    url returned by the upload endpoints is accepted too.
    """
    if not value:
        return value
    if allow_relative and value.startswith("/") and not value.startswith("//"):
        return value
    try:
        _HTTP_URL.validate_python(value)
    except ValidationError as e:
        raise ValueError("must be a valid uri") from e
    return value


class StreamingLinks(CamelModel):
    spotify: str | None = None
    apple_music: str | None = None
    soundcloud: str | None = None
    bandcamp: str | None = None
    beatport: str | None = None
    youtube: str | None = None

    @field_validator("*")
    @classmethod
    def _uri(cls, v: str | None) -> str | None:
        return check_uri(v)
