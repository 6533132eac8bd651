from datetime import date, datetime
from enum import StrEnum

from pydantic import Field, field_validator

from catalog.models import CamelModel, Genre, StreamingLinks


class ReleaseType(StrEnum):
    SINGLE = "single"
    EP = "ep"
    ALBUM = "album"
    COMPILATION = "compilation"
    REMIX = "remix"


class Currency(StrEnum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"


class TrackIn(CamelModel):
    """A track embedded in a release payload."""

    # Existing track id; plays are carried over when a release is replaced
    id: str | None = None
    title: str = Field(..., min_length=1, max_length=200)
    duration: str | None = Field(None, pattern=r"^\d{1,2}:\d{2}$")
    audio_file: str = Field(..., min_length=1)
    track_number: int = Field(..., ge=1)
    featured: bool = False


class ReleaseIn(CamelModel):
    """Payload for creating or replacing a release."""

    title: str = Field(..., min_length=1, max_length=200)
    artist: str = Field(..., pattern=r"^[0-9a-fA-F]{24}$")
    release_type: ReleaseType
    genre: list[Genre] = []
    description: str | None = Field(None, max_length=1000)
    artwork: str = Field(..., min_length=1)
    tracks: list[TrackIn] = Field(..., min_length=1)
    release_date: date | datetime
    catalog_number: str = Field(..., min_length=1, max_length=20)
    price: float = Field(0, ge=0)
    currency: Currency = Currency.USD
    streaming_links: StreamingLinks = Field(default_factory=StreamingLinks)
    featured: bool = False
    published: bool = False
    tags: list[str] = []

    @field_validator("catalog_number")
    @classmethod
    def _upper_catalog_number(cls, v: str) -> str:
        return v.upper()

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, v: list[str]) -> list[str]:
        return [tag.strip().lower() for tag in v if tag.strip()]


class PlayRequest(CamelModel):
    track_id: str | None = None
