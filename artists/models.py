import re

from pydantic import Field, field_validator

from catalog.models import CamelModel, Genre, check_uri

SOCIAL_PATTERNS = {
    "instagram": (re.compile(r"^https?://(www\.)?instagram\.com/"), "Invalid Instagram URL"),
    "twitter": (re.compile(r"^https?://(www\.)?twitter\.com/"), "Invalid Twitter URL"),
    "soundcloud": (re.compile(r"^https?://(www\.)?soundcloud\.com/"), "Invalid SoundCloud URL"),
    "spotify": (re.compile(r"^https?://(open\.)?spotify\.com/"), "Invalid Spotify URL"),
    "website": (re.compile(r"^https?://"), "Invalid website URL"),
}


class SocialLinks(CamelModel):
    """Artist social profiles; each link must point at its own platform."""

    instagram: str | None = None
    twitter: str | None = None
    soundcloud: str | None = None
    spotify: str | None = None
    website: str | None = None

    @field_validator("*")
    @classmethod
    def _platform_url(cls, v: str | None, info) -> str | None:
        if not v:
            return v
        pattern, message = SOCIAL_PATTERNS[info.field_name]
        try:
            check_uri(v)
        except ValueError as e:
            raise ValueError(message) from e
        if not pattern.match(v):
            raise ValueError(message)
        return v


class ArtistIn(CamelModel):
    """Payload for creating or replacing an artist."""

    name: str = Field(..., min_length=1, max_length=100)
    bio: str | None = Field(None, max_length=2000)
    profile_image: str | None = None
    genre: list[Genre] = []
    social_links: SocialLinks = Field(default_factory=SocialLinks)
    featured: bool = False
    active: bool = True

    @field_validator("profile_image")
    @classmethod
    def _profile_uri(cls, v: str | None) -> str | None:
        return check_uri(v, allow_relative=True)
