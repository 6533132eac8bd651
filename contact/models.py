from enum import StrEnum

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ContactType(StrEnum):
    GENERAL = "general"
    BOOKING = "booking"
    DEMO = "demo"
    PRESS = "press"
    SUPPORT = "support"


class ContactRequest(BaseModel):
    """A contact form submission."""

    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True)

    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    subject: str = Field(..., min_length=5, max_length=200)
    message: str = Field(..., min_length=10, max_length=2000)
    type: ContactType = ContactType.GENERAL


CONTACT_INFO = {
    "email": "contact@excessmusic.com",
    "social": {
        "instagram": "https://instagram.com/excessmusic",
        "twitter": "https://twitter.com/excessmusic",
        "soundcloud": "https://soundcloud.com/excessmusic",
    },
    "address": {"city": "Your City", "country": "Your Country"},
    "businessHours": "Monday - Friday, 9AM - 6PM",
    "responseTime": "24-48 hours",
}
