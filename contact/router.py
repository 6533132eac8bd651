"""Contact form router."""

import logging

from fastapi import APIRouter, Depends, Request
from posthog import Posthog

from config.settings import Settings, get_settings
from contact.mailer import Mailer
from contact.models import CONTACT_INFO, ContactRequest
from core.dependencies import get_mailer, get_posthog_client
from core.exceptions import CatalogServiceError
from core.ratelimit import client_key, contact_rate_limit
from core.responses import envelope, server_error
from core.telemetry import capture_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post(
    "",
    summary="Submit the contact form",
    responses={
        200: {"description": "Message accepted"},
        400: {"description": "Validation failed"},
        429: {"description": "Too many submissions from this client"},
        500: {"description": "Mail delivery failed"},
    },
    dependencies=[Depends(contact_rate_limit)],
)
async def submit_contact(
    form: ContactRequest,
    request: Request,
    settings: Settings = Depends(get_settings),
    mailer: Mailer | None = Depends(get_mailer),
    posthog_client: Posthog | None = Depends(get_posthog_client),
):
    """Send the submission by mail, or log it when mail is not configured."""
    key = client_key(request, settings.trusted_proxies)
    try:
        if mailer is None:
            logger.info(
                "Contact form submission (email not configured): "
                f"name={form.name!r} email={form.email!r} type={form.type} "
                f"subject={form.subject!r} ip={key} message={form.message!r}"
            )
            message = "Message received! We'll get back to you soon."
        else:
            await mailer.send_contact(form)
            message = "Message sent successfully! We'll get back to you soon."
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to send message. Please try again later.", e) from e

    capture_event(
        posthog_client,
        "contact_submitted",
        {"type": form.type, "emailed": mailer is not None},
    )
    return envelope(message=message)


@router.get("/info", summary="Label contact information")
async def contact_info():
    return envelope(data=CONTACT_INFO)
