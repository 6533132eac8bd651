"""SMTP delivery of contact form notifications and auto-replies."""

import html
import logging
from email.message import EmailMessage

import aiosmtplib

from config.settings import Settings
from contact.models import ContactRequest
from core.exceptions import MailDeliveryError

logger = logging.getLogger(__name__)

SITE_NAME = "Excess Music"
GMAIL_HOST = "smtp.gmail.com"
GMAIL_PORT = 465


def _html_message(text: str) -> str:
    return html.escape(text).replace("\n", "<br>")


def build_notification(settings: Settings, form: ContactRequest) -> EmailMessage:
    """Message to the label with the submission, reply-to set to the sender."""
    msg = EmailMessage()
    msg["From"] = settings.email_from or settings.email_user
    msg["To"] = settings.email_to or settings.email_user
    msg["Reply-To"] = form.email
    msg["Subject"] = f"[{SITE_NAME}] {form.subject}"
    msg.set_content(
        f"New Contact Form Submission\n\n"
        f"Name: {form.name}\n"
        f"Email: {form.email}\n"
        f"Type: {form.type}\n"
        f"Subject: {form.subject}\n\n"
        f"Message:\n{form.message}\n\n"
        f"---\nThis email was sent from the {SITE_NAME} contact form.\n"
    )
    msg.add_alternative(
        f"<h1>{SITE_NAME}</h1><h2>New Contact Form Submission</h2>"
        f"<p><strong>Name:</strong> {html.escape(form.name)}</p>"
        f"<p><strong>Email:</strong> <a href=\"mailto:{html.escape(form.email)}\">"
        f"{html.escape(form.email)}</a></p>"
        f"<p><strong>Type:</strong> {html.escape(str(form.type))}</p>"
        f"<p><strong>Subject:</strong> {html.escape(form.subject)}</p>"
        f"<p><strong>Message:</strong></p><blockquote>{_html_message(form.message)}</blockquote>",
        subtype="html",
    )
    return msg


def build_auto_reply(settings: Settings, form: ContactRequest) -> EmailMessage:
    """Acknowledgement sent back to the person who filled in the form."""
    msg = EmailMessage()
    msg["From"] = settings.email_from or settings.email_user
    msg["To"] = form.email
    msg["Subject"] = f"Thank you for contacting {SITE_NAME}"
    msg.set_content(
        f"Hi {form.name},\n\n"
        f"Thank you for contacting {SITE_NAME}!\n\n"
        "We've received your message and will get back to you as soon as possible.\n\n"
        f"Here's a copy of what you sent:\n\nSubject: {form.subject}\n\n"
        f"Message:\n{form.message}\n\n"
        f"Best regards,\nThe {SITE_NAME} Team\n"
    )
    msg.add_alternative(
        f"<h1>{SITE_NAME}</h1><h2>Thank you for your message!</h2>"
        f"<p>Hi {html.escape(form.name)},</p>"
        "<p>We've received your message and will get back to you as soon as possible. "
        "Here's a copy of what you sent:</p>"
        f"<blockquote><strong>Subject:</strong> {html.escape(form.subject)}<br><br>"
        f"<strong>Message:</strong><br>{_html_message(form.message)}</blockquote>"
        f"<p>Best regards,<br>The {SITE_NAME} Team</p>",
        subtype="html",
    )
    return msg


class Mailer:
    """Sends contact form mail through the configured SMTP server."""

    def __init__(self, settings: Settings):
        self.settings = settings
        if (settings.email_service or "").lower() == "gmail":
            self.hostname = GMAIL_HOST
            self.port = GMAIL_PORT
            self.use_tls = True
        else:
            self.hostname = settings.smtp_host
            self.port = settings.smtp_port
            self.use_tls = settings.smtp_secure

    async def send(self, message: EmailMessage) -> None:
        try:
            await aiosmtplib.send(
                message,
                hostname=self.hostname,
                port=self.port,
                username=self.settings.email_user,
                password=self.settings.email_pass,
                use_tls=self.use_tls,
            )
        except aiosmtplib.SMTPException as e:
            logger.error(f"SMTP delivery to {message['To']} failed: {e}")
            raise MailDeliveryError("Failed to send message. Please try again later.") from e

    async def send_contact(self, form: ContactRequest) -> None:
        """Send the label notification, then the auto-reply."""
        await self.send(build_notification(self.settings, form))
        await self.send(build_auto_reply(self.settings, form))
        logger.info(f"Contact form mail sent for {form.email} ({form.type})")
