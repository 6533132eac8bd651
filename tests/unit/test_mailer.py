"""Unit tests for contact/mailer.py."""

from unittest.mock import AsyncMock, patch

import aiosmtplib
import pytest

from config.settings import Settings
from contact.mailer import GMAIL_HOST, GMAIL_PORT, Mailer, build_auto_reply, build_notification
from contact.models import ContactRequest
from core.exceptions import MailDeliveryError
from tests.factories import CONTACT_BODY


@pytest.fixture
def mail_settings():
    return Settings(
        email_user="label@example.com",
        email_pass="app-password",
        email_to="inbox@example.com",
        smtp_host="smtp.example.com",
        smtp_port=2525,
    )


@pytest.fixture
def form():
    return ContactRequest(**CONTACT_BODY)


class TestBuildNotification:
    def test_headers(self, mail_settings, form):
        msg = build_notification(mail_settings, form)
        assert msg["From"] == "label@example.com"
        assert msg["To"] == "inbox@example.com"
        assert msg["Reply-To"] == "jane@example.com"
        assert msg["Subject"] == "[Excess Music] Demo submission"

    def test_html_escapes_user_input(self, mail_settings):
        form = ContactRequest(**{**CONTACT_BODY, "message": "<script>alert(1)</script> hi"})
        html_part = build_notification(mail_settings, form).get_body(preferencelist=("html",))
        content = html_part.get_content()
        assert "<script>" not in content
        assert "&lt;script&gt;" in content


class TestBuildAutoReply:
    def test_addressed_to_sender(self, mail_settings, form):
        msg = build_auto_reply(mail_settings, form)
        assert msg["To"] == "jane@example.com"
        assert msg["Subject"] == "Thank you for contacting Excess Music"
        assert "Please listen to my new EP." in msg.get_body(("plain",)).get_content()


class TestMailer:
    def test_smtp_host_from_settings(self, mail_settings):
        mailer = Mailer(mail_settings)
        assert (mailer.hostname, mailer.port, mailer.use_tls) == ("smtp.example.com", 2525, False)

    def test_gmail_service(self, mail_settings):
        mailer = Mailer(mail_settings.model_copy(update={"email_service": "gmail"}))
        assert (mailer.hostname, mailer.port, mailer.use_tls) == (GMAIL_HOST, GMAIL_PORT, True)

    @pytest.mark.asyncio
    async def test_send_contact_sends_both_messages(self, mail_settings, form):
        with patch("contact.mailer.aiosmtplib.send", new_callable=AsyncMock) as mock_send:
            await Mailer(mail_settings).send_contact(form)

        assert mock_send.await_count == 2
        recipients = [call.args[0]["To"] for call in mock_send.await_args_list]
        assert recipients == ["inbox@example.com", "jane@example.com"]
        assert mock_send.await_args_list[0].kwargs["username"] == "label@example.com"

    @pytest.mark.asyncio
    async def test_smtp_failure_raises_mail_delivery_error(self, mail_settings, form):
        with patch(
            "contact.mailer.aiosmtplib.send",
            new_callable=AsyncMock,
            side_effect=aiosmtplib.SMTPException("refused"),
        ):
            with pytest.raises(MailDeliveryError) as exc_info:
                await Mailer(mail_settings).send_contact(form)
        assert exc_info.value.status_code == 500
