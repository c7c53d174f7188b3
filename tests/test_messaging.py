"""Tests for messaging service.

Covers:
- Message template rendering
- Provider abstraction and the log-only fallback
- Delivery outcome recorded on the message log
"""

import smtplib
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.fixtures.message_templates import PATHWAY_TRANSFER_GP_EMAIL, get_template
from app.models.messaging import MessageStatus
from app.models.user import User
from app.services.messaging import (
    EmailProvider,
    MessageProvider,
    MessageProviderError,
    MessagingService,
)


class TestMessageTemplates:
    """Tests for template rendering."""

    def test_gp_transfer_subject(self) -> None:
        template = get_template(PATHWAY_TRANSFER_GP_EMAIL)

        subject, _ = template.render(
            {"patient_name": "Robert Hughes", "pathway": "Active Monitoring"}
        )

        assert subject == "Patient Update: Robert Hughes - Transferred to Active Monitoring"

    def test_optional_sections_render_empty(self) -> None:
        template = get_template(PATHWAY_TRANSFER_GP_EMAIL)
        context = {
            "gp_name": "Dr. Ama Mensah",
            "patient_name": "Robert Hughes",
            "upi": "URP20260001",
            "pathway": "Medication",
            "reason_text": "",
            "appointment_text": "",
            "notes_text": "",
            "department_name": "Urology Department",
        }

        _, body = template.render(context)

        assert body.startswith("Dear Dr. Ama Mensah,")
        assert "UPI: URP20260001" in body
        assert "Follow-up Appointment" not in body
        assert "{{" not in body

    def test_html_body_renders(self) -> None:
        template = get_template(PATHWAY_TRANSFER_GP_EMAIL)

        html = template.render_html({"patient_name_html": "Robert Hughes", "reason_html": ""})

        assert "<strong>Patient Name:</strong> Robert Hughes" in html

    def test_unknown_template_raises(self) -> None:
        with pytest.raises(KeyError):
            get_template("does_not_exist")


class TestEmailProvider:
    """Tests for the SMTP email provider."""

    @pytest.mark.asyncio
    async def test_without_smtp_host_logs_instead_of_sending(self) -> None:
        provider = EmailProvider(from_email="no-reply@urocare.local")

        with patch("app.services.messaging.smtplib.SMTP") as smtp:
            message_id, meta = await provider.send(
                recipient="a.mensah@gp.example.com",
                subject="Hello",
                body="Body",
            )

        smtp.assert_not_called()
        assert message_id.startswith("log_")
        assert meta["provider"] == "log"

    @pytest.mark.asyncio
    async def test_smtp_failure_raises_provider_error(self) -> None:
        provider = EmailProvider(
            smtp_host="smtp.invalid", from_email="no-reply@urocare.local", use_tls=False
        )

        with patch(
            "app.services.messaging.smtplib.SMTP",
            side_effect=smtplib.SMTPConnectError(421, "unavailable"),
        ):
            with pytest.raises(MessageProviderError):
                await provider.send(
                    recipient="a.mensah@gp.example.com",
                    subject="Hello",
                    body="Body",
                )

    @pytest.mark.asyncio
    async def test_smtp_send_returns_message_id(self) -> None:
        provider = EmailProvider(
            smtp_host="smtp.example.com",
            from_email="no-reply@urocare.local",
            smtp_user="mailer",
            smtp_password="secret",
        )

        with patch("app.services.messaging.smtplib.SMTP") as smtp:
            message_id, meta = await provider.send(
                recipient="a.mensah@gp.example.com",
                subject="Hello",
                body="Body",
                html_body="<p>Body</p>",
            )

        client = smtp.return_value.__enter__.return_value
        client.starttls.assert_called_once()
        client.login.assert_called_once_with("mailer", "secret")
        client.send_message.assert_called_once()
        assert message_id.endswith("@urocare.local>")
        assert meta == {
            "provider": "smtp",
            "from": "no-reply@urocare.local",
            "to": "a.mensah@gp.example.com",
            "has_html": True,
        }

    @pytest.mark.asyncio
    async def test_unbuildable_message_raises_provider_error(self) -> None:
        provider = EmailProvider(
            smtp_host="smtp.invalid", from_email="no-reply@urocare.local", use_tls=False
        )

        with patch("app.services.messaging.smtplib.SMTP") as smtp:
            with pytest.raises(MessageProviderError, match="Could not build email"):
                await provider.send(
                    recipient="a.mensah@gp.example.com",
                    subject="Patient Update: Robert\nHughes",
                    body="Body",
                )

        smtp.assert_not_called()


class TestMessagingService:
    """Tests for the message log."""

    @pytest.mark.asyncio
    async def test_successful_send_is_recorded_as_sent(
        self, async_session: AsyncSession, gp_user: User
    ) -> None:
        service = MessagingService(async_session, email_provider=EmailProvider())

        message = await service.send_email(
            recipient_address=gp_user.email,
            subject="Hello",
            body="Body",
            recipient_user_id=gp_user.id,
        )

        assert message.status == MessageStatus.SENT
        assert message.provider == "log"
        assert message.provider_message_id.startswith("log_")
        assert message.sent_at is not None

    @pytest.mark.asyncio
    async def test_provider_failure_is_recorded_not_raised(
        self, async_session: AsyncSession, gp_user: User
    ) -> None:
        provider = AsyncMock(spec=MessageProvider)
        provider.send = AsyncMock(side_effect=MessageProviderError("relay refused"))
        service = MessagingService(async_session, email_provider=provider)

        message = await service.send_email(
            recipient_address=gp_user.email,
            subject="Hello",
            body="Body",
        )

        assert message.status == MessageStatus.FAILED
        assert message.error_message == "relay refused"
        assert message.sent_at is None

    @pytest.mark.asyncio
    async def test_unexpected_provider_error_is_recorded(
        self, async_session: AsyncSession, gp_user: User
    ) -> None:
        provider = AsyncMock(spec=MessageProvider)
        provider.send = AsyncMock(side_effect=RuntimeError("provider crashed"))
        service = MessagingService(async_session, email_provider=provider)

        message = await service.send_email(
            recipient_address=gp_user.email,
            subject="Hello",
            body="Body",
        )

        assert message.status == MessageStatus.FAILED
        assert message.error_message == "RuntimeError: provider crashed"

    @pytest.mark.asyncio
    async def test_send_from_template_records_template_code(
        self, async_session: AsyncSession, gp_user: User
    ) -> None:
        service = MessagingService(async_session, email_provider=EmailProvider())

        message = await service.send_from_template(
            template_code=PATHWAY_TRANSFER_GP_EMAIL,
            recipient_address=gp_user.email,
            context={"patient_name": "Robert Hughes", "pathway": "Medication"},
            recipient_user_id=gp_user.id,
        )

        assert message.template_code == PATHWAY_TRANSFER_GP_EMAIL
        assert message.subject == "Patient Update: Robert Hughes - Transferred to Medication"
        assert message.html_body is not None
        assert message.message_metadata["template_code"] == PATHWAY_TRANSFER_GP_EMAIL
