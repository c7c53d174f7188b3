"""Messaging service for staff correspondence.

Handles outbound email with a provider abstraction and records every
attempt in the message log with its delivery outcome.
"""

import asyncio
import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Any
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.fixtures.message_templates import get_template
from app.models.messaging import Message, MessageChannel, MessageStatus

logger = logging.getLogger(__name__)


class MessageProviderError(Exception):
    """Base exception for messaging provider errors."""

    pass


class MessageProvider(ABC):
    """Abstract base class for messaging providers."""

    provider_name: str

    @abstractmethod
    async def send(
        self,
        recipient: str,
        subject: str | None,
        body: str,
        html_body: str | None = None,
        **kwargs: Any,
    ) -> tuple[str, dict]:
        """Send a message and return (provider_message_id, metadata).

        Raises MessageProviderError on failure.
        """
        pass


class EmailProvider(MessageProvider):
    """SMTP email provider.

    With no SMTP host configured the message is logged and reported as
    sent, which keeps development and test environments self-contained.
    """

    def __init__(
        self,
        smtp_host: str = "",
        smtp_port: int = 587,
        smtp_user: str = "",
        smtp_password: str = "",
        use_tls: bool = True,
        from_email: str = "",
        from_name: str = "",
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.use_tls = use_tls
        self.from_email = from_email
        self.from_name = from_name
        self.provider_name = "smtp" if smtp_host else "log"

    @classmethod
    def from_settings(cls) -> "EmailProvider":
        return cls(
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_user=settings.smtp_user,
            smtp_password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            from_email=settings.email_from_address,
            from_name=settings.email_from_name,
        )

    async def send(
        self,
        recipient: str,
        subject: str | None,
        body: str,
        html_body: str | None = None,
        **kwargs: Any,
    ) -> tuple[str, dict]:
        """Send email message."""
        meta = {
            "provider": self.provider_name,
            "from": formataddr((self.from_name, self.from_email)),
            "to": recipient,
            "has_html": html_body is not None,
        }

        if not self.smtp_host:
            logger.info(f"Email delivery disabled, logging email to {recipient}: {subject}")
            return f"log_{uuid4().hex[:16]}", meta

        try:
            email = EmailMessage()
            email["From"] = meta["from"]
            email["To"] = recipient
            email["Subject"] = subject or ""
            message_id = make_msgid(domain=self.from_email.rpartition("@")[2] or None)
            email["Message-ID"] = message_id
            email.set_content(body)
            if html_body:
                email.add_alternative(html_body, subtype="html")
        except (ValueError, TypeError) as e:
            raise MessageProviderError(f"Could not build email to {recipient}: {e}") from e

        try:
            await asyncio.to_thread(self._deliver, email)
        except (smtplib.SMTPException, OSError) as e:
            raise MessageProviderError(f"SMTP delivery to {recipient} failed: {e}") from e

        logger.info(f"Sent email to {recipient}: {subject}")
        return message_id, meta

    def _deliver(self, email: EmailMessage) -> None:
        with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.smtp_user:
                smtp.login(self.smtp_user, self.smtp_password)
            smtp.send_message(email)


class MessagingService:
    """Service for sending and tracking staff correspondence."""

    def __init__(
        self,
        session: AsyncSession,
        email_provider: MessageProvider | None = None,
    ):
        self.session = session
        self.email_provider = email_provider or EmailProvider.from_settings()

    async def send_email(
        self,
        recipient_address: str,
        body: str,
        subject: str | None = None,
        html_body: str | None = None,
        recipient_user_id: str | None = None,
        patient_id: str | None = None,
        template_code: str | None = None,
        metadata: dict | None = None,
    ) -> Message:
        """Send an email and record the attempt.

        Provider failures are recorded on the message rather than raised;
        check ``message.status`` for the outcome.
        """
        message = Message(
            recipient_user_id=recipient_user_id,
            patient_id=patient_id,
            template_code=template_code,
            channel=MessageChannel.EMAIL,
            recipient_address=recipient_address,
            subject=subject,
            body=body,
            html_body=html_body,
            status=MessageStatus.PENDING,
            message_metadata=metadata,
        )
        self.session.add(message)

        try:
            provider_id, provider_meta = await self.email_provider.send(
                recipient=recipient_address,
                subject=subject,
                body=body,
                html_body=html_body,
            )
        except MessageProviderError as e:
            logger.error(f"Failed to send email to {recipient_address}: {e}")
            message.mark_failed(str(e))
        except Exception as e:
            logger.exception(f"Email provider raised unexpectedly for {recipient_address}")
            message.mark_failed(f"{type(e).__name__}: {e}")
        else:
            message.mark_sent(provider_meta.get("provider", "unknown"), provider_id)
            message.message_metadata = {**(metadata or {}), **provider_meta}

        await self.session.commit()
        await self.session.refresh(message)

        return message

    async def send_from_template(
        self,
        template_code: str,
        recipient_address: str,
        context: dict,
        recipient_user_id: str | None = None,
        patient_id: str | None = None,
    ) -> Message:
        """Send an email using a template with variable substitution."""
        template = get_template(template_code)
        subject, body = template.render(context)
        html_body = template.render_html(context)

        return await self.send_email(
            recipient_address=recipient_address,
            body=body,
            subject=subject,
            html_body=html_body,
            recipient_user_id=recipient_user_id,
            patient_id=patient_id,
            template_code=template.code,
            metadata={"template_code": template.code, "context_keys": sorted(context)},
        )

