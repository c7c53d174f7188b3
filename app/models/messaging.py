"""Outbound message log.

Every external email attempted by the service is recorded here with its
delivery outcome so failed correspondence can be traced and re-sent.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin
from app.utils.time import utc_now


class MessageChannel(str, Enum):
    """Communication channel for messages."""

    EMAIL = "email"


class MessageStatus(str, Enum):
    """Delivery status of an outbound message."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class Message(Base, TimestampMixin):
    """Single outbound message to a staff recipient."""

    __tablename__ = "messages"

    recipient_user_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # Patient the message is about, if any
    patient_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("patients.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    template_code: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    channel: Mapped[MessageChannel] = mapped_column(
        String(20),
        default=MessageChannel.EMAIL,
        nullable=False,
    )
    recipient_address: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    subject: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    body: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    html_body: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    status: Mapped[MessageStatus] = mapped_column(
        String(30),
        default=MessageStatus.PENDING,
        nullable=False,
        index=True,
    )
    provider: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    provider_message_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    sent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    error_message: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    message_metadata: Mapped[dict | None] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
    )

    def mark_sent(self, provider: str, provider_message_id: str) -> None:
        self.status = MessageStatus.SENT
        self.provider = provider
        self.provider_message_id = provider_message_id
        self.sent_at = utc_now()
        self.error_message = None

    def mark_failed(self, error: str) -> None:
        self.status = MessageStatus.FAILED
        self.error_message = error

    def __repr__(self) -> str:
        return f"<Message {self.id[:8]}... {self.channel} status={self.status}>"
