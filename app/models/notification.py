"""In-app notifications addressed to staff accounts."""

from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin
from app.utils.time import utc_now


class NotificationType(str, Enum):
    """Kind of in-app notification."""

    PATHWAY_TRANSFER = "pathway_transfer"
    APPOINTMENT = "appointment"
    LAB_RESULTS = "lab_results"
    URGENT = "urgent"
    TASK = "task"
    DISCHARGE = "discharge"
    REFERRAL = "referral"
    GENERAL = "general"


class NotificationPriority(str, Enum):
    NORMAL = "normal"
    HIGH = "high"


class Notification(Base, TimestampMixin):
    """Notification shown in a staff user's inbox."""

    __tablename__ = "notifications"

    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[NotificationType] = mapped_column(
        String(50),
        default=NotificationType.GENERAL,
        nullable=False,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    message: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    patient_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    patient_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("patients.id", ondelete="SET NULL"),
        nullable=True,
    )
    priority: Mapped[NotificationPriority] = mapped_column(
        String(20),
        default=NotificationPriority.NORMAL,
        nullable=False,
    )
    is_read: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        index=True,
    )
    read_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    notification_metadata: Mapped[dict | None] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
    )

    def mark_read(self) -> None:
        if not self.is_read:
            self.is_read = True
            self.read_at = utc_now()

    def __repr__(self) -> str:
        return f"<Notification {self.type} user={self.user_id[:8]}... read={self.is_read}>"
