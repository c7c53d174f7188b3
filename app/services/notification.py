"""Notification service.

Fans pathway-transfer news out to the referring GP (email plus in-app
notification) and serves the signed-in user's notification inbox.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from html import escape

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.fixtures.message_templates import PATHWAY_TRANSFER_GP_EMAIL
from app.models.messaging import MessageStatus
from app.models.notification import Notification, NotificationPriority, NotificationType
from app.models.patient import CarePathway
from app.models.user import User
from app.services.messaging import MessagingService
from app.services.scheduling import BookedAppointment
from app.utils.time import format_long_date, utc_now

logger = logging.getLogger(__name__)

# Pathways whose entry is reported back to the referring GP
GP_NOTIFIED_PATHWAYS = frozenset({CarePathway.ACTIVE_MONITORING, CarePathway.MEDICATION})


@dataclass(frozen=True)
class TransferNotice:
    """What the referring GP is told about a transition."""

    patient_id: str
    patient_name: str
    upi: str
    pathway: CarePathway
    urologist_name: str
    reason: str | None = None
    notes: str | None = None
    appointment: BookedAppointment | None = None


@dataclass
class FanOutResult:
    email_sent: bool = False
    in_app_created: bool = False


def _gp_email_context(notice: TransferNotice, gp: User) -> dict[str, str]:
    gp_name = f"Dr. {gp.first_name} {gp.last_name}"
    context = {
        "gp_name": gp_name,
        "gp_name_html": escape(gp_name),
        "patient_name": notice.patient_name,
        "patient_name_html": escape(notice.patient_name),
        "upi": notice.upi,
        "pathway": notice.pathway.value,
        "department_name": settings.department_name,
        "reason_text": "",
        "reason_html": "",
        "appointment_text": "",
        "appointment_html": "",
        "notes_text": "",
        "notes_html": "",
    }

    if notice.reason:
        context["reason_text"] = f"Reason: {notice.reason}\n"
        context["reason_html"] = f"<p><strong>Reason:</strong> {escape(notice.reason)}</p>"

    appointment = notice.appointment
    if notice.pathway == CarePathway.ACTIVE_MONITORING and appointment is not None:
        when = format_long_date(appointment.date)
        context["appointment_text"] = (
            "\nFollow-up Appointment Scheduled\n"
            f"Date: {when}\n"
            f"Time: {appointment.time_label}\n"
            f"Urologist: {appointment.clinician_name}\n"
        )
        context["appointment_html"] = (
            '<div style="background-color: #ecfdf5; border-left: 4px solid #10b981; '
            'padding: 20px; margin: 20px 0;">'
            '<h3 style="color: #10b981; margin-top: 0;">Follow-up Appointment Scheduled</h3>'
            f"<p><strong>Date:</strong> {when}</p>"
            f"<p><strong>Time:</strong> {appointment.time_label}</p>"
            f"<p><strong>Urologist:</strong> {escape(appointment.clinician_name)}</p>"
            "</div>"
        )

    if notice.notes:
        context["notes_text"] = f"\nAdditional Notes:\n{notice.notes}\n"
        context["notes_html"] = (
            f"<p><strong>Additional Notes:</strong><br>{escape(notice.notes)}</p>"
        )

    return context


class NotificationService:
    """In-app notifications and referrer fan-out."""

    def __init__(
        self,
        session: AsyncSession,
        messaging: MessagingService | None = None,
    ) -> None:
        self.session = session
        self._messaging = messaging

    @property
    def messaging(self) -> MessagingService:
        if self._messaging is None:
            self._messaging = MessagingService(self.session)
        return self._messaging

    async def create_notification(
        self,
        user_id: str,
        notification_type: NotificationType,
        title: str,
        message: str,
        patient_name: str | None = None,
        patient_id: str | None = None,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        metadata: dict | None = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            patient_name=patient_name,
            patient_id=patient_id,
            priority=priority,
            notification_metadata=metadata,
        )
        self.session.add(notification)
        await self.session.commit()
        await self.session.refresh(notification)
        return notification

    async def create_pathway_transfer_notification(
        self,
        gp_user_id: str,
        notice: TransferNotice,
    ) -> Notification:
        message = (
            f"{notice.patient_name} has been transferred to {notice.pathway.value} "
            f"pathway by {notice.urologist_name}."
        )
        if notice.reason:
            message = f"{message} Reason: {notice.reason}"

        return await self.create_notification(
            user_id=gp_user_id,
            notification_type=NotificationType.PATHWAY_TRANSFER,
            title=f"Patient Transferred to {notice.pathway.value}",
            message=message,
            patient_name=notice.patient_name,
            patient_id=notice.patient_id,
            priority=NotificationPriority.HIGH,
            metadata={
                "pathway": notice.pathway.value,
                "urologist_name": notice.urologist_name,
                "reason": notice.reason or "",
            },
        )

    async def _get_live_account(self, user_id: str) -> User | None:
        result = await self.session.execute(
            select(User).where(
                User.id == user_id,
                User.is_deleted == False,
                User.is_active == True,
            )
        )
        return result.scalar_one_or_none()

    async def notify_referring_gp(
        self,
        referring_gp_id: str | None,
        notice: TransferNotice,
    ) -> FanOutResult:
        """Tell the referring GP about a transition.

        Only Active Monitoring and Medication transitions are reported,
        and only to a GP with an email address. The email and the in-app
        notification are attempted independently; a failure in one is
        logged and does not prevent the other.
        """
        result = FanOutResult()

        if notice.pathway not in GP_NOTIFIED_PATHWAYS or not referring_gp_id:
            return result

        gp = await self._get_live_account(referring_gp_id)
        if gp is None or not gp.email:
            logger.info(
                f"Referring GP for {notice.upi} has no active account with an email address, skipping notification",
                extra={"patient_id": notice.patient_id, "stage": "notification"},
            )
            return result

        gp_id = gp.id
        gp_email = gp.email
        context = _gp_email_context(notice, gp)

        try:
            message = await self.messaging.send_from_template(
                template_code=PATHWAY_TRANSFER_GP_EMAIL,
                recipient_address=gp_email,
                context=context,
                recipient_user_id=gp_id,
                patient_id=notice.patient_id,
            )
            result.email_sent = message.status == MessageStatus.SENT
            if result.email_sent:
                logger.info(
                    f"Notification email sent to GP {gp_email}",
                    extra={"patient_id": notice.patient_id, "stage": "notification"},
                )
        except Exception:
            await self.session.rollback()
            logger.exception(
                f"Sending notification email to GP {gp_email} failed",
                extra={"patient_id": notice.patient_id, "stage": "notification"},
            )

        try:
            await self.create_pathway_transfer_notification(gp_id, notice)
            result.in_app_created = True
        except SQLAlchemyError:
            await self.session.rollback()
            logger.exception(
                f"Creating in-app notification for GP {gp_id} failed",
                extra={"patient_id": notice.patient_id, "stage": "notification"},
            )

        return result

    async def list_for_user(
        self,
        user_id: str,
        limit: int = 50,
        offset: int = 0,
        unread_only: bool = False,
    ) -> Sequence[Notification]:
        """A user's notifications, newest first."""
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read == False)

        result = await self.session.execute(
            query.order_by(Notification.created_at.desc()).offset(offset).limit(limit)
        )
        return result.scalars().all()

    async def unread_count(self, user_id: str) -> int:
        result = await self.session.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.is_read == False,
            )
        )
        return result.scalar_one()

    async def _get_owned(self, notification_id: str, user_id: str) -> Notification | None:
        result = await self.session.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def mark_read(self, notification_id: str, user_id: str) -> Notification | None:
        """Mark one of the user's notifications read. None if not theirs."""
        notification = await self._get_owned(notification_id, user_id)
        if notification is None:
            return None

        notification.mark_read()
        await self.session.commit()
        await self.session.refresh(notification)
        return notification

    async def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification read; returns how many changed."""
        result = await self.session.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read == False)
            .values(is_read=True, read_at=utc_now())
        )
        await self.session.commit()
        return result.rowcount or 0

    async def delete(self, notification_id: str, user_id: str) -> bool:
        notification = await self._get_owned(notification_id, user_id)
        if notification is None:
            return False

        await self.session.delete(notification)
        await self.session.commit()
        return True
