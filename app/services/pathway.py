"""Care-pathway transitions.

A transition has one authoritative step, the atomic update of the
patient's pathway and status, followed by best-effort stages run in
order: follow-up booking, the transition note, and referrer
notification. Only validation and the authoritative update can fail a
request; a failing later stage is logged and the remaining stages still
run.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_event import ActorType
from app.models.clinical_note import NoteType
from app.models.patient import CarePathway, Patient, status_for_pathway
from app.models.user import User
from app.services.audit import write_audit_event
from app.services.clinical_note import ClinicalNoteService, compose_transition_note
from app.services.notification import FanOutResult, NotificationService, TransferNotice
from app.services.patients import PatientNotFoundError
from app.services.scheduling import (
    AppointmentAutoBooker,
    BookedAppointment,
    ClinicianUnresolvableError,
    cadence_for,
)
from app.utils.time import utc_now

logger = logging.getLogger(__name__)


class InvalidPathwayError(Exception):
    """Requested pathway is not one of the CarePathway values."""

    def __init__(self, value: str) -> None:
        self.value = value
        valid = ", ".join(p.value for p in CarePathway)
        super().__init__(f"Invalid care pathway '{value}'. Must be one of: {valid}")


@dataclass(frozen=True)
class ActingUser:
    """Plain copy of the signed-in user, safe to read after a rollback."""

    id: str
    email: str
    full_name: str
    role_label: str

    @classmethod
    def from_user(cls, user: User) -> "ActingUser":
        return cls(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            role_label=user.role_label,
        )


@dataclass(frozen=True)
class PatientSnapshot:
    """Patient values captured right after the pathway update commits."""

    id: str
    upi: str
    full_name: str
    care_pathway: str
    status: str
    updated_at: datetime | None
    care_pathway_updated_at: datetime | None
    assigned_urologist_id: str | None
    referred_by_gp_id: str | None

    @classmethod
    def from_patient(cls, patient: Patient) -> "PatientSnapshot":
        return cls(
            id=patient.id,
            upi=patient.upi,
            full_name=patient.full_name,
            care_pathway=patient.care_pathway,
            status=patient.status,
            updated_at=patient.updated_at,
            care_pathway_updated_at=patient.care_pathway_updated_at,
            assigned_urologist_id=patient.assigned_urologist_id,
            referred_by_gp_id=patient.referred_by_gp_id,
        )


@dataclass
class TransitionResult:
    patient: PatientSnapshot
    previous_pathway: str | None
    appointments: list[BookedAppointment] = field(default_factory=list)
    note_id: str | None = None
    fan_out: FanOutResult = field(default_factory=FanOutResult)


class PathwayTransitionService:
    """Moves patients between care pathways."""

    def __init__(
        self,
        session: AsyncSession,
        booker: AppointmentAutoBooker | None = None,
        notes: ClinicalNoteService | None = None,
        notifications: NotificationService | None = None,
    ) -> None:
        self.session = session
        self.booker = booker or AppointmentAutoBooker(session)
        self.notes = notes or ClinicalNoteService(session)
        self.notifications = notifications or NotificationService(session)

    async def transition(
        self,
        patient_id: str,
        requested_pathway: str,
        actor: ActingUser,
        reason: str | None = None,
        notes: str | None = None,
        ip_address: str | None = None,
        request_id: str | None = None,
        today: date | None = None,
    ) -> TransitionResult:
        """Move a patient onto ``requested_pathway``.

        Raises:
            InvalidPathwayError: unknown pathway; nothing is read or written
            PatientNotFoundError: no such patient; nothing is written
            SQLAlchemyError: the pathway update itself failed
        """
        pathway = CarePathway.parse(requested_pathway)
        if pathway is None:
            raise InvalidPathwayError(requested_pathway)

        reason = reason.strip() if reason and reason.strip() else None

        patient, previous_pathway = await self._apply_pathway(
            patient_id, pathway, actor, reason, notes, ip_address, request_id
        )
        snapshot = PatientSnapshot.from_patient(patient)
        result = TransitionResult(patient=snapshot, previous_pathway=previous_pathway)

        logger.info(
            f"Patient {snapshot.upi} moved from {previous_pathway or 'no pathway'} "
            f"to {pathway.value} by {actor.email}",
            extra={"patient_id": snapshot.id, "user_id": actor.id, "stage": "pathway_update"},
        )

        result.appointments = await self._book_follow_ups(snapshot, pathway, actor, reason, today)
        result.note_id = await self._write_note(
            snapshot, pathway, previous_pathway, actor, reason, notes, result.appointments
        )
        result.fan_out = await self._notify_referrer(
            snapshot, pathway, actor, reason, notes, result.appointments
        )

        return result

    async def _apply_pathway(
        self,
        patient_id: str,
        pathway: CarePathway,
        actor: ActingUser,
        reason: str | None,
        notes: str | None,
        ip_address: str | None,
        request_id: str | None,
    ) -> tuple[Patient, str | None]:
        """Persist pathway, status, timestamp and notes with its audit event."""
        result = await self.session.execute(
            select(Patient)
            .where(Patient.id == patient_id, Patient.is_deleted == False)
            .with_for_update()
        )
        patient = result.scalar_one_or_none()
        if patient is None:
            await self.session.rollback()
            raise PatientNotFoundError(f"Patient {patient_id} not found")

        previous_pathway = patient.care_pathway
        status = status_for_pathway(pathway)

        patient.care_pathway = pathway.value
        patient.status = status.value
        patient.care_pathway_updated_at = utc_now()
        if notes is not None:
            patient.notes = notes

        try:
            await write_audit_event(
                session=self.session,
                actor_type=ActorType.STAFF,
                actor_id=actor.id,
                actor_email=actor.email,
                action="pathway_transition",
                action_category="pathway",
                entity_type="patient",
                entity_id=patient.id,
                metadata={
                    "from": previous_pathway,
                    "to": pathway.value,
                    "status": status.value,
                    "reason": reason,
                },
                ip_address=ip_address,
                request_id=request_id,
                commit=False,
            )
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            logger.exception(
                f"Pathway update for patient {patient_id} failed",
                extra={"patient_id": patient_id, "stage": "pathway_update"},
            )
            raise

        await self.session.refresh(patient)
        return patient, previous_pathway

    async def _book_follow_ups(
        self,
        patient: PatientSnapshot,
        pathway: CarePathway,
        actor: ActingUser,
        reason: str | None,
        today: date | None,
    ) -> list[BookedAppointment]:
        if cadence_for(pathway) is None:
            return []

        try:
            clinician = await self.booker.resolve_booking_clinician(
                assigned_urologist_id=patient.assigned_urologist_id,
                acting_user_id=actor.id,
                acting_user_email=actor.email,
            )
            return await self.booker.book_follow_ups(
                patient_id=patient.id,
                patient_upi=patient.upi,
                pathway=pathway,
                clinician=clinician,
                created_by=actor.id,
                reason=reason,
                today=today,
            )
        except ClinicianUnresolvableError as e:
            logger.warning(
                f"Skipping auto-booking for {patient.upi}: {e}",
                extra={"patient_id": patient.id, "stage": "auto_booking"},
            )
        except Exception:
            await self.session.rollback()
            logger.exception(
                f"Auto-booking for {patient.upi} failed (non-fatal)",
                extra={"patient_id": patient.id, "stage": "auto_booking"},
            )
        return []

    async def _write_note(
        self,
        patient: PatientSnapshot,
        pathway: CarePathway,
        previous_pathway: str | None,
        actor: ActingUser,
        reason: str | None,
        notes: str | None,
        appointments: list[BookedAppointment],
    ) -> str | None:
        content = compose_transition_note(
            pathway=pathway.value,
            previous_pathway=previous_pathway,
            reason=reason,
            clinical_notes=notes,
            appointments=appointments,
            author_name=actor.full_name,
            author_role_label=actor.role_label,
        )
        try:
            note = await self.notes.create_note(
                patient_id=patient.id,
                note_type=NoteType.PATHWAY_TRANSFER,
                content=content,
                author_id=actor.id,
                author_name=actor.full_name,
                author_role=actor.role_label,
            )
            return note.id
        except Exception:
            await self.session.rollback()
            logger.exception(
                f"Writing transition note for {patient.upi} failed (non-fatal)",
                extra={"patient_id": patient.id, "stage": "clinical_note"},
            )
            return None

    async def _notify_referrer(
        self,
        patient: PatientSnapshot,
        pathway: CarePathway,
        actor: ActingUser,
        reason: str | None,
        notes: str | None,
        appointments: list[BookedAppointment],
    ) -> FanOutResult:
        notice = TransferNotice(
            patient_id=patient.id,
            patient_name=patient.full_name,
            upi=patient.upi,
            pathway=pathway,
            urologist_name=actor.full_name or "Urologist",
            reason=reason,
            notes=notes,
            appointment=appointments[0] if appointments else None,
        )
        try:
            return await self.notifications.notify_referring_gp(patient.referred_by_gp_id, notice)
        except Exception:
            await self.session.rollback()
            logger.exception(
                f"Notifying referring GP for {patient.upi} failed (non-fatal)",
                extra={"patient_id": patient.id, "stage": "notification"},
            )
            return FanOutResult()
