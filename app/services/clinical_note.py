"""Clinical note composition and storage.

Notes are append-only: this service creates and lists them and has no
update or delete path.
"""

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.clinical_note import NoteType, PatientNote
from app.services.scheduling import BookedAppointment
from app.utils.time import format_long_date

logger = logging.getLogger(__name__)


def _appointment_lines(appointments: Sequence[BookedAppointment]) -> list[str]:
    if len(appointments) > 1:
        lines = ["POST-OP FOLLOW-UP APPOINTMENTS AUTO-BOOKED:"]
        for number, appointment in enumerate(appointments, start=1):
            lines.extend(
                [
                    "",
                    f"{number}. {appointment.months_ahead}-Month Follow-up:",
                    f"   Date: {format_long_date(appointment.date)}",
                    f"   Time: {appointment.time_label}",
                    f"   Urologist: {appointment.clinician_name}",
                ]
            )
        return lines

    appointment = appointments[0]
    return [
        "FOLLOW-UP APPOINTMENT AUTO-BOOKED:",
        f"Date: {format_long_date(appointment.date)}",
        f"Time: {appointment.time_label}",
        f"Urologist: {appointment.clinician_name}",
    ]


def compose_transition_note(
    pathway: str,
    previous_pathway: str | None,
    reason: str | None,
    clinical_notes: str | None,
    appointments: Sequence[BookedAppointment],
    author_name: str,
    author_role_label: str,
) -> str:
    """Build the text of a pathway-transfer note.

    Absent values render as ``None`` (previous pathway, clinical notes)
    or ``Not specified`` (reason). The appointment block is omitted when
    nothing was booked.
    """
    lines = [
        "PATHWAY TRANSFER",
        "",
        f"Patient transferred to: {pathway}",
        f"Previous pathway: {previous_pathway or 'None'}",
        f"Reason: {reason or 'Not specified'}",
        f"Clinical Notes: {clinical_notes or 'None'}",
    ]

    if appointments:
        lines.append("")
        lines.extend(_appointment_lines(appointments))

    lines.extend(["", f"Transferred by: {author_name} ({author_role_label})"])
    return "\n".join(lines)


class ClinicalNoteService:
    """Create and read patient notes."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_note(
        self,
        patient_id: str,
        note_type: NoteType,
        content: str,
        author_id: str | None,
        author_name: str,
        author_role: str,
    ) -> PatientNote:
        note = PatientNote(
            patient_id=patient_id,
            note_type=note_type,
            note_content=content,
            author_id=author_id,
            author_name=author_name,
            author_role=author_role,
        )
        self.session.add(note)
        await self.session.commit()
        await self.session.refresh(note)

        logger.info(
            f"Created {note_type.value} note for patient {patient_id}",
            extra={"patient_id": patient_id, "stage": "clinical_note"},
        )
        return note

    async def list_notes(
        self,
        patient_id: str,
        note_type: NoteType | None = None,
        limit: int = 100,
    ) -> list[PatientNote]:
        """Notes for a patient, newest first."""
        query = select(PatientNote).where(PatientNote.patient_id == patient_id)
        if note_type:
            query = query.where(PatientNote.note_type == note_type)

        result = await self.session.execute(
            query.order_by(PatientNote.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())
