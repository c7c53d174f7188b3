"""Follow-up scheduling for care-pathway transitions.

Entering certain pathways books follow-up consultations automatically.
The cadence (how many visits, how many months ahead) depends on the
pathway; the slot search and persistence are the same for every cadence.

The partial unique index on ``appointments`` is the authoritative slot
conflict check. The read-side check here only avoids needless insert
attempts; an IntegrityError at insert time means another booking won
the slot and the search moves on to the next candidate.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, time

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.patient import CarePathway
from app.models.scheduling import (
    ACTIVE_APPOINTMENT_STATUSES,
    Appointment,
    AppointmentStatus,
    AppointmentType,
    BookingSource,
    ClinicianProfile,
)
from app.models.user import User
from app.utils.time import add_months, format_slot_time, utc_today

logger = logging.getLogger(__name__)


class ClinicianUnresolvableError(Exception):
    """Raised when no catalog clinician can be found to own a booking."""

    pass


class SlotSearchExhaustedError(Exception):
    """Every candidate slot on a date is occupied.

    Not raised to callers: the booker logs it and books the last
    candidate as an overbooking.
    """

    pass


DEFAULT_SLOT = time(10, 0)

# Tried in order when the default slot is taken
FALLBACK_SLOTS: tuple[time, ...] = (
    time(10, 30),
    time(11, 0),
    time(11, 30),
    time(14, 0),
    time(14, 30),
    time(15, 0),
)
EXTENDED_FALLBACK_SLOTS: tuple[time, ...] = FALLBACK_SLOTS + (time(15, 30),)


@dataclass(frozen=True)
class FollowUpVisit:
    """One visit in a cadence."""

    months_ahead: int
    description: str


@dataclass(frozen=True)
class Cadence:
    """Follow-up schedule implied by entering a pathway."""

    visits: tuple[FollowUpVisit, ...]
    fallback_slots: tuple[time, ...]

    @property
    def is_series(self) -> bool:
        return len(self.visits) > 1

    @property
    def candidate_slots(self) -> tuple[time, ...]:
        return (DEFAULT_SLOT,) + self.fallback_slots


_POST_OP_CADENCE = Cadence(
    visits=(
        FollowUpVisit(6, "6-month post-operative follow-up"),
        FollowUpVisit(12, "12-month post-operative follow-up"),
    ),
    fallback_slots=EXTENDED_FALLBACK_SLOTS,
)

CADENCES: dict[CarePathway, Cadence] = {
    CarePathway.ACTIVE_MONITORING: Cadence(
        visits=(FollowUpVisit(3, "Active Monitoring follow-up"),),
        fallback_slots=FALLBACK_SLOTS,
    ),
    CarePathway.POST_OP_TRANSFER: _POST_OP_CADENCE,
    CarePathway.POST_OP_FOLLOWUP: _POST_OP_CADENCE,
}


def cadence_for(pathway: CarePathway) -> Cadence | None:
    """Return the follow-up cadence for a pathway, or None if it has none."""
    return CADENCES.get(pathway)


@dataclass(frozen=True)
class BookedAppointment:
    """Summary of an auto-booked appointment for notes and responses."""

    id: str
    date: date
    time: time
    clinician_name: str
    months_ahead: int
    is_overbooked: bool = False

    @property
    def time_label(self) -> str:
        return format_slot_time(self.time)


@dataclass(frozen=True)
class SlotChoice:
    time: time
    exhausted: bool


@dataclass(frozen=True)
class BookingClinician:
    """Catalog clinician chosen to own auto-booked appointments."""

    clinician_id: str
    name: str


class SlotConflictResolver:
    """Read-only check of a clinician's slots."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def is_slot_free(
        self,
        clinician_id: str,
        appointment_date: date,
        appointment_time: time,
    ) -> bool:
        """True if no scheduled or confirmed appointment holds the slot."""
        result = await self.session.execute(
            select(Appointment.id)
            .where(
                Appointment.clinician_id == clinician_id,
                Appointment.appointment_date == appointment_date,
                Appointment.appointment_time == appointment_time,
                Appointment.status.in_(
                    [s.value for s in ACTIVE_APPOINTMENT_STATUSES]
                ),
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is None

    async def find_free_slot(
        self,
        clinician_id: str,
        appointment_date: date,
        candidates: Sequence[time],
    ) -> SlotChoice:
        """Return the first free candidate in order.

        If every candidate is occupied the last one is returned with
        ``exhausted`` set.
        """
        for candidate in candidates:
            if await self.is_slot_free(clinician_id, appointment_date, candidate):
                return SlotChoice(time=candidate, exhausted=False)
        return SlotChoice(time=candidates[-1], exhausted=True)


class ClinicianDirectory:
    """Bridges login accounts to the bookable clinician catalog.

    A catalog entry is matched by its ``user_id`` link when present,
    otherwise by the account's email address. Only active entries match.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_email(self, email: str) -> ClinicianProfile | None:
        result = await self.session.execute(
            select(ClinicianProfile)
            .where(
                func.lower(ClinicianProfile.email) == email.strip().lower(),
                ClinicianProfile.is_active == True,
                ClinicianProfile.is_deleted == False,
            )
            .order_by(ClinicianProfile.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def resolve_for_account(
        self,
        user_id: str,
        email: str | None,
    ) -> ClinicianProfile | None:
        """Resolve a login account to its active catalog entry."""
        result = await self.session.execute(
            select(ClinicianProfile).where(
                ClinicianProfile.user_id == user_id,
                ClinicianProfile.is_active == True,
                ClinicianProfile.is_deleted == False,
            )
        )
        profile = result.scalar_one_or_none()
        if profile is None and email:
            profile = await self.find_by_email(email)
        return profile

    async def get_account(self, user_id: str) -> User | None:
        result = await self.session.execute(
            select(User).where(User.id == user_id, User.is_deleted == False)
        )
        return result.scalar_one_or_none()


class AppointmentAutoBooker:
    """Books the follow-up appointments a pathway's cadence calls for."""

    def __init__(
        self,
        session: AsyncSession,
        resolver: SlotConflictResolver | None = None,
        directory: ClinicianDirectory | None = None,
    ) -> None:
        self.session = session
        self.resolver = resolver or SlotConflictResolver(session)
        self.directory = directory or ClinicianDirectory(session)

    async def resolve_booking_clinician(
        self,
        assigned_urologist_id: str | None,
        acting_user_id: str,
        acting_user_email: str | None,
    ) -> BookingClinician:
        """Pick the catalog clinician who will own the bookings.

        The patient's assigned urologist wins; the acting user is the
        fallback.

        Raises:
            ClinicianUnresolvableError: neither maps to an active catalog entry
        """
        assigned_account: User | None = None
        if assigned_urologist_id:
            assigned_account = await self.directory.get_account(assigned_urologist_id)

        if assigned_account is not None:
            profile = await self.directory.resolve_for_account(
                assigned_account.id, assigned_account.email
            )
            if profile is not None:
                return BookingClinician(clinician_id=profile.id, name=profile.full_name)
            logger.info(
                f"Assigned urologist {assigned_account.email} has no active catalog entry, "
                "trying acting user"
            )

        profile = await self.directory.resolve_for_account(acting_user_id, acting_user_email)
        if profile is not None:
            return BookingClinician(clinician_id=profile.id, name=profile.full_name)

        raise ClinicianUnresolvableError(
            "Neither the assigned urologist nor the acting user has an active "
            "clinician catalog entry"
        )

    async def book_follow_ups(
        self,
        patient_id: str,
        patient_upi: str,
        pathway: CarePathway,
        clinician: BookingClinician,
        created_by: str | None,
        reason: str | None,
        today: date | None = None,
    ) -> list[BookedAppointment]:
        """Book every visit in the pathway's cadence.

        Each appointment commits on its own. If a later visit fails the
        earlier ones stay booked and are still returned; the failure is
        logged and the remaining visits are skipped.
        """
        cadence = cadence_for(pathway)
        if cadence is None:
            return []

        start = today or utc_today()
        booked: list[BookedAppointment] = []

        for number, visit in enumerate(cadence.visits, start=1):
            target_date = add_months(start, visit.months_ahead)
            note = self._compose_note(cadence, visit, number, reason)
            try:
                appointment = await self._book_on_date(
                    patient_id=patient_id,
                    clinician=clinician,
                    target_date=target_date,
                    candidates=cadence.candidate_slots,
                    note=note,
                    created_by=created_by,
                )
            except SQLAlchemyError:
                await self.session.rollback()
                logger.exception(
                    f"Auto-booking {visit.description} for {patient_upi} failed (non-fatal)",
                    extra={"patient_id": patient_id, "stage": "auto_booking"},
                )
                break

            booked.append(
                BookedAppointment(
                    id=appointment.id,
                    date=appointment.appointment_date,
                    time=appointment.appointment_time,
                    clinician_name=clinician.name,
                    months_ahead=visit.months_ahead,
                    is_overbooked=appointment.is_overbooked,
                )
            )
            logger.info(
                f"Auto-booked {visit.description} for {patient_upi} on {target_date} "
                f"at {format_slot_time(appointment.appointment_time)} with {clinician.name}",
                extra={"patient_id": patient_id, "stage": "auto_booking"},
            )

        return booked

    @staticmethod
    def _compose_note(
        cadence: Cadence,
        visit: FollowUpVisit,
        number: int,
        reason: str | None,
    ) -> str:
        note = f"Auto-booked {visit.description}."
        if cadence.is_series:
            note = (
                f"Auto-booked {visit.description} "
                f"(follow-up {number} of {len(cadence.visits)})."
            )
        if reason:
            note = f"{note} {reason.strip()}"
        return note

    async def _book_on_date(
        self,
        patient_id: str,
        clinician: BookingClinician,
        target_date: date,
        candidates: Sequence[time],
        note: str,
        created_by: str | None,
    ) -> Appointment:
        """Insert one appointment at the earliest slot the index accepts."""
        remaining = list(candidates)

        while remaining:
            choice = await self.resolver.find_free_slot(
                clinician.clinician_id, target_date, remaining
            )
            if choice.exhausted:
                break

            appointment = self._new_appointment(
                patient_id, clinician, target_date, choice.time, note, created_by
            )
            self.session.add(appointment)
            try:
                await self.session.commit()
            except IntegrityError:
                # Another booking took the slot between our read and insert
                await self.session.rollback()
                logger.info(
                    f"Slot {format_slot_time(choice.time)} on {target_date} was taken "
                    "concurrently, trying next candidate"
                )
                remaining = remaining[remaining.index(choice.time) + 1 :]
                continue

            await self.session.refresh(appointment)
            return appointment

        forced_time = candidates[-1]
        logger.warning(
            f"{SlotSearchExhaustedError.__name__}: all {len(candidates)} candidate slots on "
            f"{target_date} are occupied for {clinician.name}; "
            f"overbooking at {format_slot_time(forced_time)}",
            extra={"patient_id": patient_id, "stage": "auto_booking"},
        )
        appointment = self._new_appointment(
            patient_id, clinician, target_date, forced_time, note, created_by,
            is_overbooked=True,
        )
        self.session.add(appointment)
        await self.session.commit()
        await self.session.refresh(appointment)
        return appointment

    @staticmethod
    def _new_appointment(
        patient_id: str,
        clinician: BookingClinician,
        target_date: date,
        slot: time,
        note: str,
        created_by: str | None,
        is_overbooked: bool = False,
    ) -> Appointment:
        return Appointment(
            patient_id=patient_id,
            clinician_id=clinician.clinician_id,
            clinician_name=clinician.name,
            appointment_type=AppointmentType.UROLOGIST,
            appointment_date=target_date,
            appointment_time=slot,
            status=AppointmentStatus.SCHEDULED,
            booking_source=BookingSource.SYSTEM_SCHEDULED,
            is_overbooked=is_overbooked,
            notes=note,
            created_by=created_by,
        )
