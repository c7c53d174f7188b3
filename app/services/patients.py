"""Patient registration and lookup."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_event import ActorType
from app.models.patient import CarePathway, Patient, status_for_pathway
from app.models.user import User
from app.schemas.patient import PatientCreate
from app.services.audit import write_audit_event
from app.services.identifiers import IdentifierAllocator, IdentifierExhaustedError
from app.utils.time import utc_now

logger = logging.getLogger(__name__)


class PatientNotFoundError(Exception):
    """Raised when a patient id does not match a live record."""

    pass


class PatientConflictError(Exception):
    """Raised when a new patient clashes with an existing record."""

    pass


class PatientService:
    """Service for patient records."""

    def __init__(
        self,
        session: AsyncSession,
        allocator: IdentifierAllocator | None = None,
    ) -> None:
        self.session = session
        self.allocator = allocator or IdentifierAllocator(session)

    async def get_patient(self, patient_id: str) -> Patient:
        """Load a live patient.

        Raises:
            PatientNotFoundError: no such patient, or soft-deleted
        """
        result = await self.session.execute(
            select(Patient).where(
                Patient.id == patient_id,
                Patient.is_deleted == False,
            )
        )
        patient = result.scalar_one_or_none()
        if patient is None:
            raise PatientNotFoundError(f"Patient {patient_id} not found")
        return patient

    async def _assigned_urologist_name(self, user_id: str | None) -> str | None:
        if not user_id:
            return None
        user = await self.session.get(User, user_id)
        return user.full_name if user else None

    async def create_patient(
        self,
        data: PatientCreate,
        created_by: User,
        ip_address: str | None = None,
    ) -> Patient:
        """Register a patient under a freshly allocated identifier.

        An identifier taken by a concurrent registration between
        allocation and insert is re-drawn, within the allocator's
        attempt limit.

        Raises:
            IdentifierExhaustedError: no free identifier could be drawn
            PatientConflictError: email already in use
        """
        actor_id = created_by.id
        actor_email = created_by.email

        if data.email:
            existing = await self.session.execute(
                select(Patient.id).where(Patient.email == data.email)
            )
            if existing.scalar_one_or_none() is not None:
                raise PatientConflictError(f"A patient with email {data.email} already exists")

        pathway = CarePathway.parse(data.care_pathway)
        urologist_name = await self._assigned_urologist_name(data.assigned_urologist_id)

        for attempt in range(1, self.allocator.max_attempts + 1):
            upi = await self.allocator.allocate()
            patient = Patient(
                upi=upi,
                first_name=data.first_name.strip(),
                last_name=data.last_name.strip(),
                email=data.email,
                phone=data.phone,
                date_of_birth=data.date_of_birth,
                care_pathway=pathway.value if pathway else None,
                status=status_for_pathway(pathway).value if pathway else "Active",
                care_pathway_updated_at=utc_now() if pathway else None,
                notes=data.notes,
                assigned_urologist=urologist_name,
                assigned_urologist_id=data.assigned_urologist_id,
                referred_by_gp_id=data.referred_by_gp_id,
            )
            self.session.add(patient)

            try:
                await self.session.flush()
                break
            except IntegrityError as e:
                await self.session.rollback()
                if not await self.allocator.is_taken(upi):
                    raise PatientConflictError("Patient clashes with an existing record") from e
                logger.warning(
                    f"Identifier {upi} was taken by a concurrent registration (attempt {attempt})"
                )
        else:
            raise IdentifierExhaustedError(
                "Could not register the patient under a unique identifier after "
                f"{self.allocator.max_attempts} attempts"
            )

        await write_audit_event(
            session=self.session,
            actor_type=ActorType.STAFF,
            actor_id=actor_id,
            actor_email=actor_email,
            action="patient_created",
            action_category="clinical",
            entity_type="patient",
            entity_id=patient.id,
            metadata={"upi": upi, "care_pathway": patient.care_pathway},
            ip_address=ip_address,
            commit=False,
        )
        await self.session.commit()
        await self.session.refresh(patient)

        logger.info(
            f"Registered patient {upi}",
            extra={"patient_id": patient.id, "user_id": actor_id},
        )
        return patient
