"""Patient endpoints for staff.

Registration, lookup, care-pathway transitions and the clinical note
history.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.api.deps import CurrentUser, DbSession, get_client_ip, get_request_id, require_permissions
from app.models.clinical_note import NoteType
from app.schemas.clinical_note import PatientNoteRead
from app.schemas.pathway import (
    AutoBookedAppointment,
    PathwayTransitionData,
    PathwayTransitionRequest,
    PathwayTransitionResponse,
    ScheduledFollowUp,
)
from app.schemas.patient import PatientCreate, PatientRead
from app.services.clinical_note import ClinicalNoteService
from app.services.identifiers import IdentifierExhaustedError
from app.services.pathway import (
    ActingUser,
    InvalidPathwayError,
    PathwayTransitionService,
    TransitionResult,
)
from app.services.patients import PatientConflictError, PatientNotFoundError, PatientService
from app.services.rbac import Permission

router = APIRouter(prefix="/patients", tags=["patients"])


def _transition_response(result: TransitionResult) -> PathwayTransitionResponse:
    patient = result.patient
    booked = None

    if result.appointments:
        first = result.appointments[0]
        booked = AutoBookedAppointment(
            id=first.id,
            date=first.date,
            time=first.time_label,
            clinician_name=first.clinician_name,
            is_overbooked=first.is_overbooked,
        )
        if len(result.appointments) > 1:
            booked.all_appointments = [
                ScheduledFollowUp(
                    id=a.id,
                    date=a.date,
                    time=a.time_label,
                    months_ahead=a.months_ahead,
                )
                for a in result.appointments
            ]

    return PathwayTransitionResponse(
        success=True,
        message=f"Patient transferred to {patient.care_pathway}",
        data=PathwayTransitionData(
            id=patient.id,
            upi=patient.upi,
            care_pathway=patient.care_pathway,
            status=patient.status,
            updated_at=patient.updated_at,
            care_pathway_updated_at=patient.care_pathway_updated_at,
            auto_booked_appointment=booked,
        ),
    )


@router.post(
    "",
    response_model=PatientRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register patient",
    description="Create a patient under a newly allocated identifier",
    dependencies=[Depends(require_permissions(Permission.PATIENTS_WRITE))],
)
async def create_patient(
    request: Request,
    data: PatientCreate,
    session: DbSession,
    user: CurrentUser,
) -> PatientRead:
    service = PatientService(session)
    try:
        patient = await service.create_patient(data, user, ip_address=get_client_ip(request))
    except IdentifierExhaustedError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        )
    except PatientConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return PatientRead.model_validate(patient)


@router.get(
    "/{patient_id}",
    response_model=PatientRead,
    summary="Get patient",
    dependencies=[Depends(require_permissions(Permission.PATIENTS_READ))],
)
async def get_patient(patient_id: str, session: DbSession) -> PatientRead:
    try:
        patient = await PatientService(session).get_patient(patient_id)
    except PatientNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")

    return PatientRead.model_validate(patient)


@router.put(
    "/{patient_id}/pathway",
    response_model=PathwayTransitionResponse,
    summary="Transfer patient to a care pathway",
    description=(
        "Sets the patient's care pathway and status, then books any follow-up "
        "appointments, writes a transfer note and notifies the referring GP"
    ),
    dependencies=[Depends(require_permissions(Permission.PATHWAY_TRANSITION))],
)
async def update_patient_pathway(
    patient_id: str,
    request: Request,
    body: PathwayTransitionRequest,
    session: DbSession,
    user: CurrentUser,
) -> PathwayTransitionResponse:
    actor = ActingUser.from_user(user)
    service = PathwayTransitionService(session)

    try:
        result = await service.transition(
            patient_id=patient_id,
            requested_pathway=body.pathway,
            actor=actor,
            reason=body.reason,
            notes=body.notes,
            ip_address=get_client_ip(request),
            request_id=get_request_id(request),
        )
    except InvalidPathwayError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except PatientNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")

    return _transition_response(result)


@router.get(
    "/{patient_id}/notes",
    response_model=list[PatientNoteRead],
    summary="Clinical note history",
    description="Immutable notes for a patient, newest first",
    dependencies=[Depends(require_permissions(Permission.CLINICAL_NOTES_READ))],
)
async def list_patient_notes(
    patient_id: str,
    session: DbSession,
    note_type: NoteType | None = None,
    limit: int = 100,
) -> list[PatientNoteRead]:
    try:
        await PatientService(session).get_patient(patient_id)
    except PatientNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")

    notes = await ClinicalNoteService(session).list_notes(
        patient_id, note_type=note_type, limit=min(limit, 500)
    )
    return [PatientNoteRead.model_validate(n) for n in notes]
