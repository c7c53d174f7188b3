"""Schemas for care-pathway transitions."""

from datetime import date, datetime

from pydantic import BaseModel, Field


class PathwayTransitionRequest(BaseModel):
    """Request to move a patient onto a care pathway.

    ``pathway`` is validated against the CarePathway values by the
    transition service so that an unknown value yields a 400 with no
    side effects.
    """

    pathway: str = Field(min_length=1, max_length=50)
    reason: str | None = Field(default=None, max_length=2000)
    notes: str | None = None


class ScheduledFollowUp(BaseModel):
    id: str
    date: date
    time: str
    months_ahead: int


class AutoBookedAppointment(BaseModel):
    """First auto-booked appointment, plus the full series when there is one."""

    id: str
    date: date
    time: str
    clinician_name: str
    is_overbooked: bool = False
    all_appointments: list[ScheduledFollowUp] | None = None


class PathwayTransitionData(BaseModel):
    id: str
    upi: str
    care_pathway: str
    status: str
    updated_at: datetime | None = None
    care_pathway_updated_at: datetime | None = None
    auto_booked_appointment: AutoBookedAppointment | None = None


class PathwayTransitionResponse(BaseModel):
    success: bool = True
    message: str
    data: PathwayTransitionData
