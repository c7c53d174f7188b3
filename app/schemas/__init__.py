"""Pydantic schemas for request/response validation."""

from app.schemas.auth import StaffLoginRequest, StaffProfile, TokenResponse
from app.schemas.clinical_note import PatientNoteRead
from app.schemas.notification import MarkAllReadResponse, NotificationList, NotificationRead
from app.schemas.pathway import (
    AutoBookedAppointment,
    PathwayTransitionData,
    PathwayTransitionRequest,
    PathwayTransitionResponse,
    ScheduledFollowUp,
)
from app.schemas.patient import PatientCreate, PatientRead

__all__ = [
    "StaffLoginRequest",
    "StaffProfile",
    "TokenResponse",
    "PatientCreate",
    "PatientRead",
    "PathwayTransitionRequest",
    "PathwayTransitionResponse",
    "PathwayTransitionData",
    "AutoBookedAppointment",
    "ScheduledFollowUp",
    "PatientNoteRead",
    "NotificationRead",
    "NotificationList",
    "MarkAllReadResponse",
]
