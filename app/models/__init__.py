"""Database models for UroCare Pathways."""

from app.models.audit_event import ActorType, AuditEvent
from app.models.clinical_note import NoteType, PatientNote
from app.models.messaging import Message, MessageChannel, MessageStatus
from app.models.notification import Notification, NotificationPriority, NotificationType
from app.models.patient import CarePathway, Patient, PatientStatus
from app.models.scheduling import (
    Appointment,
    AppointmentStatus,
    AppointmentType,
    BookingSource,
    ClinicianProfile,
)
from app.models.user import User, UserRole

__all__ = [
    # User & Auth
    "User",
    "UserRole",
    # Patient
    "Patient",
    "CarePathway",
    "PatientStatus",
    # Audit
    "AuditEvent",
    "ActorType",
    # Clinical notes
    "PatientNote",
    "NoteType",
    # Scheduling
    "ClinicianProfile",
    "Appointment",
    "AppointmentStatus",
    "AppointmentType",
    "BookingSource",
    # Messaging
    "Message",
    "MessageChannel",
    "MessageStatus",
    # Notifications
    "Notification",
    "NotificationType",
    "NotificationPriority",
]
