"""Scheduling models: the bookable clinician catalog and appointments."""

from datetime import date, time
from enum import Enum

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Index,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, SoftDeleteMixin, TimestampMixin


class ClinicianProfile(Base, TimestampMixin, SoftDeleteMixin):
    """Entry in the catalog of bookable clinicians.

    Appointments reference this catalog, never the login account. The
    catalog is linked to ``users`` by ``user_id`` when known; older
    entries are matched to an account by email address.
    """

    __tablename__ = "clinician_profiles"

    user_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        unique=True,
        nullable=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    last_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    specialization: Mapped[str] = mapped_column(
        String(100),
        default="Urology",
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    appointments: Mapped[list["Appointment"]] = relationship(
        "Appointment",
        back_populates="clinician",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<ClinicianProfile {self.email} active={self.is_active}>"


class AppointmentType(str, Enum):
    """Category of encounter."""

    UROLOGIST = "urologist"  # clinician consultation
    INVESTIGATION = "investigation"
    SURGERY = "surgery"


class AppointmentStatus(str, Enum):
    """Status of an appointment."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# Statuses that occupy a clinician's slot
ACTIVE_APPOINTMENT_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)

_ACTIVE_SLOT_PREDICATE = text(
    "status IN ('scheduled', 'confirmed') AND is_overbooked = false"
)


class BookingSource(str, Enum):
    """Source of the booking."""

    STAFF_BOOKED = "staff_booked"
    SYSTEM_SCHEDULED = "system_scheduled"


class Appointment(Base, TimestampMixin):
    """Scheduled encounter between a patient and a catalog clinician.

    At most one non-overbooked active appointment may hold a given
    (clinician, date, time); the partial unique index below is the
    authoritative conflict check.
    """

    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            "uq_appointments_active_slot",
            "clinician_id",
            "appointment_date",
            "appointment_time",
            unique=True,
            postgresql_where=_ACTIVE_SLOT_PREDICATE,
            sqlite_where=_ACTIVE_SLOT_PREDICATE,
        ),
    )

    patient_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    clinician_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("clinician_profiles.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    # Denormalised for display in calendars and correspondence
    clinician_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    appointment_type: Mapped[AppointmentType] = mapped_column(
        String(30),
        default=AppointmentType.UROLOGIST,
        nullable=False,
    )
    appointment_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )
    appointment_time: Mapped[time] = mapped_column(
        Time,
        nullable=False,
    )
    status: Mapped[AppointmentStatus] = mapped_column(
        String(30),
        default=AppointmentStatus.SCHEDULED,
        nullable=False,
        index=True,
    )
    booking_source: Mapped[BookingSource] = mapped_column(
        String(30),
        default=BookingSource.STAFF_BOOKED,
        nullable=False,
    )
    # Set when every candidate slot was taken and the booking was forced
    is_overbooked: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    created_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    clinician: Mapped["ClinicianProfile"] = relationship(
        "ClinicianProfile",
        back_populates="appointments",
    )

    def __repr__(self) -> str:
        return (
            f"<Appointment {self.id[:8]}... {self.appointment_date} "
            f"{self.appointment_time} status={self.status}>"
        )
