"""Patient model and care-pathway enumerations."""

from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, SoftDeleteMixin, TimestampMixin

if TYPE_CHECKING:
    from app.models.user import User


class CarePathway(str, Enum):
    """Clinical care stage a patient occupies.

    Values are the exact strings accepted from callers and stored
    on the patient record.
    """

    ACTIVE_MONITORING = "Active Monitoring"
    SURGERY_PATHWAY = "Surgery Pathway"
    MEDICATION = "Medication"
    RADIOTHERAPY = "Radiotherapy"
    POST_OP_TRANSFER = "Post-op Transfer"
    POST_OP_FOLLOWUP = "Post-op Followup"
    DISCHARGE = "Discharge"

    @classmethod
    def parse(cls, value: str | None) -> "CarePathway | None":
        """Return the member whose value matches exactly, else None."""
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class PatientStatus(str, Enum):
    """Administrative status derived from the care pathway."""

    ACTIVE = "Active"
    DISCHARGED = "Discharged"


def status_for_pathway(pathway: CarePathway) -> PatientStatus:
    """Discharge is the only pathway that ends active care."""
    if pathway == CarePathway.DISCHARGE:
        return PatientStatus.DISCHARGED
    return PatientStatus.ACTIVE


class Patient(Base, TimestampMixin, SoftDeleteMixin):
    """Urology patient.

    ``care_pathway`` and ``status`` are written together by the pathway
    transition service; ``status`` is Discharged exactly when the pathway
    is Discharge.
    """

    __tablename__ = "patients"
    __table_args__ = (
        CheckConstraint(
            "(care_pathway = 'Discharge') = (status = 'Discharged')",
            name="status_matches_pathway",
        ),
    )

    # Urology Patient Identifier, e.g. URP20260042
    upi: Mapped[str] = mapped_column(
        String(20),
        unique=True,
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
    email: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
    )
    phone: Mapped[str | None] = mapped_column(
        String(30),
        nullable=True,
    )
    date_of_birth: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )

    # Pathway state
    care_pathway: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=PatientStatus.ACTIVE.value,
        nullable=False,
        index=True,
    )
    care_pathway_updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    # Legacy display name of the assigned urologist. Kept for display;
    # booking resolves the clinician through assigned_urologist_id first.
    assigned_urologist: Mapped[str | None] = mapped_column(
        String(200),
        nullable=True,
    )
    assigned_urologist_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    referred_by_gp_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    assigned_urologist_user: Mapped["User | None"] = relationship(
        "User",
        foreign_keys=[assigned_urologist_id],
        lazy="selectin",
    )
    referring_gp: Mapped["User | None"] = relationship(
        "User",
        foreign_keys=[referred_by_gp_id],
        lazy="selectin",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Patient {self.upi} pathway={self.care_pathway}>"
