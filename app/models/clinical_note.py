"""Append-only clinical notes attached to a patient."""

from enum import Enum

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class NoteType(str, Enum):
    """Category of clinical note."""

    PATHWAY_TRANSFER = "pathway_transfer"
    CLINICAL = "clinical"
    CONSULTATION = "consultation"


class PatientNote(Base, TimestampMixin):
    """Immutable clinical note.

    IMPORTANT: notes are never edited or deleted once written. The
    service layer exposes no update path and migration 002 installs a
    trigger rejecting UPDATE and DELETE on this table.
    """

    __tablename__ = "patient_notes"

    patient_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    note_type: Mapped[NoteType] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    note_content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    author_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    author_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    author_role: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<PatientNote {self.note_type} patient={self.patient_id[:8]}...>"
