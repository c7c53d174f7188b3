"""Schemas for clinical notes."""

from datetime import datetime

from pydantic import BaseModel


class PatientNoteRead(BaseModel):
    id: str
    patient_id: str
    note_type: str
    note_content: str
    author_id: str | None = None
    author_name: str
    author_role: str
    created_at: datetime

    model_config = {"from_attributes": True}
