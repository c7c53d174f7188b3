"""Pydantic schemas for patient operations."""

from datetime import date, datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.patient import CarePathway


class PatientCreate(BaseModel):
    """Schema for registering a new patient."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=30)
    date_of_birth: date | None = None
    care_pathway: str | None = Field(
        default=None,
        description="Initial care pathway, one of the CarePathway values",
    )
    assigned_urologist_id: str | None = None
    referred_by_gp_id: str | None = None
    notes: str | None = None

    @field_validator("care_pathway")
    @classmethod
    def validate_care_pathway(cls, v: str | None) -> str | None:
        if v is not None and CarePathway.parse(v) is None:
            raise ValueError(f"Invalid care pathway: {v}")
        return v


class PatientRead(BaseModel):
    """Schema for reading a patient."""

    id: str
    upi: str
    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None
    date_of_birth: date | None = None
    care_pathway: str | None = None
    status: str
    care_pathway_updated_at: datetime | None = None
    notes: str | None = None
    assigned_urologist: str | None = None
    assigned_urologist_id: str | None = None
    referred_by_gp_id: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
