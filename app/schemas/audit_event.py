"""Schemas for audit events (read-only)."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class AuditEventRead(BaseModel):
    id: str
    actor_type: str
    actor_id: str | None = None
    actor_email: str | None = None
    action: str
    action_category: str | None = None
    entity_type: str
    entity_id: str | None = None
    metadata: dict[str, Any] | None = Field(default=None, validation_alias="event_metadata")
    description: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True, "populate_by_name": True}
