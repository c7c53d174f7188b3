"""Schemas for the notification inbox."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class NotificationRead(BaseModel):
    id: str
    type: str
    title: str
    message: str
    patient_name: str | None = None
    patient_id: str | None = None
    priority: str
    is_read: bool
    read_at: datetime | None = None
    metadata: dict[str, Any] | None = Field(
        default=None,
        validation_alias="notification_metadata",
    )
    created_at: datetime

    model_config = {"from_attributes": True, "populate_by_name": True}


class NotificationList(BaseModel):
    items: list[NotificationRead]
    unread_count: int


class MarkAllReadResponse(BaseModel):
    updated: int
