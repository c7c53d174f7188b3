"""Audit event service for append-only audit logging."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import audit_logger
from app.models.audit_event import ActorType, AuditEvent


async def write_audit_event(
    session: AsyncSession,
    actor_type: ActorType,
    actor_id: str | None,
    action: str,
    entity_type: str,
    entity_id: str | None,
    metadata: dict[str, Any] | None = None,
    actor_email: str | None = None,
    action_category: str | None = None,
    description: str | None = None,
    ip_address: str | None = None,
    request_id: str | None = None,
    commit: bool = True,
) -> AuditEvent:
    """Write an audit event to the database.

    Events are append-only and cannot be modified or deleted.

    Args:
        session: Database session
        actor_type: Type of actor (system, staff)
        actor_id: ID of the acting user
        action: Action performed (e.g. "login_success", "pathway_transition")
        entity_type: Type of entity affected (e.g. "patient")
        entity_id: ID of the affected entity
        metadata: Additional context as JSON
        actor_email: Email of the actor
        action_category: Category of action (auth, pathway, clinical)
        description: Human-readable description
        ip_address: Client IP address
        request_id: Request correlation ID
        commit: Commit immediately. Pass False to join the caller's
            unit of work so the event lands with the change it records.

    Returns:
        Created AuditEvent instance
    """
    event = AuditEvent(
        actor_type=actor_type,
        actor_id=actor_id,
        actor_email=actor_email,
        action=action,
        action_category=action_category,
        entity_type=entity_type,
        entity_id=entity_id,
        event_metadata=metadata,
        description=description,
        ip_address=ip_address,
        request_id=request_id,
    )

    session.add(event)
    if commit:
        await session.commit()
        await session.refresh(event)

    audit_logger.log(
        action=action,
        actor_type=actor_type.value,
        actor_id=actor_id or "system",
        entity_type=entity_type,
        entity_id=entity_id or "none",
        metadata=metadata,
    )

    return event


class AuditService:
    """Read access to audit events."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_entity_history(
        self,
        entity_type: str,
        entity_id: str,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get audit history for a specific entity, newest first."""
        result = await self.session.execute(
            select(AuditEvent)
            .where(AuditEvent.entity_type == entity_type)
            .where(AuditEvent.entity_id == entity_id)
            .order_by(AuditEvent.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
