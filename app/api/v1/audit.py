"""Audit event endpoints.

READ-ONLY: audit events are written internally by write_audit_event()
and are never created, updated or deleted through the API.
"""

from fastapi import APIRouter, Depends, status

from app.api.deps import DbSession, require_permissions
from app.schemas.audit_event import AuditEventRead
from app.services.audit import AuditService
from app.services.rbac import Permission

router = APIRouter()


@router.get(
    "/events/{entity_type}/{entity_id}",
    response_model=list[AuditEventRead],
    status_code=status.HTTP_200_OK,
    summary="Get entity audit history",
    description="Audit history for one entity, newest first",
    dependencies=[Depends(require_permissions(Permission.AUDIT_READ))],
)
async def get_entity_history(
    entity_type: str,
    entity_id: str,
    session: DbSession,
    limit: int = 100,
) -> list[AuditEventRead]:
    audit_service = AuditService(session)
    events = await audit_service.get_entity_history(
        entity_type=entity_type,
        entity_id=entity_id,
        limit=min(limit, 500),
    )

    return [AuditEventRead.model_validate(e) for e in events]
