"""Notification inbox for the signed-in staff user."""

from fastapi import APIRouter, HTTPException, Query, status

from app.api.deps import CurrentUser, DbSession
from app.schemas.notification import MarkAllReadResponse, NotificationList, NotificationRead
from app.services.notification import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get(
    "",
    response_model=NotificationList,
    summary="List my notifications",
)
async def list_notifications(
    session: DbSession,
    user: CurrentUser,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    unread_only: bool = False,
) -> NotificationList:
    service = NotificationService(session)
    items = await service.list_for_user(
        user.id, limit=limit, offset=offset, unread_only=unread_only
    )
    unread = await service.unread_count(user.id)

    return NotificationList(
        items=[NotificationRead.model_validate(n) for n in items],
        unread_count=unread,
    )


@router.patch(
    "/read-all",
    response_model=MarkAllReadResponse,
    summary="Mark all my notifications read",
)
async def mark_all_notifications_read(
    session: DbSession,
    user: CurrentUser,
) -> MarkAllReadResponse:
    updated = await NotificationService(session).mark_all_read(user.id)
    return MarkAllReadResponse(updated=updated)


@router.patch(
    "/{notification_id}/read",
    response_model=NotificationRead,
    summary="Mark a notification read",
)
async def mark_notification_read(
    notification_id: str,
    session: DbSession,
    user: CurrentUser,
) -> NotificationRead:
    notification = await NotificationService(session).mark_read(notification_id, user.id)
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")

    return NotificationRead.model_validate(notification)


@router.delete(
    "/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a notification",
)
async def delete_notification(
    notification_id: str,
    session: DbSession,
    user: CurrentUser,
) -> None:
    deleted = await NotificationService(session).delete(notification_id, user.id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
