"""Notification centre endpoints, scoped to the calling user."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from src.api.dependencies import NotificationServiceDep, UserDep
from src.application.dtos.notifications import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)

router = APIRouter()


@router.get(
    "/notifications",
    response_model=NotificationListResponse,
    summary="List notifications",
    description="The caller's notifications, newest first.",
)
async def list_notifications(
    service: NotificationServiceDep,
    user: UserDep,
    unread_only: Annotated[bool, Query(description="Only unread")] = False,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> NotificationListResponse:
    """List the caller's notifications."""
    records = await service.list_for_user(
        user.user_id or "", unread_only=unread_only, limit=limit
    )
    items = [NotificationResponse.from_record(r) for r in records]
    return NotificationListResponse(notifications=items, count=len(items))


@router.get(
    "/notifications/unread-count",
    response_model=UnreadCountResponse,
    summary="Count unread notifications",
)
async def unread_count(
    service: NotificationServiceDep,
    user: UserDep,
) -> UnreadCountResponse:
    """Count the caller's unread notifications."""
    return UnreadCountResponse(count=await service.unread_count(user.user_id or ""))


@router.patch(
    "/notifications/read-all",
    response_model=MarkAllReadResponse,
    summary="Mark all notifications as read",
)
async def mark_all_read(
    service: NotificationServiceDep,
    user: UserDep,
) -> MarkAllReadResponse:
    """Mark every notification of the caller as read."""
    updated = await service.mark_all_as_read(user.user_id or "")
    return MarkAllReadResponse(updated=updated)


@router.patch(
    "/notifications/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a notification as read",
    responses={404: {"description": "Not found or not owned by the caller"}},
)
async def mark_read(
    notification_id: str,
    service: NotificationServiceDep,
    user: UserDep,
) -> NotificationResponse:
    """Mark one notification as read."""
    record = await service.mark_as_read(notification_id, user.user_id or "")
    return NotificationResponse.from_record(record)


@router.delete(
    "/notifications/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a notification",
    responses={404: {"description": "Not found or not owned by the caller"}},
)
async def delete_notification(
    notification_id: str,
    service: NotificationServiceDep,
    user: UserDep,
) -> None:
    """Delete one notification."""
    await service.delete(notification_id, user.user_id or "")
