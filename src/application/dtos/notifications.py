"""DTOs for the notification centre."""

from datetime import datetime

from pydantic import BaseModel

from src.domain.models.notification import NotificationRecord, NotificationType


class NotificationResponse(BaseModel):
    """A notification as shown to its recipient."""

    id: str
    type: NotificationType
    title: str
    message: str
    related_id: str | None = None
    read: bool
    created_at: datetime

    @classmethod
    def from_record(cls, record: NotificationRecord) -> "NotificationResponse":
        """Project a domain record onto the API shape."""
        return cls(
            id=record.id,
            type=record.type,
            title=record.title,
            message=record.message,
            related_id=record.related_id,
            read=record.read,
            created_at=record.created_at,
        )


class NotificationListResponse(BaseModel):
    """A page of notifications, newest first."""

    notifications: list[NotificationResponse]
    count: int


class UnreadCountResponse(BaseModel):
    """Number of unread notifications."""

    count: int


class MarkAllReadResponse(BaseModel):
    """Number of notifications flagged as read."""

    updated: int
