"""Data Transfer Objects for application layer."""

from src.application.dtos.ingestion import (
    DeleteObjectResponse,
    RetryAccepted,
    StoredObjectListResponse,
    StoredObjectResponse,
    UploadAccepted,
    UploadStatusResponse,
)
from src.application.dtos.notifications import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)

__all__ = [
    # Ingestion DTOs
    "UploadAccepted",
    "UploadStatusResponse",
    "RetryAccepted",
    "StoredObjectResponse",
    "StoredObjectListResponse",
    "DeleteObjectResponse",
    # Notification DTOs
    "NotificationResponse",
    "NotificationListResponse",
    "UnreadCountResponse",
    "MarkAllReadResponse",
]
