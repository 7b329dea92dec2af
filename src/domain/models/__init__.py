"""Domain models."""

from src.domain.models.notification import NotificationRecord, NotificationType
from src.domain.models.upload import UploadRecord, VerificationStatus

__all__ = [
    # Upload
    "UploadRecord",
    "VerificationStatus",
    # Notification
    "NotificationRecord",
    "NotificationType",
]
