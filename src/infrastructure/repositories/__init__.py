"""Document-database repositories for the domain records."""

from src.infrastructure.repositories.notifications import NotificationRepository
from src.infrastructure.repositories.upload_records import UploadRecordRepository

__all__ = [
    "NotificationRepository",
    "UploadRecordRepository",
]
