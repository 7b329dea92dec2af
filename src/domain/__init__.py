"""Domain layer - business models and logic."""

from src.domain.exceptions import (
    ContentConflictError,
    DomainException,
    DuplicateUploadException,
    InvalidStatusTransitionException,
    InvalidUploadException,
    NotificationNotFoundException,
    PlatformError,
    PlatformTechnicalError,
    PlatformVideoNotFoundError,
    StorageException,
    StoredObjectNotFoundException,
    UploadAlreadyFinalizedException,
    UploadNotFoundException,
)
from src.domain.models import (
    NotificationRecord,
    NotificationType,
    UploadRecord,
    VerificationStatus,
)

__all__ = [
    # Exceptions
    "DomainException",
    "InvalidUploadException",
    "DuplicateUploadException",
    "StorageException",
    "StoredObjectNotFoundException",
    "UploadNotFoundException",
    "UploadAlreadyFinalizedException",
    "InvalidStatusTransitionException",
    "NotificationNotFoundException",
    # Platform errors
    "PlatformError",
    "PlatformTechnicalError",
    "PlatformVideoNotFoundError",
    "ContentConflictError",
    # Models
    "UploadRecord",
    "VerificationStatus",
    "NotificationRecord",
    "NotificationType",
]
