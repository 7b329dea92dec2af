"""Domain exceptions for the festival video ingestion pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.domain.models.upload import VerificationStatus


class DomainException(Exception):
    """Base exception for domain errors."""


class InvalidUploadException(DomainException):
    """Raised when a submitted video is rejected before anything is stored."""

    def __init__(self, reason: str, *, too_large: bool = False) -> None:
        self.reason = reason
        self.too_large = too_large
        super().__init__(reason)


class DuplicateUploadException(DomainException):
    """Raised when identical bytes are already pending or approved."""

    def __init__(self, content_hash: str, existing_id: str) -> None:
        self.content_hash = content_hash
        self.existing_id = existing_id
        super().__init__(f"This video was already uploaded (upload {existing_id})")


class StorageException(DomainException):
    """Raised when the object store fails on the synchronous upload path."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Object storage {operation} failed: {reason}")


class StoredObjectNotFoundException(DomainException):
    """Raised when a key does not exist in the object store."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Stored object not found: {key}")


class UploadNotFoundException(DomainException):
    """Raised when an upload record is not found."""

    def __init__(self, upload_id: str) -> None:
        self.upload_id = upload_id
        super().__init__(f"Upload not found: {upload_id}")


class UploadAlreadyFinalizedException(DomainException):
    """Raised when an operation needs a PENDING upload but it is terminal."""

    def __init__(self, upload_id: str, status: VerificationStatus) -> None:
        self.upload_id = upload_id
        self.status = status
        super().__init__(
            f"Upload {upload_id} is already finalized with status {status.value}"
        )


class InvalidStatusTransitionException(DomainException):
    """Raised when a terminal upload would be moved to another status."""

    def __init__(
        self,
        upload_id: str,
        current: VerificationStatus,
        target: VerificationStatus,
    ) -> None:
        self.upload_id = upload_id
        self.current = current
        self.target = target
        super().__init__(
            f"Upload {upload_id} cannot move from {current.value} to {target.value}"
        )


class NotificationNotFoundException(DomainException):
    """Raised when a notification does not exist or belongs to someone else."""

    def __init__(self, notification_id: str) -> None:
        self.notification_id = notification_id
        super().__init__(f"Notification not found: {notification_id}")


class PlatformError(DomainException):
    """Base class for failures reported by the external video platform."""

    def __init__(self, message: str, *, video_id: str | None = None) -> None:
        self.message = message
        self.video_id = video_id
        super().__init__(message)


class PlatformTechnicalError(PlatformError):
    """Transport, HTTP, quota, credential or timeout failure.

    Attributes:
        retryable: Whether asking again later may succeed.
    """

    def __init__(
        self,
        message: str,
        *,
        video_id: str | None = None,
        status_code: int | None = None,
        retryable: bool = False,
    ) -> None:
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(message, video_id=video_id)


class PlatformVideoNotFoundError(PlatformError):
    """The platform has no visible video for the id (private, removed, unknown)."""

    def __init__(self, video_id: str) -> None:
        super().__init__(f"Video {video_id} not found on the platform", video_id=video_id)


class ContentConflictError(PlatformError):
    """The platform flagged the video for a copyright or licensing conflict."""
