"""Notification centre service."""

from src.commons.telemetry import get_logger
from src.domain.exceptions import NotificationNotFoundException
from src.domain.models.notification import NotificationRecord, NotificationType
from src.domain.models.upload import UploadRecord, VerificationStatus
from src.infrastructure.repositories.notifications import NotificationRepository

DEFAULT_LIST_LIMIT = 50

_UPLOAD_NOTIFICATION_TYPES = {
    VerificationStatus.APPROVED: NotificationType.VIDEO_UPLOAD_APPROVED,
    VerificationStatus.REJECTED: NotificationType.VIDEO_UPLOAD_REJECTED,
    VerificationStatus.FAILED: NotificationType.VIDEO_UPLOAD_FAILED,
}


class NotificationService:
    """Creates and manages user notifications.

    Only the recipient may read, update or delete a notification; any
    other caller gets ``NotificationNotFoundException``.
    """

    def __init__(self, repository: NotificationRepository) -> None:
        self._repository = repository
        self._logger = get_logger(__name__)

    async def notify_upload_outcome(self, record: UploadRecord) -> NotificationRecord | None:
        """Notify the owner of an upload about its terminal status.

        Anonymous uploads and non-terminal records produce nothing.

        Args:
            record: Upload record in its final state.

        Returns:
            The stored notification, or None if nobody is notified.
        """
        if record.owner_user_id is None:
            return None
        notification_type = _UPLOAD_NOTIFICATION_TYPES.get(record.verification_status)
        if notification_type is None:
            return None

        title, message = _upload_message(record)
        notification = NotificationRecord(
            user_id=record.owner_user_id,
            type=notification_type,
            title=title,
            message=message,
            related_id=record.id,
        )
        await self._repository.insert(notification)
        self._logger.info(
            "Notification created",
            extra={
                "notification_id": notification.id,
                "notification_type": notification_type.value,
                "upload_id": record.id,
            },
        )
        return notification

    async def list_for_user(
        self,
        user_id: str,
        *,
        unread_only: bool = False,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[NotificationRecord]:
        """List a user's notifications, newest first."""
        return await self._repository.list_for_user(
            user_id, unread_only=unread_only, limit=limit
        )

    async def unread_count(self, user_id: str) -> int:
        """Count a user's unread notifications."""
        return await self._repository.count_unread(user_id)

    async def mark_as_read(self, notification_id: str, user_id: str) -> NotificationRecord:
        """Mark one of the user's notifications as read.

        Raises:
            NotificationNotFoundException: If it does not exist or is not theirs.
        """
        notification = await self._require_owned(notification_id, user_id)
        if not notification.read:
            await self._repository.mark_read(notification_id)
        return notification.model_copy(update={"read": True})

    async def mark_all_as_read(self, user_id: str) -> int:
        """Mark all of the user's notifications as read.

        Returns:
            Number of notifications that changed.
        """
        return await self._repository.mark_all_read(user_id)

    async def delete(self, notification_id: str, user_id: str) -> None:
        """Delete one of the user's notifications.

        Raises:
            NotificationNotFoundException: If it does not exist or is not theirs.
        """
        await self._require_owned(notification_id, user_id)
        await self._repository.delete(notification_id)

    async def _require_owned(
        self, notification_id: str, user_id: str
    ) -> NotificationRecord:
        notification = await self._repository.get_for_user(notification_id, user_id)
        if notification is None:
            raise NotificationNotFoundException(notification_id)
        return notification


def _upload_message(record: UploadRecord) -> tuple[str, str]:
    name = record.display_title
    status = record.verification_status
    if status is VerificationStatus.APPROVED:
        return (
            "Video approved",
            f'Your video "{name}" passed the copyright check.',
        )
    if status is VerificationStatus.REJECTED:
        return (
            "Video rejected",
            f'Your video "{name}" was rejected: {record.failure_reason}. '
            "The uploaded file has been removed.",
        )
    return (
        "Video verification failed",
        f'We could not verify your video "{name}": {record.failure_reason}. '
        "Please upload it again.",
    )
