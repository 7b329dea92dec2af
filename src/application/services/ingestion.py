"""Video ingestion boundary: accepts uploads and hands them to verification."""

import hashlib
from datetime import timedelta

from src.application.dtos.ingestion import RetryAccepted, UploadAccepted
from src.application.services.object_store import VideoObjectStore, extension_for
from src.application.services.task_runner import IngestionTaskRunner
from src.commons.settings.models import (
    IngestionSettings,
    VerificationSettings,
    VideoPlatformSettings,
)
from src.commons.telemetry import LogContext, get_logger
from src.domain.exceptions import (
    DuplicateUploadException,
    InvalidUploadException,
    PlatformError,
    UploadAlreadyFinalizedException,
    UploadNotFoundException,
)
from src.domain.models.upload import UploadRecord
from src.infrastructure.repositories.upload_records import UploadRecordRepository
from src.infrastructure.video_platform.base import VideoPlatformBase

_BYTES_PER_MB = 1024 * 1024


class VideoIngestionService:
    """Accepts video uploads and schedules their copyright verification.

    The synchronous part stores the bytes and creates a PENDING record;
    everything that talks to the video platform happens later in the
    background, except in ``platform_first`` mode.
    """

    def __init__(
        self,
        uploads: UploadRecordRepository,
        object_store: VideoObjectStore,
        platform: VideoPlatformBase,
        runner: IngestionTaskRunner,
        ingestion_settings: IngestionSettings,
        verification_settings: VerificationSettings,
        platform_settings: VideoPlatformSettings,
    ) -> None:
        """Initialize the ingestion service.

        Args:
            uploads: Upload record repository.
            object_store: Video object store.
            platform: External video platform client.
            runner: Background task runner for verification.
            ingestion_settings: Acceptance rules and ingestion mode.
            verification_settings: Claim expiry used by retry and recovery.
            platform_settings: Upload description for platform-first mode.
        """
        self._uploads = uploads
        self._object_store = object_store
        self._platform = platform
        self._runner = runner
        self._settings = ingestion_settings
        self._stale_after = timedelta(seconds=verification_settings.stale_claim_seconds)
        self._description = platform_settings.description
        self._logger = get_logger(__name__)

    @property
    def max_upload_bytes(self) -> int:
        """Largest accepted upload."""
        return self._settings.max_upload_size_mb * _BYTES_PER_MB

    def validate(self, data: bytes, content_type: str | None) -> None:
        """Check an upload before anything is written.

        Raises:
            InvalidUploadException: If the file is empty, too large or of an
                unsupported type.
        """
        if not data:
            raise InvalidUploadException("No video file provided")
        if not content_type or content_type not in self._settings.allowed_mime_types:
            allowed = ", ".join(self._settings.allowed_mime_types)
            raise InvalidUploadException(
                f"Unsupported video type '{content_type}'. Allowed types: {allowed}"
            )
        if len(data) > self.max_upload_bytes:
            raise InvalidUploadException(
                f"Video exceeds the {self._settings.max_upload_size_mb} MB limit",
                too_large=True,
            )

    async def submit(
        self,
        data: bytes,
        content_type: str | None,
        filename: str | None,
        title: str | None = None,
        owner_user_id: str | None = None,
    ) -> UploadAccepted:
        """Store an uploaded video and schedule its verification.

        Args:
            data: Raw video bytes.
            content_type: MIME type declared by the client.
            filename: Original client filename.
            title: Optional display title.
            owner_user_id: Submitting user, None for anonymous uploads.

        Returns:
            Id, storage location and PENDING status of the new upload.

        Raises:
            InvalidUploadException: If the upload fails validation.
            DuplicateUploadException: If the same bytes are pending or approved.
            StorageException: If the bytes could not be stored.
        """
        self.validate(data, content_type)
        mime_type = content_type or "application/octet-stream"
        name = filename or "video"
        title = title.strip() if title and title.strip() else None

        content_hash = hashlib.sha256(data).hexdigest()
        if self._settings.reject_duplicates:
            existing = await self._uploads.find_active_by_hash(content_hash)
            if existing is not None:
                raise DuplicateUploadException(content_hash, existing.id)

        platform_video_id: str | None = None
        if self._settings.mode == "platform_first":
            platform_video_id = await self._upload_first(data, mime_type, title or name)

        stored = await self._object_store.put(data, mime_type, extension_for(name, mime_type))
        record = UploadRecord(
            owner_user_id=owner_user_id,
            filename=name,
            title=title,
            storage_key=stored.key,
            storage_url=stored.url,
            file_size=stored.size,
            content_type=mime_type,
            content_hash=content_hash,
            platform_video_id=platform_video_id,
        )

        try:
            await self._uploads.insert(record)
        except Exception:
            self._logger.error(
                "Failed to create upload record, removing stored object",
                exc_info=True,
                extra={"storage_key": stored.key},
            )
            await self._object_store.delete(stored.key)
            raise

        with LogContext(upload_id=record.id):
            self._logger.info(
                "Upload accepted",
                extra={
                    "storage_key": record.storage_key,
                    "size_bytes": record.file_size,
                    "owner_user_id": owner_user_id,
                },
            )
        self._runner.submit(record.id)

        return UploadAccepted(
            id=record.id,
            storage_url=record.storage_url,
            storage_key=record.storage_key,
            status=record.verification_status,
        )

    async def _upload_first(self, data: bytes, mime_type: str, title: str) -> str | None:
        try:
            upload = await self._platform.upload(data, mime_type, title, self._description)
        except PlatformError as e:
            self._logger.warning(
                "Platform-first upload failed, falling back to storage first",
                extra={"reason": str(e)},
            )
            return None
        return upload.video_id

    async def get_status(self, upload_id: str) -> UploadRecord:
        """Load an upload record.

        Raises:
            UploadNotFoundException: If the id is unknown.
        """
        record = await self._uploads.get(upload_id)
        if record is None:
            raise UploadNotFoundException(upload_id)
        return record

    async def retry(self, upload_id: str) -> RetryAccepted:
        """Re-schedule verification of a PENDING upload.

        Raises:
            UploadNotFoundException: If the id is unknown.
            UploadAlreadyFinalizedException: If the upload is terminal.
        """
        record = await self.get_status(upload_id)
        if record.is_terminal:
            raise UploadAlreadyFinalizedException(upload_id, record.verification_status)

        scheduled = False
        if record.is_claim_stale(self._stale_after):
            scheduled = self._runner.submit(upload_id)
        self._logger.info(
            "Manual verification retry",
            extra={"upload_id": upload_id, "scheduled": scheduled},
        )
        return RetryAccepted(
            id=record.id,
            status=record.verification_status,
            scheduled=scheduled,
        )

    async def recover_pending(self) -> int:
        """Re-schedule PENDING uploads left behind by a previous process.

        Returns:
            Number of uploads scheduled.
        """
        records = await self._uploads.list_recoverable(self._stale_after)
        scheduled = sum(1 for record in records if self._runner.submit(record.id))
        if scheduled:
            self._logger.info(
                "Recovered pending uploads", extra={"count": scheduled}
            )
        return scheduled
