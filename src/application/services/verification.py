"""Copyright verification pipeline for uploaded videos.

Runs in the background after an upload is accepted:

1. upload the stored video to the external platform (restricted visibility),
2. wait for the platform's content matching,
3. query the verdict,
4. persist the terminal status, delete the stored object when the upload is
   rejected or failed, and notify the owner.

The pipeline never raises to its caller. Every failure ends as persisted
state on the upload record.
"""

import asyncio
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from src.application.services.notifications import NotificationService
from src.application.services.object_store import VideoObjectStore
from src.application.services.policies import VerificationOutcome, VerificationPolicy
from src.commons.settings.models import VerificationSettings, VideoPlatformSettings
from src.commons.telemetry import LogContext, get_logger
from src.domain.exceptions import (
    ContentConflictError,
    PlatformError,
    PlatformTechnicalError,
    PlatformVideoNotFoundError,
    StoredObjectNotFoundException,
)
from src.domain.models.upload import UploadRecord, VerificationStatus
from src.infrastructure.repositories.upload_records import UploadRecordRepository
from src.infrastructure.video_platform.base import (
    PlatformVerdict,
    ProcessingState,
    VideoPlatformBase,
)

UNAVAILABLE_REASON = "Video unavailable: not found, private or removed on the platform"
STILL_PROCESSING_REASON = "Video is still being processed by the platform"
PLATFORM_FAILED_REASON = "The platform failed to process the video"


class _ClaimLostError(Exception):
    """Another worker took over the record or it was finalized elsewhere."""


def classify_verdict(verdict: PlatformVerdict, blocked_region_threshold: int) -> VerificationOutcome:
    """Turn the platform's signals into a verification outcome.

    Args:
        verdict: Signals reported by the platform.
        blocked_region_threshold: Region blocks above this count are treated
            as a rights-holder block.

    Returns:
        The outcome the upload should take.
    """
    if verdict.licensed_content:
        return VerificationOutcome(
            status=VerificationStatus.REJECTED,
            reason="Copyright conflict: the platform flagged the video as licensed content",
            content_conflict=True,
        )
    if verdict.blocked_region_count > blocked_region_threshold:
        return VerificationOutcome(
            status=VerificationStatus.REJECTED,
            reason=(
                "Copyright conflict: the video is blocked in "
                f"{verdict.blocked_region_count} regions"
            ),
            content_conflict=True,
        )
    if verdict.processing_state is ProcessingState.REJECTED:
        detail = verdict.rejection_reason or "unspecified"
        return VerificationOutcome(
            status=VerificationStatus.REJECTED,
            reason=f"Rejected by the platform: {detail}",
            content_conflict=verdict.rights_conflict,
        )
    if verdict.processing_state is ProcessingState.PROCESSING:
        return VerificationOutcome(
            status=VerificationStatus.FAILED,
            reason=STILL_PROCESSING_REASON,
            retryable=True,
        )
    if verdict.processing_state is ProcessingState.FAILED:
        detail = f": {verdict.rejection_reason}" if verdict.rejection_reason else ""
        return VerificationOutcome(
            status=VerificationStatus.FAILED,
            reason=f"{PLATFORM_FAILED_REASON}{detail}",
        )
    return VerificationOutcome(status=VerificationStatus.APPROVED)


class VerificationPipeline:
    """Drives one upload from PENDING to a terminal status.

    Safe to run more than once for the same upload: terminal records are
    left untouched and an exclusive claim on the record keeps two runs from
    working on it at the same time.
    """

    def __init__(
        self,
        uploads: UploadRecordRepository,
        object_store: VideoObjectStore,
        platform: VideoPlatformBase,
        notifications: NotificationService,
        policy: VerificationPolicy,
        verification_settings: VerificationSettings,
        platform_settings: VideoPlatformSettings,
    ) -> None:
        """Initialize the pipeline.

        Args:
            uploads: Upload record repository.
            object_store: Where the uploaded bytes live.
            platform: External video platform client.
            notifications: Notification service for the owner.
            policy: Delay and retry policy.
            verification_settings: Thresholds and claim expiry.
            platform_settings: Upload description sent to the platform.
        """
        self._uploads = uploads
        self._object_store = object_store
        self._platform = platform
        self._notifications = notifications
        self._policy = policy
        self._blocked_region_threshold = verification_settings.blocked_region_threshold
        self._stale_after = timedelta(seconds=verification_settings.stale_claim_seconds)
        self._description = platform_settings.description
        self._logger = get_logger(__name__)

    async def run(self, upload_id: str) -> UploadRecord | None:
        """Verify one upload.

        Args:
            upload_id: Id of the upload record.

        Returns:
            The record in the state this run left it, or None if the record
            does not exist or another worker owns it.
        """
        with LogContext(upload_id=upload_id):
            record = await self._uploads.get(upload_id)
            if record is None:
                self._logger.warning("Upload record not found, nothing to verify")
                return None
            if record.is_terminal:
                self._logger.info(
                    "Upload already finalized, skipping",
                    extra={"status": record.verification_status.value},
                )
                return record
            if not record.is_claim_stale(self._stale_after):
                self._logger.info("Upload is being verified by another worker")
                return None

            token = uuid4().hex
            claimed = await self._uploads.try_claim(record, token)
            if claimed is None:
                self._logger.info("Lost the race for the upload claim")
                return None

            try:
                return await self._process(claimed, token)
            except asyncio.CancelledError:
                try:
                    await self._uploads.release_claim(upload_id, token)
                except Exception:
                    self._logger.warning("Could not release claim", exc_info=True)
                self._logger.info("Verification cancelled")
                raise
            except _ClaimLostError:
                self._logger.warning("Claim lost during verification, stopping")
                return None
            except Exception as e:
                self._logger.error(
                    "Unexpected error during verification",
                    exc_info=True,
                    extra={"exception_type": type(e).__name__},
                )
                return await self._fail_unexpected(upload_id, token, e)

    async def _process(self, record: UploadRecord, token: str) -> UploadRecord:
        if record.platform_video_id is None:
            record = await self._upload_to_platform(record, token)
            if record.is_terminal:
                return record
        else:
            self._logger.info(
                "Platform upload already done, skipping",
                extra={"platform_video_id": record.platform_video_id},
            )

        self._logger.debug(
            "Waiting for platform content matching",
            extra={"delay_seconds": self._policy.initial_delay_seconds},
        )
        await asyncio.sleep(self._policy.initial_delay_seconds)

        while True:
            record = record.record_attempt()
            await self._save(record, token)
            outcome = await self._query(record)

            if self._policy.should_retry(outcome, record.verification_attempts):
                delay = self._policy.retry_delay_seconds(record.verification_attempts)
                self._logger.info(
                    "Verdict not final, asking again later",
                    extra={
                        "attempts": record.verification_attempts,
                        "reason": outcome.reason,
                        "retry_in_seconds": delay,
                    },
                )
                await asyncio.sleep(delay)
                continue

            return await self._finalize(record, token, outcome)

    async def _upload_to_platform(self, record: UploadRecord, token: str) -> UploadRecord:
        attempted_at = datetime.now(UTC)
        try:
            data = await self._object_store.read_bytes(record.storage_key)
            upload = await self._platform.upload(
                data,
                record.content_type,
                record.display_title,
                self._description,
            )
        except ContentConflictError as e:
            if e.video_id:
                record = record.with_platform_video(e.video_id)
            outcome = VerificationOutcome(
                status=VerificationStatus.REJECTED,
                reason=e.message,
                content_conflict=True,
            )
            return await self._finalize(record, token, outcome, attempted_at=attempted_at)
        except (PlatformError, StoredObjectNotFoundException) as e:
            self._logger.warning(
                "Platform upload failed",
                extra={"exception_type": type(e).__name__, "reason": str(e)},
            )
            outcome = VerificationOutcome(
                status=VerificationStatus.FAILED,
                reason=str(e),
            )
            return await self._finalize(record, token, outcome, attempted_at=attempted_at)

        record = record.with_platform_video(upload.video_id)
        await self._save(record, token)
        self._logger.info(
            "Uploaded to platform",
            extra={"platform_video_id": upload.video_id},
        )
        return record

    async def _query(self, record: UploadRecord) -> VerificationOutcome:
        video_id = record.platform_video_id
        if video_id is None:
            raise ValueError("Cannot query a verdict without a platform video id")
        try:
            verdict = await self._platform.get_verdict(video_id)
        except PlatformVideoNotFoundError:
            return VerificationOutcome(
                status=VerificationStatus.REJECTED,
                reason=UNAVAILABLE_REASON,
            )
        except PlatformTechnicalError as e:
            return VerificationOutcome(
                status=VerificationStatus.FAILED,
                reason=e.message,
                retryable=e.retryable,
            )
        except PlatformError as e:
            return VerificationOutcome(status=VerificationStatus.FAILED, reason=e.message)

        self._logger.debug(
            "Platform verdict received",
            extra={
                "licensed_content": verdict.licensed_content,
                "blocked_region_count": verdict.blocked_region_count,
                "processing_state": verdict.processing_state.value,
            },
        )
        return classify_verdict(verdict, self._blocked_region_threshold)

    async def _finalize(
        self,
        record: UploadRecord,
        token: str,
        outcome: VerificationOutcome,
        attempted_at: datetime | None = None,
    ) -> UploadRecord:
        reason = outcome.reason or "unspecified"
        if outcome.status is VerificationStatus.APPROVED:
            final = record.mark_approved()
        elif outcome.status is VerificationStatus.REJECTED:
            final = record.mark_rejected(
                reason,
                content_conflict=outcome.content_conflict,
                attempted_at=attempted_at,
            )
        else:
            final = record.mark_failed(reason, attempted_at=attempted_at)

        await self._save(final, token)
        self._logger.info(
            "Verification finished",
            extra={
                "status": final.verification_status.value,
                "reason": final.failure_reason,
                "attempts": final.verification_attempts,
            },
        )

        if final.verification_status is not VerificationStatus.APPROVED:
            await self._object_store.delete(final.storage_key)

        try:
            await self._notifications.notify_upload_outcome(final)
        except Exception:
            self._logger.error("Failed to write notification", exc_info=True)
        return final

    async def _fail_unexpected(
        self, upload_id: str, token: str, error: Exception
    ) -> UploadRecord | None:
        try:
            current = await self._uploads.get(upload_id)
            if current is None or current.is_terminal or current.claim_token != token:
                return current
            outcome = VerificationOutcome(
                status=VerificationStatus.FAILED,
                reason=f"Unexpected error: {error}",
            )
            return await self._finalize(current, token, outcome)
        except Exception:
            self._logger.error("Could not record verification failure", exc_info=True)
            return None

    async def _save(self, record: UploadRecord, token: str) -> None:
        if not await self._uploads.save_claimed(record, token):
            raise _ClaimLostError(record.id)
