"""Upload record domain model."""

from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any, Self
from uuid import uuid4

from pydantic import BaseModel, Field

from src.domain.exceptions import InvalidStatusTransitionException


class VerificationStatus(str, Enum):
    """Copyright verification status of an uploaded video."""

    PENDING = "PENDING"  # Stored, verification not finished
    APPROVED = "APPROVED"  # No conflict detected, object retained
    REJECTED = "REJECTED"  # Content conflict or unavailable on the platform
    FAILED = "FAILED"  # Technical failure, nothing decided about content

    @property
    def is_terminal(self) -> bool:
        """Terminal statuses never change again."""
        return self is not VerificationStatus.PENDING


class UploadRecord(BaseModel):
    """One video ingestion attempt.

    Created PENDING by the ingestion boundary, then mutated only by the
    verification pipeline until it reaches a terminal status. Records are
    never deleted.
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Internal UUID for this upload",
    )
    owner_user_id: str | None = Field(
        default=None,
        description="Submitting user, None for anonymous uploads",
    )
    filename: str = Field(description="Original client filename")
    title: str | None = Field(default=None, description="Optional display title")
    storage_key: str = Field(description="Object key in the storage bucket")
    storage_url: str = Field(description="Public URL of the stored object")
    file_size: int = Field(ge=0, description="Size of the uploaded bytes")
    content_type: str = Field(
        default="application/octet-stream",
        description="MIME type declared by the client",
    )
    content_hash: str | None = Field(
        default=None,
        description="sha256 hex digest of the uploaded bytes",
    )
    platform_video_id: str | None = Field(
        default=None,
        description="Video id on the external platform, set after upload",
    )
    verification_status: VerificationStatus = Field(
        default=VerificationStatus.PENDING,
    )
    verification_attempts: int = Field(default=0, ge=0)
    last_verification_attempt_at: datetime | None = None
    copyright_detected_at: datetime | None = Field(
        default=None,
        description="Set only when the platform reported a content conflict",
    )
    failure_reason: str | None = Field(
        default=None,
        description="Why the upload was rejected or failed",
    )

    # Exclusive processing claim
    claim_token: str | None = None
    claimed_at: datetime | None = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_terminal(self) -> bool:
        """Check if verification has reached a final status."""
        return self.verification_status.is_terminal

    @property
    def display_title(self) -> str:
        """Title sent to the platform, falling back to the filename."""
        return self.title or self.filename

    def is_claim_stale(self, stale_after: timedelta, now: datetime | None = None) -> bool:
        """Check if the processing claim is absent or older than ``stale_after``."""
        if self.claim_token is None or self.claimed_at is None:
            return True
        current = now or datetime.now(UTC)
        return current - self.claimed_at >= stale_after

    def to_document(self) -> dict[str, Any]:
        """Serialize for the document database."""
        return self.model_dump(mode="json")

    def _require_pending(self, target: VerificationStatus) -> None:
        if self.is_terminal:
            raise InvalidStatusTransitionException(
                self.id, self.verification_status, target
            )

    def claim(self, token: str, at: datetime | None = None) -> Self:
        """Create a new instance holding the processing claim.

        Raises:
            InvalidStatusTransitionException: If the upload is terminal.
        """
        self._require_pending(VerificationStatus.PENDING)
        now = at or datetime.now(UTC)
        return self.model_copy(
            update={"claim_token": token, "claimed_at": now, "updated_at": now}
        )

    def with_platform_video(self, platform_video_id: str) -> Self:
        """Create a new instance carrying the platform reference."""
        self._require_pending(VerificationStatus.PENDING)
        return self.model_copy(
            update={
                "platform_video_id": platform_video_id,
                "updated_at": datetime.now(UTC),
            }
        )

    def record_attempt(self, at: datetime | None = None) -> Self:
        """Create a new instance with one more verification attempt recorded."""
        self._require_pending(VerificationStatus.PENDING)
        now = at or datetime.now(UTC)
        return self.model_copy(
            update={
                "verification_attempts": self.verification_attempts + 1,
                "last_verification_attempt_at": now,
                "updated_at": now,
            }
        )

    def _finalize(self, status: VerificationStatus, **updates: Any) -> Self:
        self._require_pending(status)
        return self.model_copy(
            update={
                "verification_status": status,
                "claim_token": None,
                "claimed_at": None,
                "updated_at": datetime.now(UTC),
                **updates,
            }
        )

    def mark_approved(self) -> Self:
        """Create a new instance marked APPROVED.

        Raises:
            InvalidStatusTransitionException: If the upload is already terminal.
        """
        return self._finalize(VerificationStatus.APPROVED, failure_reason=None)

    def mark_rejected(
        self,
        reason: str,
        *,
        content_conflict: bool,
        attempted_at: datetime | None = None,
    ) -> Self:
        """Create a new instance marked REJECTED.

        Args:
            reason: Human readable rejection reason.
            content_conflict: True when the platform detected a copyright
                conflict, which stamps ``copyright_detected_at``.
            attempted_at: When the refused platform upload was made.

        Raises:
            InvalidStatusTransitionException: If the upload is already terminal.
        """
        updates: dict[str, Any] = {
            "failure_reason": reason,
            "copyright_detected_at": datetime.now(UTC) if content_conflict else None,
        }
        if attempted_at is not None:
            updates["last_verification_attempt_at"] = attempted_at
        return self._finalize(VerificationStatus.REJECTED, **updates)

    def mark_failed(self, reason: str, *, attempted_at: datetime | None = None) -> Self:
        """Create a new instance marked FAILED after a technical error.

        Args:
            reason: What went wrong.
            attempted_at: When the failing platform call was made, for
                failures that happen before any verification query.

        Raises:
            InvalidStatusTransitionException: If the upload is already terminal.
        """
        updates: dict[str, Any] = {"failure_reason": reason}
        if attempted_at is not None:
            updates["last_verification_attempt_at"] = attempted_at
        return self._finalize(VerificationStatus.FAILED, **updates)
