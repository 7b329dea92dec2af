"""Abstract base class for external video platform clients."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from src.commons.infrastructure.blob.base import HealthStatus


class ProcessingState(str, Enum):
    """Platform-side processing state of an uploaded video."""

    PROCESSING = "processing"  # Received, content matching not finished
    PROCESSED = "processed"  # Fully processed
    REJECTED = "rejected"  # Refused by the platform (duplicate, length, ...)
    FAILED = "failed"  # Platform could not process the file


@dataclass
class PlatformUpload:
    """Result of uploading a video to the platform."""

    video_id: str
    processing_state: ProcessingState = ProcessingState.PROCESSING


@dataclass
class PlatformVerdict:
    """What the platform reports about a video's content."""

    video_id: str
    licensed_content: bool
    blocked_region_count: int
    processing_state: ProcessingState
    rejection_reason: str | None = None
    rights_conflict: bool = False  # Rejection reason names a rights match


class VideoPlatformBase(ABC):
    """Abstract base class for external video platform clients.

    Implementations should handle:
    - YouTube Data API v3
    """

    @abstractmethod
    async def upload(
        self,
        data: bytes,
        mime_type: str,
        title: str,
        description: str,
    ) -> PlatformUpload:
        """Upload a video with restricted visibility.

        Args:
            data: Raw video bytes.
            mime_type: MIME type of the video.
            title: Video title shown on the platform.
            description: Video description.

        Returns:
            The platform reference of the new video.

        Raises:
            PlatformTechnicalError: If the upload fails or no id is returned.
            ContentConflictError: If the platform refuses the upload outright
                because of a content conflict.
        """

    @abstractmethod
    async def get_verdict(self, video_id: str) -> PlatformVerdict:
        """Query the platform's content-matching verdict for a video.

        Raises:
            PlatformVideoNotFoundError: If the video is not visible (private,
                removed, unknown).
            PlatformTechnicalError: On transport, HTTP, quota or timeout errors.
        """

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check that the client is configured and the platform is reachable."""

    async def close(self) -> None:
        """Release client resources. No-op by default."""
        return None
