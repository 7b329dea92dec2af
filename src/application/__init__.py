"""Application layer - use cases and orchestration.

This layer contains:
- Services: ingestion boundary, verification pipeline, notifications
- DTOs: Data transfer objects for API boundaries
"""

from src.application.dtos import (
    UploadAccepted,
    UploadStatusResponse,
)
from src.application.services import (
    IngestionTaskRunner,
    NotificationService,
    VerificationPipeline,
    VideoIngestionService,
    VideoObjectStore,
)

__all__ = [
    # DTOs
    "UploadAccepted",
    "UploadStatusResponse",
    # Services
    "IngestionTaskRunner",
    "NotificationService",
    "VerificationPipeline",
    "VideoIngestionService",
    "VideoObjectStore",
]
