"""Infrastructure layer - external service implementations."""

from src.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)
from src.infrastructure.repositories import (
    NotificationRepository,
    UploadRecordRepository,
)
from src.infrastructure.video_platform import (
    PlatformUpload,
    PlatformVerdict,
    ProcessingState,
    VideoPlatformBase,
    YouTubePlatformClient,
)

__all__ = [
    # Factory
    "InfrastructureFactory",
    "get_factory",
    "reset_factory",
    # Repositories
    "UploadRecordRepository",
    "NotificationRepository",
    # Video platform
    "VideoPlatformBase",
    "PlatformUpload",
    "PlatformVerdict",
    "ProcessingState",
    "YouTubePlatformClient",
]
