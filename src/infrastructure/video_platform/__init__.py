"""External video platform clients."""

from src.infrastructure.video_platform.base import (
    PlatformUpload,
    PlatformVerdict,
    ProcessingState,
    VideoPlatformBase,
)
from src.infrastructure.video_platform.youtube import YouTubePlatformClient

__all__ = [
    "PlatformUpload",
    "PlatformVerdict",
    "ProcessingState",
    "VideoPlatformBase",
    "YouTubePlatformClient",
]
