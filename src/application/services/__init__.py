"""Application services for video ingestion and verification."""

from src.application.services.ingestion import VideoIngestionService
from src.application.services.notifications import NotificationService
from src.application.services.object_store import (
    StoredObject,
    StoredObjectInfo,
    StoredObjectStream,
    VideoObjectStore,
)
from src.application.services.policies import (
    BoundedRetryPolicy,
    SingleAttemptPolicy,
    VerificationOutcome,
    VerificationPolicy,
    build_policy,
)
from src.application.services.task_runner import IngestionTaskRunner
from src.application.services.verification import (
    VerificationPipeline,
    classify_verdict,
)

__all__ = [
    "BoundedRetryPolicy",
    "IngestionTaskRunner",
    "NotificationService",
    "SingleAttemptPolicy",
    "StoredObject",
    "StoredObjectInfo",
    "StoredObjectStream",
    "VerificationOutcome",
    "VerificationPipeline",
    "VerificationPolicy",
    "VideoIngestionService",
    "VideoObjectStore",
    "build_policy",
    "classify_verdict",
]
