"""Shared fixtures: in-memory providers standing in for MinIO, MongoDB and YouTube."""

import asyncio
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from typing import Any, BinaryIO

import pytest

from src.application.services.notifications import NotificationService
from src.application.services.object_store import VideoObjectStore
from src.application.services.policies import SingleAttemptPolicy
from src.application.services.verification import VerificationPipeline
from src.commons.infrastructure.blob.base import (
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBase,
    BlobStorageError,
    HealthStatus,
)
from src.commons.infrastructure.documentdb.base import DocumentDBBase
from src.commons.settings.models import (
    BlobStorageSettings,
    IngestionSettings,
    VerificationSettings,
    VideoPlatformSettings,
)
from src.domain.models.upload import UploadRecord
from src.infrastructure.repositories import (
    NotificationRepository,
    UploadRecordRepository,
)
from src.infrastructure.video_platform.base import (
    PlatformUpload,
    PlatformVerdict,
    ProcessingState,
    VideoPlatformBase,
)

# =============================================================================
# In-memory providers
# =============================================================================


def _matches(document: dict[str, Any], filters: dict[str, Any]) -> bool:
    for key, expected in filters.items():
        actual = document.get(key)
        if isinstance(expected, dict) and "$in" in expected:
            if actual not in expected["$in"]:
                return False
        elif actual != expected:
            return False
    return True


class InMemoryDocumentDB(DocumentDBBase):
    """Dict-backed document database with MongoDB-like matching."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.indexes: dict[str, list[str]] = {}
        self.fail_inserts = False

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self.collections.setdefault(name, {})

    async def insert(self, collection: str, document: dict[str, Any]) -> str:
        if self.fail_inserts:
            raise ConnectionError("database unavailable")
        docs = self._collection(collection)
        if document["id"] in docs:
            raise ValueError(f"duplicate id {document['id']}")
        docs[document["id"]] = dict(document)
        return str(document["id"])

    async def find_by_id(self, collection: str, document_id: str) -> dict[str, Any] | None:
        doc = self._collection(collection).get(document_id)
        return dict(doc) if doc else None

    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        docs = [
            dict(doc)
            for doc in self._collection(collection).values()
            if _matches(doc, filters)
        ]
        for field, direction in reversed(sort or []):
            docs.sort(key=lambda d, f=field: d.get(f) or "", reverse=direction < 0)
        return docs[skip : skip + limit]

    async def find_one(
        self, collection: str, filters: dict[str, Any]
    ) -> dict[str, Any] | None:
        found = await self.find(collection, filters, limit=1)
        return found[0] if found else None

    async def update(
        self, collection: str, document_id: str, updates: dict[str, Any]
    ) -> bool:
        doc = self._collection(collection).get(document_id)
        if doc is None:
            return False
        doc.update({k: v for k, v in updates.items() if k != "id"})
        return True

    async def update_many(
        self, collection: str, filters: dict[str, Any], updates: dict[str, Any]
    ) -> int:
        modified = 0
        for doc in self._collection(collection).values():
            if _matches(doc, filters):
                doc.update(updates)
                modified += 1
        return modified

    async def compare_and_set(
        self,
        collection: str,
        document_id: str,
        expected: dict[str, Any],
        updates: dict[str, Any],
    ) -> bool:
        doc = self._collection(collection).get(document_id)
        if doc is None or not _matches(doc, expected):
            return False
        doc.update(updates)
        return True

    async def delete(self, collection: str, document_id: str) -> bool:
        return self._collection(collection).pop(document_id, None) is not None

    async def count(self, collection: str, filters: dict[str, Any] | None = None) -> int:
        return len(await self.find(collection, filters or {}, limit=10**9))

    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        index_name = name or "_".join(field for field, _ in fields)
        self.indexes.setdefault(collection, []).append(index_name)
        return index_name

    async def health_check(self) -> HealthStatus:
        return HealthStatus(healthy=True, latency_ms=0.1, message="in-memory")


class InMemoryBlobStorage(BlobStorageBase):
    """Dict-backed blob storage."""

    def __init__(self) -> None:
        self.buckets: set[str] = set()
        self.objects: dict[tuple[str, str], tuple[bytes, str, datetime]] = {}
        self.fail_uploads = False
        self.fail_deletes = False

    async def upload(
        self,
        bucket: str,
        path: str,
        data: BinaryIO | bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> BlobMetadata:
        if self.fail_uploads:
            raise BlobStorageError("AccessDenied: write refused")
        content = data if isinstance(data, bytes) else data.read()
        created_at = datetime.now(UTC)
        self.objects[(bucket, path)] = (content, content_type, created_at)
        return BlobMetadata(
            path=path,
            size_bytes=len(content),
            content_type=content_type,
            created_at=created_at,
            etag="etag",
        )

    async def download(self, bucket: str, path: str) -> bytes:
        if (bucket, path) not in self.objects:
            raise BlobNotFoundError(bucket, path)
        return self.objects[(bucket, path)][0]

    async def download_stream(
        self,
        bucket: str,
        path: str,
        chunk_size: int = 64 * 1024,
    ) -> AsyncIterator[bytes]:
        content = await self.download(bucket, path)
        for start in range(0, len(content), chunk_size):
            yield content[start : start + chunk_size]

    async def delete(self, bucket: str, path: str) -> bool:
        if self.fail_deletes:
            raise BlobStorageError("InternalError: delete failed")
        return self.objects.pop((bucket, path), None) is not None

    async def exists(self, bucket: str, path: str) -> bool:
        return (bucket, path) in self.objects

    async def get_metadata(self, bucket: str, path: str) -> BlobMetadata:
        if (bucket, path) not in self.objects:
            raise BlobNotFoundError(bucket, path)
        content, content_type, created_at = self.objects[(bucket, path)]
        return BlobMetadata(
            path=path,
            size_bytes=len(content),
            content_type=content_type,
            created_at=created_at,
            etag="etag",
        )

    async def list_blobs(
        self,
        bucket: str,
        prefix: str = "",
        max_results: int = 1000,
    ) -> list[BlobMetadata]:
        paths = sorted(p for b, p in self.objects if b == bucket and p.startswith(prefix))
        return [await self.get_metadata(bucket, p) for p in paths[:max_results]]

    async def create_bucket(self, bucket: str) -> bool:
        if bucket in self.buckets:
            return False
        self.buckets.add(bucket)
        return True

    async def bucket_exists(self, bucket: str) -> bool:
        return bucket in self.buckets

    async def health_check(self) -> HealthStatus:
        return HealthStatus(healthy=True, latency_ms=0.1, message="in-memory")


def _make_verdict(
    video_id: str = "yt-video-1",
    *,
    licensed: bool = False,
    blocked: int = 0,
    state: ProcessingState = ProcessingState.PROCESSED,
    reason: str | None = None,
    conflict: bool = False,
) -> PlatformVerdict:
    """Build a platform verdict, approved unless told otherwise."""
    return PlatformVerdict(
        video_id=video_id,
        licensed_content=licensed,
        blocked_region_count=blocked,
        processing_state=state,
        rejection_reason=reason,
        rights_conflict=conflict,
    )


class FakeVideoPlatform(VideoPlatformBase):
    """Scriptable video platform.

    ``verdicts`` is consumed in order; each entry is a verdict to return or
    an exception to raise. When empty, an approved verdict is returned.
    """

    def __init__(self) -> None:
        self.video_id = "yt-video-1"
        self.upload_error: Exception | None = None
        self.upload_gate: asyncio.Event | None = None
        self.verdicts: list[PlatformVerdict | Exception] = []
        self.uploads: list[dict[str, Any]] = []
        self.verdict_calls: list[str] = []

    async def upload(
        self,
        data: bytes,
        mime_type: str,
        title: str,
        description: str,
    ) -> PlatformUpload:
        self.uploads.append(
            {"size": len(data), "mime_type": mime_type, "title": title, "description": description}
        )
        if self.upload_gate is not None:
            await self.upload_gate.wait()
        if self.upload_error is not None:
            raise self.upload_error
        return PlatformUpload(video_id=self.video_id)

    async def get_verdict(self, video_id: str) -> PlatformVerdict:
        self.verdict_calls.append(video_id)
        if not self.verdicts:
            return _make_verdict(video_id)
        result = self.verdicts.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    async def health_check(self) -> HealthStatus:
        return HealthStatus(healthy=True, latency_ms=0.1, message="fake")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def document_db():
    """In-memory document database."""
    return InMemoryDocumentDB()


@pytest.fixture
def blob_storage():
    """In-memory blob storage with the upload bucket created."""
    storage = InMemoryBlobStorage()
    storage.buckets.add("festival-videos")
    return storage


@pytest.fixture
def platform():
    """Scriptable video platform."""
    return FakeVideoPlatform()


@pytest.fixture
def blob_settings():
    """Object storage settings with a fixed public URL."""
    return BlobStorageSettings(
        bucket="festival-videos",
        folder="uploads",
        public_base_url="https://cdn.example.test",
    )


@pytest.fixture
def verification_settings():
    """Verification settings without the production delay."""
    return VerificationSettings(delay_seconds=0)


@pytest.fixture
def ingestion_settings():
    """Default ingestion settings."""
    return IngestionSettings()


@pytest.fixture
def platform_settings():
    """Default platform settings."""
    return VideoPlatformSettings()


@pytest.fixture
def upload_repository(document_db):
    """Upload record repository over the in-memory database."""
    return UploadRecordRepository(document_db, "video_uploads")


@pytest.fixture
def notification_repository(document_db):
    """Notification repository over the in-memory database."""
    return NotificationRepository(document_db, "notifications")


@pytest.fixture
def notification_service(notification_repository):
    """Notification service."""
    return NotificationService(notification_repository)


@pytest.fixture
def object_store(blob_storage, blob_settings):
    """Video object store over the in-memory blob storage."""
    return VideoObjectStore(blob_storage, blob_settings)


@pytest.fixture
def pipeline(
    upload_repository,
    object_store,
    platform,
    notification_service,
    verification_settings,
    platform_settings,
):
    """Verification pipeline with a single attempt and no delay."""
    return VerificationPipeline(
        uploads=upload_repository,
        object_store=object_store,
        platform=platform,
        notifications=notification_service,
        policy=SingleAttemptPolicy(initial_delay_seconds=0),
        verification_settings=verification_settings,
        platform_settings=platform_settings,
    )


@pytest.fixture
def stored_upload(upload_repository, object_store):
    """Store a video object and its PENDING record, as the ingestion boundary does."""

    async def _create(
        data: bytes = b"fake mp4 bytes",
        *,
        owner_user_id: str | None = "user-1",
        **fields: Any,
    ) -> UploadRecord:
        stored = await object_store.put(data, "video/mp4", ".mp4")
        record = UploadRecord(
            owner_user_id=owner_user_id,
            filename="film.mp4",
            title="Festival Film",
            storage_key=stored.key,
            storage_url=stored.url,
            file_size=stored.size,
            content_type="video/mp4",
            **fields,
        )
        await upload_repository.insert(record)
        return record

    return _create
