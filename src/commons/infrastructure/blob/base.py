"""Abstract base class for blob storage operations."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO


@dataclass
class BlobMetadata:
    """Metadata for a stored blob."""

    path: str
    size_bytes: int
    content_type: str
    created_at: datetime
    etag: str


@dataclass
class HealthStatus:
    """Health check result."""

    healthy: bool
    latency_ms: float
    message: str | None = None
    details: dict[str, str] | None = None


class BlobNotFoundError(Exception):
    """Raised when a blob is not found."""

    def __init__(self, bucket: str, path: str) -> None:
        self.bucket = bucket
        self.path = path
        super().__init__(f"Blob not found: {bucket}/{path}")


class BlobStorageError(Exception):
    """Raised when the storage backend fails for a reason other than a missing blob."""


class BlobStorageBase(ABC):
    """Abstract base class for blob storage operations.

    Implementations should handle:
    - MinIO (local development)
    - S3-compatible object stores (AWS S3, Scaleway)
    """

    @abstractmethod
    async def upload(
        self,
        bucket: str,
        path: str,
        data: BinaryIO | bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> BlobMetadata:
        """Upload a blob to storage.

        Args:
            bucket: Target bucket name.
            path: Path within the bucket.
            data: File-like object or bytes to upload.
            content_type: MIME type of the content.
            metadata: Optional key-value metadata.

        Returns:
            Metadata of the uploaded blob.

        Raises:
            BlobStorageError: If the backend rejects the write.
        """

    @abstractmethod
    async def download(self, bucket: str, path: str) -> bytes:
        """Download a blob from storage.

        Raises:
            BlobNotFoundError: If blob doesn't exist.
        """

    @abstractmethod
    def download_stream(
        self,
        bucket: str,
        path: str,
        chunk_size: int = 64 * 1024,
    ) -> AsyncIterator[bytes]:
        """Stream download a blob in chunks.

        Args:
            bucket: Source bucket name.
            path: Path within the bucket.
            chunk_size: Size of each chunk in bytes.

        Yields:
            Chunks of blob content.
        """
        ...

    @abstractmethod
    async def delete(self, bucket: str, path: str) -> bool:
        """Delete a blob from storage.

        Returns:
            True if deleted, False if didn't exist.
        """

    @abstractmethod
    async def exists(self, bucket: str, path: str) -> bool:
        """Check if a blob exists."""

    @abstractmethod
    async def get_metadata(self, bucket: str, path: str) -> BlobMetadata:
        """Get blob metadata without downloading.

        Raises:
            BlobNotFoundError: If blob doesn't exist.
        """

    @abstractmethod
    async def list_blobs(
        self,
        bucket: str,
        prefix: str = "",
        max_results: int = 1000,
    ) -> list[BlobMetadata]:
        """List blobs with optional prefix filter.

        Args:
            bucket: Bucket name.
            prefix: Filter by path prefix.
            max_results: Maximum number of results.

        Returns:
            List of blob metadata.
        """

    @abstractmethod
    async def create_bucket(self, bucket: str) -> bool:
        """Create a new bucket.

        Returns:
            True if created, False if already exists.
        """

    @abstractmethod
    async def bucket_exists(self, bucket: str) -> bool:
        """Check if a bucket exists."""

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health.

        Returns:
            Health status with latency info.
        """
