"""Video object storage on top of the blob storage provider."""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime
from pathlib import PurePosixPath
from uuid import uuid4

from src.commons.infrastructure.blob.base import BlobNotFoundError, BlobStorageBase
from src.commons.settings.models import BlobStorageSettings
from src.commons.telemetry import get_logger, timed
from src.domain.exceptions import StorageException, StoredObjectNotFoundException

_EXTENSIONS_BY_MIME = {
    "video/mp4": ".mp4",
    "video/quicktime": ".mov",
    "video/x-msvideo": ".avi",
    "video/webm": ".webm",
}

_MAX_KEY_ATTEMPTS = 3


@dataclass
class StoredObject:
    """Reference to a freshly written object."""

    key: str
    url: str
    size: int


@dataclass
class StoredObjectInfo:
    """Listing entry for a stored object."""

    key: str
    size: int
    last_modified: datetime
    url: str


@dataclass
class StoredObjectStream:
    """Streamed object content with its metadata."""

    chunks: AsyncIterator[bytes]
    content_type: str
    length: int


def extension_for(filename: str | None, content_type: str) -> str:
    """Pick a lower-cased, dot-prefixed extension for an upload."""
    if filename:
        suffix = PurePosixPath(filename).suffix.lower()
        if suffix:
            return suffix
    return _EXTENSIONS_BY_MIME.get(content_type, "")


class VideoObjectStore:
    """Stores uploaded videos in a single bucket under a fixed folder.

    Keys are ``{folder}/{uuid4}{ext}``; an existing key is never
    overwritten.
    """

    def __init__(self, blob_storage: BlobStorageBase, settings: BlobStorageSettings) -> None:
        """Initialize the object store.

        Args:
            blob_storage: Blob storage provider.
            settings: Bucket, folder and public URL configuration.
        """
        self._blob = blob_storage
        self._bucket = settings.bucket
        self._folder = settings.folder.strip("/")
        scheme = "https" if settings.use_ssl else "http"
        base = settings.public_base_url or f"{scheme}://{settings.endpoint}"
        self._public_base_url = base.rstrip("/")
        self._logger = get_logger(__name__)

    @property
    def bucket(self) -> str:
        """Bucket holding the videos."""
        return self._bucket

    def url_for(self, key: str) -> str:
        """Public URL of an object."""
        return f"{self._public_base_url}/{self._bucket}/{key}"

    def _new_key(self, extension: str) -> str:
        return f"{self._folder}/{uuid4()}{extension}"

    async def ensure_bucket(self) -> None:
        """Create the bucket if it does not exist yet."""
        if not await self._blob.bucket_exists(self._bucket):
            await self._blob.create_bucket(self._bucket)
            self._logger.info("Created bucket", extra={"bucket": self._bucket})

    @timed(threshold_ms=500)
    async def put(self, data: bytes, content_type: str, extension: str) -> StoredObject:
        """Write bytes under a new unique key.

        Args:
            data: Object content.
            content_type: MIME type stored with the object.
            extension: Dot-prefixed extension appended to the key.

        Returns:
            Key, public URL and size of the stored object.

        Raises:
            StorageException: If the provider fails.
        """
        extension = extension.lower()
        try:
            key = self._new_key(extension)
            attempts = 1
            while await self._blob.exists(self._bucket, key):
                if attempts >= _MAX_KEY_ATTEMPTS:
                    raise StorageException("put", "could not allocate a unique key")
                key = self._new_key(extension)
                attempts += 1

            await self._blob.upload(
                self._bucket,
                key,
                data,
                content_type=content_type,
            )
        except StorageException:
            raise
        except Exception as e:
            self._logger.error(
                "Object storage write failed",
                exc_info=True,
                extra={"bucket": self._bucket},
            )
            raise StorageException("put", str(e)) from e

        self._logger.info(
            "Stored video object",
            extra={"storage_key": key, "size_bytes": len(data)},
        )
        return StoredObject(key=key, url=self.url_for(key), size=len(data))

    async def get(self, key: str) -> StoredObjectStream:
        """Open an object for streaming.

        Raises:
            StoredObjectNotFoundException: If the key does not exist.
        """
        try:
            metadata = await self._blob.get_metadata(self._bucket, key)
        except BlobNotFoundError as e:
            raise StoredObjectNotFoundException(key) from e

        return StoredObjectStream(
            chunks=self._blob.download_stream(self._bucket, key),
            content_type=metadata.content_type,
            length=metadata.size_bytes,
        )

    async def read_bytes(self, key: str) -> bytes:
        """Read a whole object into memory.

        Raises:
            StoredObjectNotFoundException: If the key does not exist.
        """
        try:
            return await self._blob.download(self._bucket, key)
        except BlobNotFoundError as e:
            raise StoredObjectNotFoundException(key) from e

    async def delete(self, key: str) -> bool:
        """Delete an object. Idempotent.

        Provider failures are logged and reported as False; callers use this
        for compensation and must not fail because of it.

        Returns:
            True if the object existed and was removed.
        """
        try:
            deleted = await self._blob.delete(self._bucket, key)
        except Exception:
            self._logger.warning(
                "Failed to delete stored object",
                exc_info=True,
                extra={"storage_key": key},
            )
            return False

        if not deleted:
            self._logger.info(
                "Stored object already absent",
                extra={"storage_key": key},
            )
        return deleted

    async def list(self, prefix: str | None = None) -> list[StoredObjectInfo]:
        """List objects under a prefix, by default the upload folder."""
        blobs = await self._blob.list_blobs(
            self._bucket,
            prefix=prefix if prefix is not None else f"{self._folder}/",
        )
        return [
            StoredObjectInfo(
                key=blob.path,
                size=blob.size_bytes,
                last_modified=blob.created_at,
                url=self.url_for(blob.path),
            )
            for blob in blobs
        ]
