"""MinIO implementation of blob storage."""

import asyncio
import io
import time
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from typing import BinaryIO

from minio import Minio
from minio.error import S3Error

from src.commons.infrastructure.blob.base import (
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBase,
    BlobStorageError,
    HealthStatus,
)

_MISSING_CODES = frozenset({"NoSuchKey", "NoSuchObject", "NoSuchBucket"})


def _translate(error: S3Error, bucket: str, path: str) -> Exception:
    if error.code in _MISSING_CODES:
        return BlobNotFoundError(bucket, path)
    return BlobStorageError(f"{error.code}: {error.message}")


class MinioBlobStorage(BlobStorageBase):
    """MinIO implementation of blob storage.

    Works with MinIO locally and with any S3-compatible provider
    (AWS S3, Scaleway Object Storage) in production. The minio client is
    blocking, so every call runs in the default executor.
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        secure: bool = False,
        region: str | None = None,
    ) -> None:
        """Initialize MinIO client.

        Args:
            endpoint: MinIO/S3 endpoint host (e.g., "s3.fr-par.scw.cloud").
            access_key: Access key ID.
            secret_key: Secret access key.
            secure: Use HTTPS connection.
            region: Region name (optional).
        """
        self._client = Minio(
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
            region=region,
        )
        self._endpoint = endpoint

    async def upload(
        self,
        bucket: str,
        path: str,
        data: BinaryIO | bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> BlobMetadata:
        """Upload a blob to storage."""
        loop = asyncio.get_running_loop()

        if isinstance(data, bytes):
            data_io: BinaryIO = io.BytesIO(data)
            length = len(data)
        else:
            data.seek(0, io.SEEK_END)
            length = data.tell()
            data.seek(0)
            data_io = data

        def _upload() -> None:
            try:
                self._client.put_object(
                    bucket_name=bucket,
                    object_name=path,
                    data=data_io,
                    length=length,
                    content_type=content_type,
                    metadata=metadata,
                )
            except S3Error as e:
                raise _translate(e, bucket, path) from e

        await loop.run_in_executor(None, _upload)
        return BlobMetadata(
            path=path,
            size_bytes=length,
            content_type=content_type,
            created_at=datetime.now(UTC),
            etag="",
        )

    async def download(self, bucket: str, path: str) -> bytes:
        """Download a blob from storage."""
        loop = asyncio.get_running_loop()

        def _download() -> bytes:
            try:
                response = self._client.get_object(bucket, path)
            except S3Error as e:
                raise _translate(e, bucket, path) from e
            try:
                data: bytes = response.read()
                return data
            finally:
                response.close()
                response.release_conn()

        return await loop.run_in_executor(None, _download)

    async def download_stream(  # type: ignore[override]
        self,
        bucket: str,
        path: str,
        chunk_size: int = 64 * 1024,
    ) -> AsyncIterator[bytes]:
        """Stream download a blob in chunks."""
        loop = asyncio.get_running_loop()

        try:
            response = await loop.run_in_executor(
                None, self._client.get_object, bucket, path
            )
        except S3Error as e:
            raise _translate(e, bucket, path) from e

        try:
            while True:
                chunk: bytes = await loop.run_in_executor(
                    None, response.read, chunk_size
                )
                if not chunk:
                    break
                yield chunk
        finally:
            response.close()
            response.release_conn()

    async def delete(self, bucket: str, path: str) -> bool:
        """Delete a blob from storage."""
        if not await self.exists(bucket, path):
            return False

        loop = asyncio.get_running_loop()

        def _delete() -> None:
            try:
                self._client.remove_object(bucket, path)
            except S3Error as e:
                raise _translate(e, bucket, path) from e

        await loop.run_in_executor(None, _delete)
        return True

    async def exists(self, bucket: str, path: str) -> bool:
        """Check if a blob exists."""
        try:
            await self.get_metadata(bucket, path)
        except BlobNotFoundError:
            return False
        return True

    async def get_metadata(self, bucket: str, path: str) -> BlobMetadata:
        """Get blob metadata without downloading."""
        loop = asyncio.get_running_loop()

        def _stat() -> BlobMetadata:
            try:
                stat = self._client.stat_object(bucket, path)
            except S3Error as e:
                raise _translate(e, bucket, path) from e
            return BlobMetadata(
                path=path,
                size_bytes=stat.size or 0,
                content_type=stat.content_type or "application/octet-stream",
                created_at=stat.last_modified or datetime.now(UTC),
                etag=stat.etag or "",
            )

        return await loop.run_in_executor(None, _stat)

    async def list_blobs(
        self,
        bucket: str,
        prefix: str = "",
        max_results: int = 1000,
    ) -> list[BlobMetadata]:
        """List blobs with optional prefix filter."""
        loop = asyncio.get_running_loop()

        def _list() -> list[BlobMetadata]:
            results: list[BlobMetadata] = []
            try:
                objects = self._client.list_objects(
                    bucket_name=bucket,
                    prefix=prefix,
                    recursive=True,
                )
                for obj in objects:
                    if len(results) >= max_results:
                        break
                    results.append(
                        BlobMetadata(
                            path=obj.object_name or "",
                            size_bytes=obj.size or 0,
                            content_type="application/octet-stream",
                            created_at=obj.last_modified or datetime.now(UTC),
                            etag=obj.etag or "",
                        )
                    )
            except S3Error as e:
                raise _translate(e, bucket, prefix) from e
            return results

        return await loop.run_in_executor(None, _list)

    async def create_bucket(self, bucket: str) -> bool:
        """Create a new bucket."""
        loop = asyncio.get_running_loop()

        def _create() -> bool:
            if self._client.bucket_exists(bucket):
                return False
            self._client.make_bucket(bucket)
            return True

        return await loop.run_in_executor(None, _create)

    async def bucket_exists(self, bucket: str) -> bool:
        """Check if a bucket exists."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._client.bucket_exists, bucket)

    async def health_check(self) -> HealthStatus:
        """Check service health."""
        start = time.perf_counter()
        try:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._client.list_buckets)
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=True,
                latency_ms=latency_ms,
                message="Object storage is healthy",
                details={"endpoint": self._endpoint},
            )
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"Object storage health check failed: {e}",
                details={"endpoint": self._endpoint, "error": str(e)},
            )
