"""Infrastructure factory for creating service instances from configuration."""

from typing import Any, cast

from src.commons.infrastructure.blob import BlobStorageBase, MinioBlobStorage
from src.commons.infrastructure.documentdb import DocumentDBBase, MongoDBDocumentDB
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger
from src.infrastructure.repositories import (
    NotificationRepository,
    UploadRecordRepository,
)
from src.infrastructure.video_platform import VideoPlatformBase, YouTubePlatformClient


class InfrastructureFactory:
    """Factory for creating infrastructure service instances.

    Creates concrete implementations based on configuration settings and
    caches one instance of each for the lifetime of the application.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize factory with settings.

        Args:
            settings: Application settings.
        """
        self._settings = settings
        self._instances: dict[str, Any] = {}
        self._logger = get_logger(__name__)

    @property
    def settings(self) -> Settings:
        """Settings the factory was built with."""
        return self._settings

    def get_blob_storage(self) -> BlobStorageBase:
        """Get blob storage instance.

        Returns:
            Configured blob storage provider.
        """
        if "blob_storage" not in self._instances:
            blob_settings = self._settings.blob_storage
            self._instances["blob_storage"] = MinioBlobStorage(
                endpoint=blob_settings.endpoint,
                access_key=blob_settings.access_key,
                secret_key=blob_settings.secret_key,
                secure=blob_settings.use_ssl,
                region=blob_settings.region,
            )
        return cast("BlobStorageBase", self._instances["blob_storage"])

    def get_document_db(self) -> DocumentDBBase:
        """Get document database instance.

        Returns:
            Configured document database provider.
        """
        if "document_db" not in self._instances:
            doc_settings = self._settings.document_db
            if doc_settings.username and doc_settings.password:
                connection_string = (
                    f"mongodb://{doc_settings.username}:{doc_settings.password}"
                    f"@{doc_settings.host}:{doc_settings.port}"
                    f"/?authSource={doc_settings.auth_source}"
                )
            else:
                connection_string = f"mongodb://{doc_settings.host}:{doc_settings.port}"
            self._instances["document_db"] = MongoDBDocumentDB(
                connection_string=connection_string,
                database_name=doc_settings.database,
            )
        return cast("DocumentDBBase", self._instances["document_db"])

    def get_video_platform(self) -> VideoPlatformBase:
        """Get video platform client instance.

        Returns:
            Configured video platform client.

        Raises:
            ValueError: If provider is not supported.
        """
        if "video_platform" not in self._instances:
            platform = self._settings.video_platform
            if platform.provider != "youtube":
                raise ValueError(f"Unsupported video platform: {platform.provider}")
            self._instances["video_platform"] = YouTubePlatformClient(
                client_id=platform.client_id,
                client_secret=platform.client_secret,
                refresh_token=platform.refresh_token,
                api_key=platform.api_key,
                token_uri=platform.token_uri,
                api_base_url=platform.api_base_url,
                privacy_status=platform.privacy_status,
                upload_chunk_size=platform.upload_chunk_size,
                timeout_seconds=platform.timeout_seconds,
            )
        return cast("VideoPlatformBase", self._instances["video_platform"])

    def get_upload_repository(self) -> UploadRecordRepository:
        """Get the upload record repository."""
        if "upload_repository" not in self._instances:
            self._instances["upload_repository"] = UploadRecordRepository(
                self.get_document_db(),
                self._settings.document_db.collections.uploads,
            )
        return cast("UploadRecordRepository", self._instances["upload_repository"])

    def get_notification_repository(self) -> NotificationRepository:
        """Get the notification repository."""
        if "notification_repository" not in self._instances:
            self._instances["notification_repository"] = NotificationRepository(
                self.get_document_db(),
                self._settings.document_db.collections.notifications,
            )
        return cast(
            "NotificationRepository", self._instances["notification_repository"]
        )

    async def close_all(self) -> None:
        """Close all service connections."""
        for name, instance in self._instances.items():
            close = getattr(instance, "close", None)
            if close is None:
                continue
            try:
                await close()
            except Exception:
                self._logger.warning(
                    "Failed to close infrastructure client",
                    exc_info=True,
                    extra={"client": name},
                )

        self._instances.clear()


class _FactoryHolder:
    """Holder for the factory singleton to avoid global statements."""

    instance: InfrastructureFactory | None = None


def get_factory(settings: Settings | None = None) -> InfrastructureFactory:
    """Get or create the infrastructure factory singleton.

    Args:
        settings: Settings to use. Required on first call.

    Returns:
        Infrastructure factory instance.

    Raises:
        ValueError: If settings not provided on first call.
    """
    if _FactoryHolder.instance is None:
        if settings is None:
            raise ValueError("Settings required to initialize factory")
        _FactoryHolder.instance = InfrastructureFactory(settings)

    return _FactoryHolder.instance


def reset_factory() -> None:
    """Reset the factory singleton (for testing)."""
    _FactoryHolder.instance = None
