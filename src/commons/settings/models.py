"""Pydantic settings models for application configuration."""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseModel):
    """Application-level settings."""

    name: str = "festival-video-ingest"
    version: str = "0.1.0"
    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class ServerSettings(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    workers: int = Field(default=1, ge=1, le=32)
    reload: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    api_prefix: str = "/api"
    docs_enabled: bool = True


class BlobStorageSettings(BaseModel):
    """Object storage settings (MinIO/S3-compatible)."""

    provider: Literal["minio", "s3"] = "minio"
    endpoint: str = "localhost:9000"
    access_key: str = ""
    secret_key: str = ""
    use_ssl: bool = False
    region: str = "fr-par"
    bucket: str = "festival-videos"
    folder: str = "uploads"
    public_base_url: str | None = None


class DocumentCollectionSettings(BaseModel):
    """Document DB collection names."""

    uploads: str = "video_uploads"
    notifications: str = "notifications"


class DocumentDBSettings(BaseModel):
    """Document database settings (MongoDB)."""

    provider: Literal["mongodb"] = "mongodb"
    host: str = "localhost"
    port: int = 27017
    username: str = ""
    password: str = ""
    database: str = "festival"
    auth_source: str = "admin"
    collections: DocumentCollectionSettings = Field(
        default_factory=DocumentCollectionSettings
    )


class VideoPlatformSettings(BaseModel):
    """External video platform settings (YouTube Data API v3)."""

    provider: Literal["youtube"] = "youtube"
    client_id: str = ""
    client_secret: str = ""
    refresh_token: str = ""
    token_uri: str = "https://oauth2.googleapis.com/token"
    api_key: str = ""
    api_base_url: str = "https://www.googleapis.com/youtube/v3"
    privacy_status: Literal["unlisted", "private"] = "unlisted"
    description: str = "Video uploaded for copyright verification"
    upload_chunk_size: int = Field(default=8 * 1024 * 1024, ge=256 * 1024)
    timeout_seconds: float = Field(default=60.0, gt=0)


class VerificationSettings(BaseModel):
    """Copyright verification policy settings."""

    delay_seconds: float = Field(default=240.0, ge=0)
    blocked_region_threshold: int = Field(default=50, ge=0)
    retry_policy: Literal["single_attempt", "bounded_retry"] = "single_attempt"
    max_attempts: int = Field(default=3, ge=1, le=20)
    retry_interval_seconds: float = Field(default=300.0, ge=0)
    stale_claim_seconds: int = Field(default=3600, ge=60)
    recover_on_startup: bool = True


class IngestionSettings(BaseModel):
    """Upload acceptance settings."""

    mode: Literal["storage_first", "platform_first"] = "storage_first"
    max_upload_size_mb: int = Field(default=500, ge=1)
    allowed_mime_types: list[str] = Field(
        default_factory=lambda: [
            "video/mp4",
            "video/quicktime",
            "video/x-msvideo",
            "video/webm",
        ]
    )
    reject_duplicates: bool = True


class TelemetrySettings(BaseModel):
    """Telemetry and logging settings."""

    enabled: bool = True
    log_format: Literal["json", "text"] = "json"
    log_level: str = "INFO"


class Settings(BaseSettings):
    """Root settings container with environment loading."""

    app: AppSettings = Field(default_factory=AppSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    blob_storage: BlobStorageSettings = Field(default_factory=BlobStorageSettings)
    document_db: DocumentDBSettings = Field(default_factory=DocumentDBSettings)
    video_platform: VideoPlatformSettings = Field(
        default_factory=VideoPlatformSettings
    )
    verification: VerificationSettings = Field(default_factory=VerificationSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FESTIVAL_INGEST__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
