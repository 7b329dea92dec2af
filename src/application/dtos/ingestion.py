"""DTOs for video upload and verification operations."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.domain.models.upload import UploadRecord, VerificationStatus


class UploadAccepted(BaseModel):
    """Response returned as soon as the video is safely stored.

    Field names on the wire follow the festival front end
    (``s3Url``, ``key``, ``copyrightStatus``).
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="Upload record id")
    storage_url: str = Field(serialization_alias="s3Url")
    storage_key: str = Field(serialization_alias="key")
    status: VerificationStatus = Field(
        default=VerificationStatus.PENDING,
        serialization_alias="copyrightStatus",
    )


class UploadStatusResponse(BaseModel):
    """Current verification state of one upload."""

    id: str
    filename: str
    title: str | None = None
    status: VerificationStatus
    storage_key: str
    storage_url: str
    file_size: int
    platform_video_id: str | None = None
    verification_attempts: int = 0
    last_verification_attempt_at: datetime | None = None
    copyright_detected_at: datetime | None = None
    failure_reason: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: UploadRecord) -> "UploadStatusResponse":
        """Project a domain record onto the API shape."""
        return cls(
            id=record.id,
            filename=record.filename,
            title=record.title,
            status=record.verification_status,
            storage_key=record.storage_key,
            storage_url=record.storage_url,
            file_size=record.file_size,
            platform_video_id=record.platform_video_id,
            verification_attempts=record.verification_attempts,
            last_verification_attempt_at=record.last_verification_attempt_at,
            copyright_detected_at=record.copyright_detected_at,
            failure_reason=record.failure_reason,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class RetryAccepted(BaseModel):
    """Response when a stuck upload is handed back to the pipeline."""

    id: str
    status: VerificationStatus
    scheduled: bool = Field(
        description="False if a verification run was already in progress"
    )


class StoredObjectResponse(BaseModel):
    """One object in the storage bucket."""

    key: str
    size: int
    last_modified: datetime
    url: str


class StoredObjectListResponse(BaseModel):
    """Listing of stored video objects."""

    objects: list[StoredObjectResponse]
    count: int


class DeleteObjectResponse(BaseModel):
    """Result of deleting a stored object."""

    key: str
    deleted: bool = True
