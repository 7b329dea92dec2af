"""Unit tests for Application DTOs."""

from datetime import UTC, datetime

from src.application.dtos.ingestion import (
    UploadAccepted,
    UploadStatusResponse,
)
from src.application.dtos.notifications import NotificationResponse
from src.domain.models.notification import NotificationRecord, NotificationType
from src.domain.models.upload import UploadRecord, VerificationStatus


class TestUploadAccepted:
    """Tests for UploadAccepted DTO."""

    def test_serializes_front_end_names(self):
        """Test that the wire format uses the front end's field names."""
        accepted = UploadAccepted(
            id="upload-1",
            storage_url="https://cdn.example.test/festival-videos/uploads/a.mp4",
            storage_key="uploads/a.mp4",
        )

        data = accepted.model_dump(by_alias=True, mode="json")

        assert data == {
            "id": "upload-1",
            "s3Url": "https://cdn.example.test/festival-videos/uploads/a.mp4",
            "key": "uploads/a.mp4",
            "copyrightStatus": "PENDING",
        }

    def test_python_names_without_alias(self):
        """Test that internal dumps keep the field names."""
        accepted = UploadAccepted(id="u", storage_url="s", storage_key="k")
        assert "storage_key" in accepted.model_dump()


class TestUploadStatusResponse:
    """Tests for UploadStatusResponse DTO."""

    def test_from_record(self):
        """Test projecting a rejected record."""
        detected = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)
        record = UploadRecord(
            filename="film.mp4",
            title="Festival Film",
            storage_key="uploads/a.mp4",
            storage_url="u",
            file_size=42,
            content_hash="a" * 64,
            platform_video_id="yt-1",
            verification_status=VerificationStatus.REJECTED,
            verification_attempts=1,
            copyright_detected_at=detected,
            failure_reason="Licensed content detected",
        )

        response = UploadStatusResponse.from_record(record)

        assert response.id == record.id
        assert response.status == VerificationStatus.REJECTED
        assert response.title == "Festival Film"
        assert response.platform_video_id == "yt-1"
        assert response.copyright_detected_at == detected
        assert response.failure_reason == "Licensed content detected"


class TestNotificationResponse:
    """Tests for NotificationResponse DTO."""

    def test_from_record(self):
        record = NotificationRecord(
            user_id="user-1",
            type=NotificationType.VIDEO_UPLOAD_FAILED,
            title="Verification failed",
            message="We could not verify your video",
            related_id="upload-1",
        )

        response = NotificationResponse.from_record(record)

        assert response.type == NotificationType.VIDEO_UPLOAD_FAILED
        assert response.related_id == "upload-1"
        assert response.read is False
