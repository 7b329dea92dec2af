"""Notification domain model."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    """Kind of user-facing notification."""

    FILM_VALIDATED = "FILM_VALIDATED"
    FILM_REJECTED = "FILM_REJECTED"
    OFFICIAL_SELECTION = "OFFICIAL_SELECTION"
    EVENT_REMINDER = "EVENT_REMINDER"
    VIDEO_UPLOAD_APPROVED = "VIDEO_UPLOAD_APPROVED"
    VIDEO_UPLOAD_REJECTED = "VIDEO_UPLOAD_REJECTED"
    VIDEO_UPLOAD_FAILED = "VIDEO_UPLOAD_FAILED"


class NotificationRecord(BaseModel):
    """A message addressed to one user, shown in the notification centre."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str = Field(description="Recipient")
    type: NotificationType
    title: str
    message: str
    related_id: str | None = Field(
        default=None,
        description="Id of the entity the notification is about",
    )
    read: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_document(self) -> dict[str, Any]:
        """Serialize for the document database."""
        return self.model_dump(mode="json")
