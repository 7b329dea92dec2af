"""Persistence of NotificationRecord documents."""

from src.commons.infrastructure.documentdb.base import DocumentDBBase
from src.domain.models.notification import NotificationRecord


class NotificationRepository:
    """Stores user notifications in the document database."""

    def __init__(self, document_db: DocumentDBBase, collection: str) -> None:
        self._db = document_db
        self._collection = collection

    async def ensure_indexes(self) -> None:
        """Create the index backing per-user listings."""
        await self._db.create_index(
            self._collection,
            [("user_id", 1), ("read", 1), ("created_at", -1)],
            name="user_read_created",
        )

    async def insert(self, notification: NotificationRecord) -> str:
        """Persist a new notification."""
        return await self._db.insert(self._collection, notification.to_document())

    async def list_for_user(
        self,
        user_id: str,
        *,
        unread_only: bool = False,
        limit: int = 50,
    ) -> list[NotificationRecord]:
        """List a user's notifications, newest first."""
        filters: dict[str, object] = {"user_id": user_id}
        if unread_only:
            filters["read"] = False
        docs = await self._db.find(
            self._collection,
            filters,
            limit=limit,
            sort=[("created_at", -1)],
        )
        return [NotificationRecord.model_validate(doc) for doc in docs]

    async def list_for_related(self, related_id: str) -> list[NotificationRecord]:
        """List notifications about one entity, e.g. an upload."""
        docs = await self._db.find(self._collection, {"related_id": related_id})
        return [NotificationRecord.model_validate(doc) for doc in docs]

    async def count_unread(self, user_id: str) -> int:
        """Count a user's unread notifications."""
        return await self._db.count(
            self._collection, {"user_id": user_id, "read": False}
        )

    async def get_for_user(
        self, notification_id: str, user_id: str
    ) -> NotificationRecord | None:
        """Load a notification only if it belongs to ``user_id``."""
        doc = await self._db.find_one(
            self._collection, {"id": notification_id, "user_id": user_id}
        )
        return NotificationRecord.model_validate(doc) if doc else None

    async def mark_read(self, notification_id: str) -> bool:
        """Flag one notification as read."""
        return await self._db.update(
            self._collection, notification_id, {"read": True}
        )

    async def mark_all_read(self, user_id: str) -> int:
        """Flag all of a user's notifications as read."""
        return await self._db.update_many(
            self._collection,
            {"user_id": user_id, "read": False},
            {"read": True},
        )

    async def delete(self, notification_id: str) -> bool:
        """Delete one notification."""
        return await self._db.delete(self._collection, notification_id)
