"""Abstract base class for document database operations."""

from abc import ABC, abstractmethod
from typing import Any

from src.commons.infrastructure.blob.base import HealthStatus


class DocumentDBBase(ABC):
    """Abstract base class for document database operations.

    Documents are plain dicts. The domain ``id`` field is the primary key;
    implementations map it onto their native identifier and restore it
    on every read.
    """

    @abstractmethod
    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        """Insert a document.

        Args:
            collection: Collection name.
            document: Document to insert. Its ``id`` becomes the primary key.

        Returns:
            The document ID.
        """

    @abstractmethod
    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Find a document by ID.

        Returns:
            Document if found, None otherwise.
        """

    @abstractmethod
    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        """Find documents matching filters.

        Args:
            collection: Collection name.
            filters: Equality filters; a value may be ``{"$in": [...]}``.
            skip: Number of documents to skip.
            limit: Maximum documents to return.
            sort: Sort specification [(field, direction)].
                  Direction: 1 for ascending, -1 for descending.

        Returns:
            List of matching documents.
        """

    @abstractmethod
    async def find_one(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Find a single document matching filters."""

    @abstractmethod
    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
    ) -> bool:
        """Set fields on a document.

        Returns:
            True if the document exists, False otherwise.
        """

    @abstractmethod
    async def update_many(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
    ) -> int:
        """Set fields on every document matching filters.

        Returns:
            Count of modified documents.
        """

    @abstractmethod
    async def compare_and_set(
        self,
        collection: str,
        document_id: str,
        expected: dict[str, Any],
        updates: dict[str, Any],
    ) -> bool:
        """Atomically set fields only if the current values match ``expected``.

        Used for exclusive claims: two concurrent callers observing the
        same ``expected`` values cannot both succeed.

        Args:
            collection: Collection name.
            document_id: Document ID to update.
            expected: Field values the document must currently hold.
                A ``None`` value matches a missing or null field.
            updates: Fields to set when the match succeeds.

        Returns:
            True if this call applied the update.
        """

    @abstractmethod
    async def delete(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        """Delete a document.

        Returns:
            True if deleted, False if not found.
        """

    @abstractmethod
    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        """Count documents matching filters."""

    @abstractmethod
    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        """Create an index on the collection.

        Args:
            collection: Collection name.
            fields: Index fields [(field, direction)].
            unique: Whether index should be unique.
            name: Optional index name.

        Returns:
            Index name.
        """

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health."""

    async def close(self) -> None:
        """Release client resources. No-op by default."""
        return None
