"""MongoDB implementation of document database."""

import time
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from src.commons.infrastructure.blob.base import HealthStatus
from src.commons.infrastructure.documentdb.base import DocumentDBBase


def _to_mongo(document: dict[str, Any]) -> dict[str, Any]:
    doc = document.copy()
    if "id" in doc:
        doc["_id"] = doc.pop("id")
    return doc


def _from_mongo(document: dict[str, Any]) -> dict[str, Any]:
    doc = dict(document)
    doc["id"] = str(doc.pop("_id"))
    return doc


class MongoDBDocumentDB(DocumentDBBase):
    """MongoDB implementation of document database.

    Uses Motor for async operations. The domain model 'id' is stored as
    MongoDB's '_id' so lookups by id hit the primary index.
    """

    def __init__(
        self,
        connection_string: str,
        database_name: str,
        server_selection_timeout_ms: int = 5000,
    ) -> None:
        """Initialize MongoDB client.

        Args:
            connection_string: MongoDB connection URI.
            database_name: Name of the database to use.
            server_selection_timeout_ms: How long to wait for a reachable server.
        """
        self._client: AsyncIOMotorClient[dict[str, Any]] = AsyncIOMotorClient(
            connection_string,
            serverSelectionTimeoutMS=server_selection_timeout_ms,
            tz_aware=True,
        )
        self._db: AsyncIOMotorDatabase[dict[str, Any]] = self._client[database_name]
        self._database_name = database_name

    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        """Insert a document."""
        result = await self._db[collection].insert_one(_to_mongo(document))
        return str(result.inserted_id)

    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Find a document by ID."""
        doc = await self._db[collection].find_one({"_id": document_id})
        return _from_mongo(doc) if doc else None

    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        """Find documents matching filters."""
        cursor = self._db[collection].find(_to_mongo(filters))

        if sort:
            cursor = cursor.sort(sort)

        cursor = cursor.skip(skip).limit(limit)
        return [_from_mongo(doc) async for doc in cursor]

    async def find_one(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Find a single document matching filters."""
        doc = await self._db[collection].find_one(_to_mongo(filters))
        return _from_mongo(doc) if doc else None

    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
    ) -> bool:
        """Set fields on a document."""
        update_doc = {k: v for k, v in updates.items() if k != "id"}
        result = await self._db[collection].update_one(
            {"_id": document_id},
            {"$set": update_doc},
        )
        return bool(result.matched_count > 0)

    async def update_many(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
    ) -> int:
        """Set fields on every document matching filters."""
        result = await self._db[collection].update_many(
            _to_mongo(filters),
            {"$set": updates},
        )
        return int(result.modified_count)

    async def compare_and_set(
        self,
        collection: str,
        document_id: str,
        expected: dict[str, Any],
        updates: dict[str, Any],
    ) -> bool:
        """Atomically set fields only if the current values match ``expected``.

        MongoDB applies ``update_one`` atomically per document, so the filter
        and the ``$set`` cannot interleave with another writer.
        """
        query: dict[str, Any] = {"_id": document_id}
        query.update(expected)
        result = await self._db[collection].update_one(query, {"$set": updates})
        return bool(result.modified_count > 0)

    async def delete(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        """Delete a document."""
        result = await self._db[collection].delete_one({"_id": document_id})
        return bool(result.deleted_count > 0)

    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        """Count documents matching filters."""
        if filters:
            count = await self._db[collection].count_documents(_to_mongo(filters))
            return int(count)
        count = await self._db[collection].estimated_document_count()
        return int(count)

    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        """Create an index on the collection."""
        kwargs: dict[str, Any] = {"unique": unique}
        if name:
            kwargs["name"] = name
        index_name = await self._db[collection].create_index(fields, **kwargs)
        return str(index_name)

    async def health_check(self) -> HealthStatus:
        """Check service health."""
        start = time.perf_counter()
        try:
            await self._client.admin.command("ping")
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=True,
                latency_ms=latency_ms,
                message="MongoDB is healthy",
                details={"database": self._database_name},
            )
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"MongoDB health check failed: {e}",
                details={"database": self._database_name, "error": str(e)},
            )

    async def close(self) -> None:
        """Close the client connection."""
        self._client.close()
