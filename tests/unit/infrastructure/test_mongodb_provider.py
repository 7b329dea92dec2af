"""Unit tests for MongoDB document database provider."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest


class TestMongoDBDocumentDB:
    """Tests for MongoDBDocumentDB provider.

    These tests verify the ID mapping behavior between domain model 'id'
    and MongoDB's '_id' field, and the conditional update used for claims.
    """

    @pytest.fixture
    def mock_motor_client(self):
        """Create a mock Motor client."""
        with patch(
            "src.commons.infrastructure.documentdb.mongodb_provider.AsyncIOMotorClient"
        ) as mock_client_class:
            mock_client = MagicMock()
            mock_db = MagicMock()
            mock_collection = MagicMock()

            mock_client.__getitem__ = MagicMock(return_value=mock_db)
            mock_db.__getitem__ = MagicMock(return_value=mock_collection)

            mock_client_class.return_value = mock_client

            yield {
                "client_class": mock_client_class,
                "client": mock_client,
                "db": mock_db,
                "collection": mock_collection,
            }

    @pytest.fixture
    def mongodb_provider(self, mock_motor_client):
        """Create MongoDB provider with mocked client."""
        from src.commons.infrastructure.documentdb.mongodb_provider import (
            MongoDBDocumentDB,
        )

        return MongoDBDocumentDB(
            connection_string="mongodb://localhost:27017",
            database_name="test_db",
        )

    def test_client_is_timezone_aware(self, mongodb_provider, mock_motor_client):
        """Test that the client is created with tz_aware and a selection timeout."""
        kwargs = mock_motor_client["client_class"].call_args.kwargs
        assert kwargs["tz_aware"] is True
        assert kwargs["serverSelectionTimeoutMS"] == 5000

    # =========================================================================
    # Insert Tests
    # =========================================================================

    async def test_insert_uses_id_as_mongodb_id(
        self, mongodb_provider, mock_motor_client
    ):
        """Test that insert uses document 'id' as MongoDB '_id'."""
        collection = mock_motor_client["collection"]
        collection.insert_one = AsyncMock(
            return_value=MagicMock(inserted_id="upload-123")
        )

        document = {
            "id": "upload-123",
            "filename": "film.mp4",
            "verification_status": "PENDING",
        }

        result = await mongodb_provider.insert("video_uploads", document)

        call_args = collection.insert_one.call_args[0][0]
        assert call_args["_id"] == "upload-123"
        assert "id" not in call_args
        assert result == "upload-123"

    async def test_insert_does_not_modify_original_document(
        self, mongodb_provider, mock_motor_client
    ):
        """Test that insert doesn't modify the original document."""
        collection = mock_motor_client["collection"]
        collection.insert_one = AsyncMock(
            return_value=MagicMock(inserted_id="upload-1")
        )

        original_document = {"id": "upload-1", "filename": "film.mp4"}

        await mongodb_provider.insert("video_uploads", original_document)

        assert "id" in original_document
        assert "_id" not in original_document

    # =========================================================================
    # Find Tests
    # =========================================================================

    async def test_find_by_id_returns_id_field(
        self, mongodb_provider, mock_motor_client
    ):
        """Test that find_by_id queries _id and maps it back to id."""
        collection = mock_motor_client["collection"]
        collection.find_one = AsyncMock(
            return_value={"_id": "upload-1", "filename": "film.mp4"}
        )

        result = await mongodb_provider.find_by_id("video_uploads", "upload-1")

        collection.find_one.assert_called_once_with({"_id": "upload-1"})
        assert result == {"id": "upload-1", "filename": "film.mp4"}

    async def test_find_by_id_not_found(self, mongodb_provider, mock_motor_client):
        """Test find_by_id returns None when not found."""
        collection = mock_motor_client["collection"]
        collection.find_one = AsyncMock(return_value=None)

        assert await mongodb_provider.find_by_id("video_uploads", "missing") is None

    async def test_find_returns_id_field(self, mongodb_provider, mock_motor_client):
        """Test that find returns documents with 'id' field and applies sort."""
        collection = mock_motor_client["collection"]

        async def mock_cursor():
            yield {"_id": "n-1", "title": "First"}
            yield {"_id": "n-2", "title": "Second"}

        cursor_mock = MagicMock()
        cursor_mock.sort = MagicMock(return_value=cursor_mock)
        cursor_mock.skip = MagicMock(return_value=cursor_mock)
        cursor_mock.limit = MagicMock(return_value=cursor_mock)
        cursor_mock.__aiter__ = lambda self: mock_cursor()

        collection.find = MagicMock(return_value=cursor_mock)

        results = await mongodb_provider.find(
            "notifications",
            {"user_id": "user-1"},
            limit=20,
            sort=[("created_at", -1)],
        )

        assert [doc["id"] for doc in results] == ["n-1", "n-2"]
        assert all("_id" not in doc for doc in results)
        cursor_mock.sort.assert_called_once_with([("created_at", -1)])
        cursor_mock.limit.assert_called_once_with(20)

    async def test_find_one_translates_id_filter(
        self, mongodb_provider, mock_motor_client
    ):
        """Test that an 'id' filter is sent as '_id'."""
        collection = mock_motor_client["collection"]
        collection.find_one = AsyncMock(
            return_value={"_id": "n-1", "user_id": "user-1"}
        )

        result = await mongodb_provider.find_one(
            "notifications", {"id": "n-1", "user_id": "user-1"}
        )

        collection.find_one.assert_called_once_with({"_id": "n-1", "user_id": "user-1"})
        assert result["id"] == "n-1"

    # =========================================================================
    # Update Tests
    # =========================================================================

    async def test_update_sets_fields_without_id(
        self, mongodb_provider, mock_motor_client
    ):
        """Test that update never rewrites the primary key."""
        collection = mock_motor_client["collection"]
        collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1))

        result = await mongodb_provider.update(
            "notifications", "n-1", {"id": "n-1", "read": True}
        )

        collection.update_one.assert_called_once_with(
            {"_id": "n-1"}, {"$set": {"read": True}}
        )
        assert result is True

    async def test_update_not_found(self, mongodb_provider, mock_motor_client):
        """Test update returns False when nothing matched."""
        collection = mock_motor_client["collection"]
        collection.update_one = AsyncMock(return_value=MagicMock(matched_count=0))

        assert await mongodb_provider.update("notifications", "x", {"read": True}) is False

    async def test_update_many_returns_modified_count(
        self, mongodb_provider, mock_motor_client
    ):
        """Test update_many forwards filters and returns modified count."""
        collection = mock_motor_client["collection"]
        collection.update_many = AsyncMock(return_value=MagicMock(modified_count=3))

        result = await mongodb_provider.update_many(
            "notifications", {"user_id": "user-1", "read": False}, {"read": True}
        )

        collection.update_many.assert_called_once_with(
            {"user_id": "user-1", "read": False}, {"$set": {"read": True}}
        )
        assert result == 3

    # =========================================================================
    # Compare-and-set Tests
    # =========================================================================

    async def test_compare_and_set_filters_on_expected_values(
        self, mongodb_provider, mock_motor_client
    ):
        """Test that expected values become part of the update filter."""
        collection = mock_motor_client["collection"]
        collection.update_one = AsyncMock(return_value=MagicMock(modified_count=1))

        result = await mongodb_provider.compare_and_set(
            "video_uploads",
            "upload-1",
            expected={"verification_status": "PENDING", "claim_token": None},
            updates={"claim_token": "token-a"},
        )

        collection.update_one.assert_called_once_with(
            {"_id": "upload-1", "verification_status": "PENDING", "claim_token": None},
            {"$set": {"claim_token": "token-a"}},
        )
        assert result is True

    async def test_compare_and_set_lost_race(self, mongodb_provider, mock_motor_client):
        """Test that a non-matching filter reports failure."""
        collection = mock_motor_client["collection"]
        collection.update_one = AsyncMock(return_value=MagicMock(modified_count=0))

        result = await mongodb_provider.compare_and_set(
            "video_uploads",
            "upload-1",
            expected={"claim_token": "token-a"},
            updates={"claim_token": "token-b"},
        )

        assert result is False

    # =========================================================================
    # Delete and Count Tests
    # =========================================================================

    async def test_delete(self, mongodb_provider, mock_motor_client):
        """Test delete by id."""
        collection = mock_motor_client["collection"]
        collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))

        assert await mongodb_provider.delete("notifications", "n-1") is True
        collection.delete_one.assert_called_once_with({"_id": "n-1"})

    async def test_delete_not_found(self, mongodb_provider, mock_motor_client):
        """Test delete returns False when nothing was deleted."""
        collection = mock_motor_client["collection"]
        collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=0))

        assert await mongodb_provider.delete("notifications", "missing") is False

    async def test_count_with_filters(self, mongodb_provider, mock_motor_client):
        """Test count with filters uses count_documents."""
        collection = mock_motor_client["collection"]
        collection.count_documents = AsyncMock(return_value=4)

        result = await mongodb_provider.count(
            "notifications", {"user_id": "user-1", "read": False}
        )

        assert result == 4

    async def test_count_without_filters(self, mongodb_provider, mock_motor_client):
        """Test count without filters uses the estimated count."""
        collection = mock_motor_client["collection"]
        collection.estimated_document_count = AsyncMock(return_value=10)

        assert await mongodb_provider.count("notifications") == 10

    # =========================================================================
    # Health Tests
    # =========================================================================

    async def test_health_check_reports_failure(
        self, mongodb_provider, mock_motor_client
    ):
        """Test that a failed ping is reported, not raised."""
        mock_motor_client["client"].admin.command = AsyncMock(
            side_effect=ConnectionError("no servers")
        )

        status = await mongodb_provider.health_check()

        assert status.healthy is False
        assert "no servers" in status.message
