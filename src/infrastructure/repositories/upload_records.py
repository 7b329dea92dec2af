"""Persistence of UploadRecord documents."""

from datetime import UTC, datetime, timedelta

from pydantic import TypeAdapter

from src.commons.infrastructure.documentdb.base import DocumentDBBase
from src.commons.telemetry import get_logger
from src.domain.models.upload import UploadRecord, VerificationStatus

_TIMESTAMP = TypeAdapter(datetime)

_ACTIVE_STATUSES = [VerificationStatus.PENDING.value, VerificationStatus.APPROVED.value]


def _timestamp() -> str:
    """Current time serialized the same way as the model fields."""
    return str(_TIMESTAMP.dump_python(datetime.now(UTC), mode="json"))


class UploadRecordRepository:
    """Stores upload records in the document database.

    Every write after creation goes through ``compare_and_set`` keyed on
    the PENDING status and the caller's claim token, so a terminal record
    is never overwritten and only the current claim holder can mutate it.
    """

    def __init__(self, document_db: DocumentDBBase, collection: str) -> None:
        self._db = document_db
        self._collection = collection
        self._logger = get_logger(__name__)

    async def ensure_indexes(self) -> None:
        """Create the secondary indexes used by lookups and recovery."""
        await self._db.create_index(
            self._collection, [("content_hash", 1)], name="content_hash"
        )
        await self._db.create_index(
            self._collection,
            [("verification_status", 1), ("claimed_at", 1)],
            name="status_claim",
        )
        await self._db.create_index(
            self._collection, [("owner_user_id", 1)], name="owner"
        )

    async def insert(self, record: UploadRecord) -> str:
        """Persist a new record."""
        return await self._db.insert(self._collection, record.to_document())

    async def get(self, upload_id: str) -> UploadRecord | None:
        """Load a record by id."""
        doc = await self._db.find_by_id(self._collection, upload_id)
        return UploadRecord.model_validate(doc) if doc else None

    async def find_active_by_hash(self, content_hash: str) -> UploadRecord | None:
        """Find a PENDING or APPROVED record with the same content hash."""
        doc = await self._db.find_one(
            self._collection,
            {
                "content_hash": content_hash,
                "verification_status": {"$in": _ACTIVE_STATUSES},
            },
        )
        return UploadRecord.model_validate(doc) if doc else None

    async def try_claim(
        self,
        record: UploadRecord,
        token: str,
        now: datetime | None = None,
    ) -> UploadRecord | None:
        """Take the processing claim if nobody changed it since ``record`` was read.

        Returns:
            The claimed record, or None if another worker got there first or
            the record is no longer PENDING.
        """
        claimed = record.claim(token, now)
        doc = claimed.to_document()
        won = await self._db.compare_and_set(
            self._collection,
            record.id,
            expected={
                "verification_status": VerificationStatus.PENDING.value,
                "claim_token": record.claim_token,
            },
            updates={
                "claim_token": doc["claim_token"],
                "claimed_at": doc["claimed_at"],
                "updated_at": doc["updated_at"],
            },
        )
        return claimed if won else None

    async def save_claimed(self, record: UploadRecord, claim_token: str) -> bool:
        """Write every field of ``record`` while the claim is still held.

        Args:
            record: New state of the record. May be terminal.
            claim_token: Token the caller holds.

        Returns:
            True if written, False if the claim was lost or the stored
            record is already terminal.
        """
        updates = record.to_document()
        updates.pop("id")
        saved = await self._db.compare_and_set(
            self._collection,
            record.id,
            expected={
                "verification_status": VerificationStatus.PENDING.value,
                "claim_token": claim_token,
            },
            updates=updates,
        )
        if not saved:
            self._logger.warning(
                "Upload record write skipped, claim lost",
                extra={"upload_id": record.id},
            )
        return saved

    async def release_claim(self, upload_id: str, claim_token: str) -> bool:
        """Drop a claim on a still PENDING record so it can be picked up again."""
        return await self._db.compare_and_set(
            self._collection,
            upload_id,
            expected={
                "verification_status": VerificationStatus.PENDING.value,
                "claim_token": claim_token,
            },
            updates={
                "claim_token": None,
                "claimed_at": None,
                "updated_at": _timestamp(),
            },
        )

    async def list_recoverable(
        self,
        stale_after: timedelta,
        limit: int = 500,
    ) -> list[UploadRecord]:
        """List PENDING records whose claim is absent or stale."""
        docs = await self._db.find(
            self._collection,
            {"verification_status": VerificationStatus.PENDING.value},
            limit=limit,
            sort=[("created_at", 1)],
        )
        now = datetime.now(UTC)
        records = [UploadRecord.model_validate(doc) for doc in docs]
        return [r for r in records if r.is_claim_stale(stale_after, now)]
