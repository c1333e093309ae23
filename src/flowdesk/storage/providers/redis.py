# flowdesk/storage/providers/redis.py
"""
Remote record service backed by Redis.

Each collection is one hash, ``<key_prefix><collection>``, mapping record id
to the JSON-encoded record.
"""
import json
import logging
from typing import Any, List, Sequence

from redis.asyncio import Redis
from redis.exceptions import RedisError

from flowdesk.exceptions import StorageError
from flowdesk.models.collection import Collection
from flowdesk.storage.base import (
    MISSING_RECORD,
    BatchResult,
    PersistenceAdapter,
    Record,
    RecordResult,
    missing_fields,
    rejected,
    stamp_created,
    stamp_updated,
)

logger = logging.getLogger(__name__)


class RedisAdapter(PersistenceAdapter):
    """Writes every record independently, so a batch can partially succeed."""

    def __init__(self, redis_client: Any, key_prefix: str = "flowdesk:") -> None:
        self.client = redis_client
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "flowdesk:") -> "RedisAdapter":
        return cls(Redis.from_url(url, decode_responses=True), key_prefix=key_prefix)

    def _key(self, collection: Collection) -> str:
        return f"{self.key_prefix}{Collection(collection).value}"

    async def fetch_all(self, collection: Collection) -> List[Record]:
        try:
            raw = await self.client.hgetall(self._key(collection))
        except RedisError as e:
            logger.error(f"Failed to fetch {collection}: {e}")
            raise StorageError(f"Failed to fetch {Collection(collection).value}: {e}") from e
        records = []
        for record_id, value in (raw or {}).items():
            try:
                record = json.loads(value)
            except (TypeError, json.JSONDecodeError):
                logger.error("Skipping undecodable record %s in %s", record_id, self._key(collection))
                continue
            if not isinstance(record, dict):
                logger.error("Skipping non-object record %s in %s", record_id, self._key(collection))
                continue
            records.append(record)
        records.sort(key=lambda r: r.get("createdAt") or "")
        return records

    async def _load(self, key: str, record_id: str) -> Any:
        value = await self.client.hget(key, record_id)
        return json.loads(value) if value else None

    async def create(self, collection: Collection, records: Sequence[Record]) -> BatchResult:
        key = self._key(collection)
        batch = BatchResult()
        for record in records:
            missing = missing_fields(collection, record)
            if missing:
                batch.results.append(rejected(record, missing))
                continue
            stored = stamp_created(record)
            try:
                added = await self.client.hsetnx(key, stored["id"], json.dumps(stored))
            except RedisError as e:
                batch.results.append(RecordResult(success=False, id=stored["id"], message=str(e)))
                continue
            if not added:
                batch.results.append(RecordResult(
                    success=False, id=stored["id"], message="Record already exists"))
                continue
            batch.results.append(RecordResult(success=True, id=stored["id"], data=stored))
        batch.log("create", collection)
        return batch

    async def update(self, collection: Collection, records: Sequence[Record]) -> BatchResult:
        key = self._key(collection)
        batch = BatchResult()
        for record in records:
            record_id = record.get("id")
            try:
                existing = await self._load(key, record_id) if record_id else None
                if existing is None:
                    batch.results.append(RecordResult(
                        success=False, id=record_id, message=MISSING_RECORD))
                    continue
                stored = stamp_updated(existing, record)
                missing = missing_fields(collection, stored)
                if missing:
                    batch.results.append(rejected(stored, missing))
                    continue
                await self.client.hset(key, record_id, json.dumps(stored))
            except (RedisError, json.JSONDecodeError) as e:
                batch.results.append(RecordResult(success=False, id=record_id, message=str(e)))
                continue
            batch.results.append(RecordResult(success=True, id=record_id, data=stored))
        batch.log("update", collection)
        return batch

    async def delete(self, collection: Collection, ids: Sequence[str]) -> BatchResult:
        key = self._key(collection)
        batch = BatchResult()
        for record_id in ids:
            try:
                removed = await self.client.hdel(key, record_id)
            except RedisError as e:
                batch.results.append(RecordResult(success=False, id=record_id, message=str(e)))
                continue
            if removed:
                batch.results.append(RecordResult(success=True, id=record_id))
            else:
                batch.results.append(RecordResult(
                    success=False, id=record_id, message=MISSING_RECORD))
        batch.log("delete", collection)
        return batch

    async def close(self) -> None:
        await self.client.aclose()
