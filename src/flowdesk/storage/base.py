# flowdesk/storage/base.py
"""
Persistence adapter contract.

Every adapter speaks flat wire records (camelCase keys, ISO date strings,
comma-joined tags). Batch writes are applied record by record and report a
``RecordResult`` per input, never all-or-nothing.
"""
from __future__ import annotations
import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import uuid4
from pydantic import BaseModel, Field

from flowdesk.exceptions import RecordFailure
from flowdesk.models.collection import Collection

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Snapshot = Dict[str, List[Record]]

REQUIRED_FIELDS: Dict[Collection, Tuple[str, ...]] = {
    Collection.PROJECTS: ("name",),
    Collection.WORKSPACES: ("name", "projectId"),
    Collection.TASKS: ("title",),
    Collection.NOTES: ("title",),
    Collection.USERS: ("name", "email"),
    Collection.COLLABORATORS: ("userId", "itemId", "itemType"),
    Collection.ACTIVITY: ("userId", "action"),
}

MISSING_RECORD = "Record does not exist"


class RecordResult(BaseModel):
    """Outcome of one record inside a batch call."""
    success: bool
    id: Optional[str] = None
    data: Optional[Record] = None
    message: Optional[str] = None
    errors: List[str] = Field(default_factory=list)


class BatchResult(BaseModel):
    """Per-record outcomes of a batch create/update/delete."""
    results: List[RecordResult] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(r.success for r in self.results)

    @property
    def succeeded(self) -> List[RecordResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> List[RecordResult]:
        return [r for r in self.results if not r.success]

    def failures(self, collection: Collection) -> List[RecordFailure]:
        return [
            RecordFailure(
                collection=Collection(collection).value,
                record_id=r.id,
                message=r.message or "Write failed",
                errors=list(r.errors),
            )
            for r in self.failed
        ]

    def log(self, action: str, collection: Collection) -> None:
        name = Collection(collection).value
        logger.debug("%sd %d %s successfully", action.capitalize(), len(self.succeeded), name)
        if self.failed:
            logger.warning("Failed to %s %d %s", action, len(self.failed), name)
            for r in self.failed:
                for err in r.errors or [r.message or MISSING_RECORD]:
                    logger.error("%s/%s: %s", name, r.id or "new", err)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def missing_fields(collection: Collection, record: Record) -> List[str]:
    """Mandatory wire fields that are absent or blank in ``record``."""
    missing = []
    for name in REQUIRED_FIELDS[Collection(collection)]:
        value = record.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


def rejected(record: Record, missing: Sequence[str]) -> RecordResult:
    return RecordResult(
        success=False,
        id=record.get("id"),
        message="Missing required fields",
        errors=[f"Missing required field: {name}" for name in missing],
    )


def stamp_created(record: Record) -> Record:
    """Copy of ``record`` with an id and audit timestamps filled in."""
    stamped = dict(record)
    now = _now_iso()
    stamped.setdefault("id", str(uuid4()))
    stamped.setdefault("createdAt", now)
    stamped.setdefault("updatedAt", stamped["createdAt"])
    return stamped


def stamp_updated(existing: Record, record: Record) -> Record:
    """``record`` merged over ``existing``; id and createdAt are kept."""
    stamped = {**existing, **record}
    stamped["id"] = existing["id"]
    if "createdAt" in existing:
        stamped["createdAt"] = existing["createdAt"]
    stamped["updatedAt"] = _now_iso()
    return stamped


class PersistenceAdapter(ABC):
    """Narrow CRUD interface over a durable store, one collection at a time."""

    @abstractmethod
    async def fetch_all(self, collection: Collection) -> List[Record]:
        """Every record of ``collection``, in storage order."""
        ...

    @abstractmethod
    async def create(self, collection: Collection, records: Sequence[Record]) -> BatchResult:
        """Insert records; each success carries the stored record."""
        ...

    @abstractmethod
    async def update(self, collection: Collection, records: Sequence[Record]) -> BatchResult:
        """Update records by id; unknown ids fail individually."""
        ...

    @abstractmethod
    async def delete(self, collection: Collection, ids: Sequence[str]) -> BatchResult:
        """Delete records by id; ``BatchResult.success`` reports the whole call."""
        ...

    async def close(self) -> None:
        """Release any connection held by the adapter."""
        return None


class SnapshotAdapter(PersistenceAdapter):
    """Adapter whose backing store is one snapshot of every collection.

    Subclasses only read and replace the whole snapshot; every write is a
    read-modify-write under a lock.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    @abstractmethod
    async def _read_snapshot(self) -> Snapshot:
        ...

    @abstractmethod
    async def _write_snapshot(self, snapshot: Snapshot) -> None:
        ...

    async def fetch_all(self, collection: Collection) -> List[Record]:
        snapshot = await self._read_snapshot()
        return copy.deepcopy(snapshot.get(Collection(collection).value, []))

    async def create(self, collection: Collection, records: Sequence[Record]) -> BatchResult:
        name = Collection(collection).value
        batch = BatchResult()
        async with self._lock:
            snapshot = await self._read_snapshot()
            rows = snapshot.setdefault(name, [])
            known = {row.get("id") for row in rows}
            for record in records:
                missing = missing_fields(collection, record)
                if missing:
                    batch.results.append(rejected(record, missing))
                    continue
                stored = stamp_created(record)
                if stored["id"] in known:
                    batch.results.append(RecordResult(
                        success=False, id=stored["id"], message="Record already exists"))
                    continue
                known.add(stored["id"])
                rows.append(stored)
                batch.results.append(RecordResult(success=True, id=stored["id"], data=dict(stored)))
            if batch.succeeded:
                await self._write_snapshot(snapshot)
        batch.log("create", collection)
        return batch

    async def update(self, collection: Collection, records: Sequence[Record]) -> BatchResult:
        name = Collection(collection).value
        batch = BatchResult()
        async with self._lock:
            snapshot = await self._read_snapshot()
            rows = snapshot.setdefault(name, [])
            index = {row.get("id"): i for i, row in enumerate(rows)}
            for record in records:
                pos = index.get(record.get("id"))
                if pos is None:
                    batch.results.append(RecordResult(
                        success=False, id=record.get("id"), message=MISSING_RECORD))
                    continue
                stored = stamp_updated(rows[pos], record)
                missing = missing_fields(collection, stored)
                if missing:
                    batch.results.append(rejected(stored, missing))
                    continue
                rows[pos] = stored
                batch.results.append(RecordResult(success=True, id=stored["id"], data=dict(stored)))
            if batch.succeeded:
                await self._write_snapshot(snapshot)
        batch.log("update", collection)
        return batch

    async def delete(self, collection: Collection, ids: Sequence[str]) -> BatchResult:
        name = Collection(collection).value
        batch = BatchResult()
        async with self._lock:
            snapshot = await self._read_snapshot()
            rows = snapshot.setdefault(name, [])
            doomed = set()
            present = {row.get("id") for row in rows}
            for record_id in ids:
                if record_id in present and record_id not in doomed:
                    doomed.add(record_id)
                    batch.results.append(RecordResult(success=True, id=record_id))
                else:
                    batch.results.append(RecordResult(
                        success=False, id=record_id, message=MISSING_RECORD))
            if doomed:
                snapshot[name] = [row for row in rows if row.get("id") not in doomed]
                await self._write_snapshot(snapshot)
        batch.log("delete", collection)
        return batch
