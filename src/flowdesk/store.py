# flowdesk/store.py
"""
The in-memory snapshot of every collection, kept in step with the adapter.

Writes go to the persistence adapter first; only the records the adapter
accepted are applied to memory, so memory never leads storage.
"""
from __future__ import annotations
import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as ModelValidationError

from flowdesk.events import EventBus, EventKind, FlowEvent
from flowdesk.exceptions import PersistenceError, RecordFailure
from flowdesk.models.base import Entity
from flowdesk.models.collection import Collection, model_for
from flowdesk.storage.base import BatchResult, PersistenceAdapter, Record

logger = logging.getLogger(__name__)


class WriteOutcome(BaseModel):
    """What a batch write actually changed, and what it could not."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    collection: Collection
    entities: List[Entity] = Field(default_factory=list)
    ids: List[str] = Field(default_factory=list)
    failures: List[RecordFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def raise_for_failures(self, action: str) -> None:
        if self.failures:
            raise PersistenceError(
                f"Failed to {action} {len(self.failures)} {self.collection.value}",
                self.failures,
            )


class EntityStore:
    """Authoritative snapshot for the active session.

    ``version`` increases by one every time the snapshot changes.
    """

    def __init__(self, adapter: PersistenceAdapter, bus: Optional[EventBus] = None) -> None:
        self.adapter = adapter
        self.bus = bus
        self.version = 0
        self.loaded = False
        self._collections: Dict[Collection, List[Entity]] = {c: [] for c in Collection}

    # ------------------------------------------------------------------ #
    # reads
    # ------------------------------------------------------------------ #
    def all(self, collection: Collection) -> List[Entity]:
        return list(self._collections[Collection(collection)])

    def get(self, collection: Collection, entity_id: Optional[str]) -> Optional[Entity]:
        if entity_id is None:
            return None
        for entity in self._collections[Collection(collection)]:
            if entity.id == entity_id:
                return entity
        return None

    def filter(self, collection: Collection, predicate: Callable[[Any], bool]) -> List[Entity]:
        return [e for e in self._collections[Collection(collection)] if predicate(e)]

    def counts(self) -> Dict[str, int]:
        return {c.value: len(items) for c, items in self._collections.items()}

    # ------------------------------------------------------------------ #
    # load
    # ------------------------------------------------------------------ #
    async def load(self) -> None:
        """Replace the whole snapshot with what the adapter holds."""
        collections = list(Collection)
        try:
            fetched = await asyncio.gather(*(self.adapter.fetch_all(c) for c in collections))
        except Exception as e:
            logger.error(f"Failed to load data: {e}")
            raise PersistenceError(f"Failed to load data: {e}") from e

        snapshot: Dict[Collection, List[Entity]] = {}
        for collection, records in zip(collections, fetched):
            model = model_for(collection)
            entities: List[Entity] = []
            for record in records:
                try:
                    entities.append(model.from_record(record))
                except ModelValidationError as e:
                    logger.warning("Skipping unreadable %s record %s: %s",
                                   collection.value, record.get("id"), e)
            snapshot[collection] = entities

        self._collections = snapshot
        self.loaded = True
        logger.info("Loaded %s", self.counts())
        await self._changed(None, "load")

    # ------------------------------------------------------------------ #
    # write-through
    # ------------------------------------------------------------------ #
    async def _call(self, action: str, collection: Collection, payload: Sequence[Any]) -> BatchResult:
        try:
            return await getattr(self.adapter, action)(collection, payload)
        except Exception as e:
            logger.error(f"Failed to {action} {collection.value}: {e}")
            raise PersistenceError(f"Failed to {action} {collection.value}: {e}") from e

    def _read_back(self, collection: Collection, batch: BatchResult,
                   sent: Dict[Optional[str], Record], failures: List[RecordFailure]) -> List[Entity]:
        model = model_for(collection)
        entities: List[Entity] = []
        for result in batch.succeeded:
            data = result.data if result.data is not None else sent.get(result.id)
            try:
                entities.append(model.from_record(data))
            except (ModelValidationError, TypeError) as e:
                logger.error("Stored %s record %s could not be read back: %s",
                             collection.value, result.id, e)
                failures.append(RecordFailure(
                    collection=collection.value, record_id=result.id,
                    message="Stored record could not be read back"))
        return entities

    async def create(self, collection: Collection, entities: Sequence[Entity]) -> WriteOutcome:
        collection = Collection(collection)
        records = [e.to_record() for e in entities]
        batch = await self._call("create", collection, records)
        failures = batch.failures(collection)
        created = self._read_back(collection, batch, {r.get("id"): r for r in records}, failures)
        if created:
            self._collections[collection].extend(created)
            await self._changed(collection, "create")
        return WriteOutcome(collection=collection, entities=created,
                            ids=[e.id for e in created], failures=failures)

    async def update(self, collection: Collection, entities: Sequence[Entity]) -> WriteOutcome:
        collection = Collection(collection)
        records = [e.to_record() for e in entities]
        batch = await self._call("update", collection, records)
        failures = batch.failures(collection)
        updated = self._read_back(collection, batch, {r.get("id"): r for r in records}, failures)
        if updated:
            by_id = {e.id: e for e in updated}
            self._collections[collection] = [
                by_id.get(e.id, e) for e in self._collections[collection]
            ]
            await self._changed(collection, "update")
        return WriteOutcome(collection=collection, entities=updated,
                            ids=[e.id for e in updated], failures=failures)

    async def delete(self, collection: Collection, ids: Sequence[str]) -> WriteOutcome:
        collection = Collection(collection)
        if not ids:
            return WriteOutcome(collection=collection)
        batch = await self._call("delete", collection, list(ids))
        removed = [r.id for r in batch.succeeded if r.id is not None]
        if removed:
            gone = set(removed)
            self._collections[collection] = [
                e for e in self._collections[collection] if e.id not in gone
            ]
            await self._changed(collection, "delete")
        return WriteOutcome(collection=collection, ids=removed,
                            failures=batch.failures(collection))

    async def _changed(self, collection: Optional[Collection], reason: str) -> None:
        self.version += 1
        if self.bus is not None:
            await self.bus.publish(FlowEvent(
                kind=EventKind.DATA_CHANGED,
                collection=collection.value if collection else None,
                data={"reason": reason, "version": self.version},
            ))
