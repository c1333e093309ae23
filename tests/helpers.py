# tests/helpers.py
"""
Test doubles and scenario builders shared across the suite.
"""
from typing import Optional, Sequence, Set, Tuple

from flowdesk.models import Collection
from flowdesk.storage.base import BatchResult, RecordResult
from flowdesk.storage.providers.memory import InMemoryAdapter


class FlakyAdapter(InMemoryAdapter):
    """In-memory adapter with switchable failures.

    ``raise_on`` holds (action, collection) pairs that raise; ``reject_ids``
    holds record ids whose writes fail individually.
    """

    def __init__(self) -> None:
        super().__init__()
        self.raise_on: Set[Tuple[str, Collection]] = set()
        self.reject_ids: Set[str] = set()
        self.calls = []

    def _maybe_raise(self, action: str, collection: Collection) -> None:
        self.calls.append((action, Collection(collection)))
        if (action, Collection(collection)) in self.raise_on:
            raise ConnectionError(f"{action} {collection} unavailable")

    def _rejected(self, ids: Sequence[Optional[str]]) -> BatchResult:
        return BatchResult(results=[
            RecordResult(success=False, id=i, message="Rejected by server")
            for i in ids if i in self.reject_ids
        ])

    async def fetch_all(self, collection):
        self._maybe_raise("fetch_all", collection)
        return await super().fetch_all(collection)

    async def create(self, collection, records):
        self._maybe_raise("create", collection)
        rejected = self._rejected([r.get("id") for r in records])
        batch = await super().create(collection, [r for r in records if r.get("id") not in self.reject_ids])
        batch.results.extend(rejected.results)
        return batch

    async def update(self, collection, records):
        self._maybe_raise("update", collection)
        rejected = self._rejected([r.get("id") for r in records])
        batch = await super().update(collection, [r for r in records if r.get("id") not in self.reject_ids])
        batch.results.extend(rejected.results)
        return batch

    async def delete(self, collection, ids):
        self._maybe_raise("delete", collection)
        rejected = self._rejected(ids)
        batch = await super().delete(collection, [i for i in ids if i not in self.reject_ids])
        batch.results.extend(rejected.results)
        return batch


async def build_launch(engine):
    """Project "Launch" → workspace "Beta" → task "Ship" → subtask "QA", plus a note."""
    project = (await engine.create_project({"name": "Launch", "category": "work"})).value
    workspace = (await engine.create_workspace({"name": "Beta", "projectId": project.id})).value
    ship = (await engine.create_task({"title": "Ship", "workspaceId": workspace.id})).value
    qa = (await engine.create_subtask(ship.id, {"title": "QA"})).value
    note = (await engine.create_note({"title": "Plan", "workspaceId": workspace.id})).value
    return project, workspace, ship, qa, note
