# tests/test_store.py
"""
Write-through behaviour of the entity store.
"""
import pytest

from flowdesk.events import EventBus, EventKind
from flowdesk.exceptions import PersistenceError
from flowdesk.models import Collection, Project, Task
from flowdesk.storage.providers.memory import InMemoryAdapter
from flowdesk.store import EntityStore
from tests.helpers import FlakyAdapter


@pytest.mark.asyncio
async def test_load_replaces_snapshot():
    adapter = InMemoryAdapter({"projects": [Project(name="Seed").to_record()]})
    store = EntityStore(adapter)
    await store.load()

    assert store.loaded
    assert [p.name for p in store.all(Collection.PROJECTS)] == ["Seed"]
    assert store.all(Collection.TASKS) == []
    assert store.version == 1


@pytest.mark.asyncio
async def test_load_skips_unreadable_records():
    adapter = InMemoryAdapter({"tasks": [{"id": "bad", "priority": "urgent"}, Task(title="ok").to_record()]})
    store = EntityStore(adapter)
    await store.load()
    assert [t.title for t in store.all(Collection.TASKS)] == ["ok"]


@pytest.mark.asyncio
async def test_failed_load_keeps_previous_snapshot():
    adapter = FlakyAdapter()
    store = EntityStore(adapter)
    await store.create(Collection.PROJECTS, [Project(name="Kept")])

    adapter.raise_on.add(("fetch_all", Collection.NOTES))
    with pytest.raises(PersistenceError):
        await store.load()
    assert [p.name for p in store.all(Collection.PROJECTS)] == ["Kept"]


@pytest.mark.asyncio
async def test_create_applies_only_after_adapter_success():
    adapter = FlakyAdapter()
    store = EntityStore(adapter)
    good, bad = Task(title="good"), Task(title="bad")
    adapter.reject_ids.add(bad.id)

    outcome = await store.create(Collection.TASKS, [good, bad])

    assert outcome.ids == [good.id]
    assert [f.record_id for f in outcome.failures] == [bad.id]
    assert [t.id for t in store.all(Collection.TASKS)] == [good.id]
    with pytest.raises(PersistenceError) as info:
        outcome.raise_for_failures("create")
    assert info.value.failures[0].record_id == bad.id


@pytest.mark.asyncio
async def test_adapter_exception_leaves_snapshot_unchanged():
    adapter = FlakyAdapter()
    store = EntityStore(adapter)
    await store.create(Collection.TASKS, [Task(title="a")])
    version = store.version

    adapter.raise_on.add(("delete", Collection.TASKS))
    with pytest.raises(PersistenceError):
        await store.delete(Collection.TASKS, [store.all(Collection.TASKS)[0].id])

    assert len(store.all(Collection.TASKS)) == 1
    assert store.version == version


@pytest.mark.asyncio
async def test_update_replaces_in_place():
    store = EntityStore(InMemoryAdapter())
    a, b = Task(title="a"), Task(title="b")
    await store.create(Collection.TASKS, [a, b])

    await store.update(Collection.TASKS, [a.model_copy(update={"title": "a2"})])

    assert [t.title for t in store.all(Collection.TASKS)] == ["a2", "b"]
    assert store.get(Collection.TASKS, a.id).title == "a2"


@pytest.mark.asyncio
async def test_changes_publish_data_changed():
    bus = EventBus(keep_history=True)
    store = EntityStore(InMemoryAdapter(), bus)
    await store.create(Collection.PROJECTS, [Project(name="p")])
    await store.delete(Collection.PROJECTS, [])

    kinds = [(e.kind, e.collection, e.data["reason"]) for e in bus.history]
    assert kinds == [(EventKind.DATA_CHANGED, "projects", "create")]


@pytest.mark.asyncio
async def test_reads_return_copies():
    store = EntityStore(InMemoryAdapter())
    await store.create(Collection.PROJECTS, [Project(name="p")])
    store.all(Collection.PROJECTS).clear()
    assert len(store.all(Collection.PROJECTS)) == 1
    assert store.get(Collection.PROJECTS, None) is None
