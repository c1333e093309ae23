# tests/storage/providers/test_memory.py
"""
Tests for the in-memory adapter and the shared batch semantics.
"""
import pytest

from flowdesk.models import Collection, Project, Task
from flowdesk.storage.providers.memory import InMemoryAdapter


@pytest.mark.asyncio
async def test_fetch_all_on_empty_store():
    adapter = InMemoryAdapter()
    for collection in Collection:
        assert await adapter.fetch_all(collection) == []


@pytest.mark.asyncio
async def test_create_assigns_id_and_timestamps():
    adapter = InMemoryAdapter()
    batch = await adapter.create(Collection.PROJECTS, [{"name": "Launch"}])

    assert batch.success
    stored = batch.results[0].data
    assert stored["id"]
    assert stored["createdAt"] == stored["updatedAt"]
    assert await adapter.fetch_all(Collection.PROJECTS) == [stored]


@pytest.mark.asyncio
async def test_create_keeps_given_record():
    adapter = InMemoryAdapter()
    project = Project(name="Launch")
    batch = await adapter.create(Collection.PROJECTS, [project.to_record()])
    assert batch.results[0].id == project.id
    assert batch.results[0].data["createdAt"] == project.to_record()["createdAt"]


@pytest.mark.asyncio
async def test_create_reports_missing_fields_per_record():
    adapter = InMemoryAdapter()
    batch = await adapter.create(Collection.WORKSPACES, [
        {"name": "Beta", "projectId": "p1"},
        {"name": "  "},
    ])

    assert not batch.success
    assert [r.success for r in batch.results] == [True, False]
    assert batch.failed[0].errors == [
        "Missing required field: name",
        "Missing required field: projectId",
    ]
    assert len(await adapter.fetch_all(Collection.WORKSPACES)) == 1


@pytest.mark.asyncio
async def test_duplicate_id_is_rejected():
    adapter = InMemoryAdapter()
    record = Task(title="t").to_record()
    await adapter.create(Collection.TASKS, [record])
    batch = await adapter.create(Collection.TASKS, [record])
    assert not batch.success
    assert batch.failed[0].message == "Record already exists"


@pytest.mark.asyncio
async def test_update_keeps_created_at_and_refreshes_updated_at():
    adapter = InMemoryAdapter()
    created = (await adapter.create(Collection.TASKS, [{"title": "t"}])).results[0].data

    batch = await adapter.update(Collection.TASKS, [{
        "id": created["id"], "title": "renamed", "createdAt": "1999-01-01T00:00:00+00:00",
    }])

    stored = batch.results[0].data
    assert stored["title"] == "renamed"
    assert stored["createdAt"] == created["createdAt"]
    assert stored["updatedAt"] >= created["updatedAt"]


@pytest.mark.asyncio
async def test_update_and_delete_unknown_ids_fail_individually():
    adapter = InMemoryAdapter()
    created = (await adapter.create(Collection.NOTES, [{"title": "n"}])).results[0].data

    batch = await adapter.update(Collection.NOTES, [{"id": "nope", "title": "x"}])
    assert batch.failed[0].message == "Record does not exist"

    batch = await adapter.delete(Collection.NOTES, [created["id"], "nope"])
    assert not batch.success
    assert [r.id for r in batch.succeeded] == [created["id"]]
    assert await adapter.fetch_all(Collection.NOTES) == []


@pytest.mark.asyncio
async def test_failures_are_enumerated_with_collection():
    adapter = InMemoryAdapter()
    batch = await adapter.delete(Collection.TASKS, ["a", "b"])
    failures = batch.failures(Collection.TASKS)
    assert [f.record_id for f in failures] == ["a", "b"]
    assert failures[0].describe() == "tasks/a: Record does not exist"


@pytest.mark.asyncio
async def test_fetch_returns_copies():
    adapter = InMemoryAdapter()
    await adapter.create(Collection.PROJECTS, [{"name": "Launch"}])
    rows = await adapter.fetch_all(Collection.PROJECTS)
    rows[0]["name"] = "mutated"
    assert (await adapter.fetch_all(Collection.PROJECTS))[0]["name"] == "Launch"
