# tests/test_selection.py
from datetime import date

import pytest

from flowdesk.events import EventBus, EventKind
from flowdesk.selection import EntityTab, SelectionState


@pytest.fixture
def bus():
    return EventBus(keep_history=True)


@pytest.fixture
def selection(bus):
    return SelectionState(bus)


def changes(bus):
    return [e.data for e in bus.history if e.kind is EventKind.SELECTION_CHANGED]


@pytest.mark.asyncio
async def test_defaults(selection):
    assert selection.snapshot() == {
        "tab": "tasks", "selected_date": None, "project_id": None, "workspace_id": None,
    }


@pytest.mark.asyncio
async def test_selecting_project_clears_workspace(selection):
    await selection.select_project("p1")
    await selection.select_workspace("w1")
    assert (selection.project_id, selection.workspace_id) == ("p1", "w1")

    await selection.select_project("p2")
    assert (selection.project_id, selection.workspace_id) == ("p2", None)


@pytest.mark.asyncio
async def test_selecting_workspace_keeps_project(selection):
    await selection.select_project("p1")
    await selection.select_workspace("w1")
    await selection.clear_workspace()
    assert selection.project_id == "p1"
    assert selection.workspace_id is None


@pytest.mark.asyncio
async def test_dates_are_calendar_days(selection):
    await selection.select_date("2024-03-15T23:30:00")
    assert selection.selected_date == date(2024, 3, 15)
    await selection.clear_date()
    assert selection.selected_date is None


@pytest.mark.asyncio
async def test_every_change_is_published(selection, bus):
    await selection.select_tab(EntityTab.NOTES)
    await selection.select_tab("projects")

    assert [c["tab"] for c in changes(bus)] == ["notes", "projects"]


@pytest.mark.asyncio
async def test_unknown_tab(selection):
    with pytest.raises(ValueError):
        await selection.select_tab("calendar")


@pytest.mark.asyncio
async def test_forget_only_touches_matching_ids(selection, bus):
    await selection.select_project("p1")
    await selection.select_workspace("w1")
    bus.history.clear()

    assert not await selection.forget(project_id="p2", workspace_ids=["w2"])
    assert changes(bus) == []

    assert await selection.forget(workspace_ids=["w1"])
    assert selection.workspace_id is None
    assert selection.project_id == "p1"

    assert await selection.forget(project_id="p1")
    assert selection.project_id is None


@pytest.mark.asyncio
async def test_attach_follows_chosen_workspace(selection, bus):
    from flowdesk.events import FlowEvent

    selection.attach(bus)
    await bus.publish(FlowEvent(kind=EventKind.WORKSPACE_CHOSEN, entity_id="w9"))
    assert selection.workspace_id == "w9"

    selection.detach()
    await bus.publish(FlowEvent(kind=EventKind.WORKSPACE_CHOSEN, entity_id="w10"))
    assert selection.workspace_id == "w9"


@pytest.mark.asyncio
async def test_works_without_a_bus():
    selection = SelectionState()
    await selection.select_project("p1")
    assert selection.project_id == "p1"
