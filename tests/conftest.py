# tests/conftest.py
"""
Shared fixtures: an engine wired to an in-memory adapter that can be told
to fail.
"""
import pytest
import pytest_asyncio

from flowdesk.engine import MutationEngine
from flowdesk.events import EventBus
from flowdesk.selection import SelectionState
from flowdesk.store import EntityStore
from tests.helpers import FlakyAdapter


@pytest.fixture
def bus():
    return EventBus(keep_history=True)


@pytest.fixture
def adapter():
    return FlakyAdapter()


@pytest_asyncio.fixture
async def engine(adapter, bus):
    store = EntityStore(adapter, bus)
    eng = MutationEngine(store, SelectionState(bus), bus, actor_id="tester")
    await eng.load()
    return eng
