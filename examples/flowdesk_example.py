#!/usr/bin/env python3
# examples/flowdesk_example.py
"""
flowdesk_example.py
~~~~~~~~~~~~~~~~~~~

Demonstrates the async API of the FlowDesk core:

* persist to a local JSON blob
* build a project → workspace → task → subtask hierarchy
* invite a collaborator and watch the duplicate invite bounce
* filter the task view by calendar date
* delete the project and watch the cascade

Run:
```bash
uv run examples/flowdesk_example.py
```
"""

import asyncio
import logging
import tempfile

from flowdesk.engine import MutationEngine
from flowdesk.events import EventBus, EventKind
from flowdesk.models import Collection
from flowdesk.selection import SelectionState
from flowdesk.storage.providers.file import FileAdapter
from flowdesk.store import EntityStore

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
log = logging.getLogger(__name__)


async def main():
    """Walk through the main operations against a throwaway blob."""
    directory = tempfile.mkdtemp(prefix="flowdesk-")
    bus = EventBus()
    bus.subscribe(lambda e: log.info("toast: %s", e.message), kinds=[EventKind.NOTIFICATION])

    store = EntityStore(FileAdapter(directory), bus)
    engine = MutationEngine(store, SelectionState(bus), bus, actor_id="ada")
    await engine.load()
    log.info("Blob lives at %s", store.adapter.path)

    # 1. people
    await engine.create_user({"name": "Ada", "email": "ada@example.com"})
    await engine.create_user({"name": "Grace", "email": "Grace@Example.com"})

    # 2. hierarchy
    project = (await engine.create_project({"name": "Launch", "category": "work"})).value
    workspace = (await engine.create_workspace({"name": "Beta", "projectId": project.id})).value
    ship = (await engine.create_task({
        "title": "Ship", "workspaceId": workspace.id, "dueDate": "2024-03-15", "priority": "high",
    })).value
    await engine.create_subtask(ship.id, {"title": "QA"})
    await engine.create_note({"title": "Checklist", "workspaceId": workspace.id, "tags": "a, b ,c"})

    # 3. collaborators
    await engine.invite_collaborator("grace@example.com", project.id, "project")
    await engine.invite_collaborator("GRACE@example.com", project.id, "project")  # conflict
    log.info("collaborators on Launch: %d", len(engine.resolver.collaborators_of(project.id, "project")))

    # 4. calendar filter
    await engine.selection.select_date("2024-03-15")
    log.info("due on 15 March: %s", [t.title for t in engine.resolver.visible(engine.selection)])
    log.info(engine.resolver.due_summary("2024-03-15"))
    await engine.selection.clear_date()

    # 5. cascade
    await engine.delete_project(project.id)
    log.info("left after delete: %s", engine.store.counts())

    # 6. a fresh store sees the same blob
    reloaded = EntityStore(FileAdapter(directory))
    await reloaded.load()
    log.info("reloaded tasks: %d", len(reloaded.all(Collection.TASKS)))


if __name__ == "__main__":
    asyncio.run(main())
