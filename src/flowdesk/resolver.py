# flowdesk/resolver.py
"""
Side-effect free queries over the current store snapshot.

Nothing is cached: every call re-reads the store, so results always match
the latest snapshot. Empty collections give empty lists.
"""
from __future__ import annotations
from datetime import date
from typing import Any, List, Optional, Union

from flowdesk.models import (
    DISPLAY_FIELDS,
    Activity,
    Collaborator,
    Collection,
    Entity,
    ItemType,
    Note,
    Project,
    ProjectRef,
    Task,
    User,
    Workspace,
    WorkspaceRef,
    calendar_day,
    item_ref,
)
from flowdesk.selection import EntityTab, SelectionState
from flowdesk.store import EntityStore


class RelationshipResolver:
    """Parent/child and cross-entity views of an ``EntityStore``."""

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    # -- tasks ---------------------------------------------------------- #
    def parent_tasks(self) -> List[Task]:
        return self.store.filter(Collection.TASKS, lambda t: t.parent_task_id is None)

    def subtasks_of(self, task_id: str) -> List[Task]:
        subtasks = self.store.filter(Collection.TASKS, lambda t: t.parent_task_id == task_id)
        return sorted(subtasks, key=lambda t: t.created_at)

    def descendants_of(self, task_id: str) -> List[Task]:
        """Every task below ``task_id``, depth first."""
        found: List[Task] = []
        seen = {task_id}
        stack = [task_id]
        while stack:
            for child in self.subtasks_of(stack.pop()):
                if child.id not in seen:
                    seen.add(child.id)
                    found.append(child)
                    stack.append(child.id)
        return found

    def tasks_due_on(self, day: Union[date, str, None]) -> List[Task]:
        """Tasks due on the same calendar day as ``day``."""
        target = calendar_day(day)
        if target is None:
            return []
        return self.store.filter(Collection.TASKS, lambda t: t.due_date == target)

    def deadline_status(self, day: Any, today: Optional[date] = None) -> Optional[str]:
        """``overdue``, ``today`` or ``upcoming`` for a day with due tasks, else None."""
        target = calendar_day(day)
        if not self.tasks_due_on(target):
            return None
        today = calendar_day(today) or date.today()
        if target < today:
            return "overdue"
        if target == today:
            return "today"
        return "upcoming"

    def due_summary(self, day: Any) -> str:
        target = calendar_day(day)
        if target is None:
            return "No date selected"
        count = len(self.tasks_due_on(target))
        when = target.strftime("%b %d, %Y")
        if count == 0:
            return f"No tasks due on {when}"
        return f"{count} task{'s' if count > 1 else ''} due on {when}"

    # -- workspaces ----------------------------------------------------- #
    def workspaces_of(self, project_id: str) -> List[Workspace]:
        return self.store.filter(Collection.WORKSPACES, lambda w: w.project_id == project_id)

    def tasks_of(self, workspace_id: str) -> List[Task]:
        return self.store.filter(
            Collection.TASKS,
            lambda t: t.workspace_id == workspace_id and t.parent_task_id is None,
        )

    def notes_of(self, workspace_id: str) -> List[Note]:
        return self.store.filter(Collection.NOTES, lambda n: n.workspace_id == workspace_id)

    # -- collaborators -------------------------------------------------- #
    def collaborators_of(self, item_id: str, item_type: Union[ItemType, str]) -> List[Collaborator]:
        ref = item_ref(item_type, item_id)
        return self.store.filter(Collection.COLLABORATORS, lambda c: c.item == ref)

    def resolve_item(self, ref: Union[ProjectRef, WorkspaceRef]) -> Optional[Union[Project, Workspace]]:
        """The project or workspace a collaborator reference points at."""
        if isinstance(ref, ProjectRef):
            return self.store.get(Collection.PROJECTS, ref.id)
        if isinstance(ref, WorkspaceRef):
            return self.store.get(Collection.WORKSPACES, ref.id)
        raise TypeError(f"Unsupported item reference: {ref!r}")

    def user_by_email(self, email: str) -> Optional[User]:
        if not email or not email.strip():
            return None
        for user in self.store.all(Collection.USERS):
            if user.matches_email(email):
                return user
        return None

    # -- misc ----------------------------------------------------------- #
    def search(self, collection: Collection, query: str) -> List[Entity]:
        """Case-insensitive substring match on the collection's display field."""
        field = DISPLAY_FIELDS[Collection(collection)]
        if field is None:
            return []
        needle = (query or "").casefold()
        return self.store.filter(
            collection, lambda e: needle in (getattr(e, field, None) or "").casefold())

    def recent_activity(self, limit: int = 20) -> List[Activity]:
        feed = sorted(self.store.all(Collection.ACTIVITY), key=lambda a: a.timestamp, reverse=True)
        return feed[:limit]

    def visible(self, selection: SelectionState) -> List[Entity]:
        """What the active tab shows under the current selection and filters."""
        tab = selection.tab
        if tab is EntityTab.TASKS:
            if selection.workspace_id:
                tasks = self.tasks_of(selection.workspace_id)
            else:
                tasks = self.parent_tasks()
            if selection.selected_date is not None:
                tasks = [t for t in tasks if t.due_date == selection.selected_date]
            return tasks
        if tab is EntityTab.NOTES:
            if selection.workspace_id:
                return self.notes_of(selection.workspace_id)
            return self.store.all(Collection.NOTES)
        if tab is EntityTab.WORKSPACES:
            if selection.project_id:
                return self.workspaces_of(selection.project_id)
            return self.store.all(Collection.WORKSPACES)
        return self.store.all(Collection.PROJECTS)
