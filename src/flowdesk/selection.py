# flowdesk/selection.py
"""
Transient selection and filter state of one view.
"""
from __future__ import annotations
import logging
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from flowdesk.events import EventBus, EventKind, FlowEvent, Subscription
from flowdesk.models.base import calendar_day

logger = logging.getLogger(__name__)


class EntityTab(str, Enum):
    TASKS = "tasks"
    PROJECTS = "projects"
    NOTES = "notes"
    WORKSPACES = "workspaces"


class SelectionState:
    """Active tab, calendar date, project and workspace.

    Selecting a project clears the workspace; selecting a workspace leaves the
    project alone. Every change is published as ``SELECTION_CHANGED``.
    """

    def __init__(self, bus: Optional[EventBus] = None) -> None:
        self.bus = bus
        self.tab: EntityTab = EntityTab.TASKS
        self.selected_date: Optional[date] = None
        self.project_id: Optional[str] = None
        self.workspace_id: Optional[str] = None
        self._chosen_sub: Optional[Subscription] = None

    def snapshot(self) -> Dict[str, Any]:
        return {
            "tab": self.tab.value,
            "selected_date": self.selected_date.isoformat() if self.selected_date else None,
            "project_id": self.project_id,
            "workspace_id": self.workspace_id,
        }

    async def _changed(self) -> None:
        if self.bus is not None:
            await self.bus.publish(FlowEvent(kind=EventKind.SELECTION_CHANGED, data=self.snapshot()))

    async def select_tab(self, tab: EntityTab) -> None:
        self.tab = EntityTab(tab)
        await self._changed()

    async def select_date(self, day: Any) -> None:
        self.selected_date = calendar_day(day)
        await self._changed()

    async def clear_date(self) -> None:
        await self.select_date(None)

    async def select_project(self, project_id: Optional[str]) -> None:
        self.project_id = project_id
        self.workspace_id = None
        await self._changed()

    async def select_workspace(self, workspace_id: Optional[str]) -> None:
        self.workspace_id = workspace_id
        await self._changed()

    async def clear_workspace(self) -> None:
        await self.select_workspace(None)

    async def forget(self, project_id: Optional[str] = None, workspace_ids: Iterable[str] = ()) -> bool:
        """Drop selections pointing at deleted items; True if anything changed."""
        changed = False
        if project_id is not None and self.project_id == project_id:
            self.project_id = None
            changed = True
        if self.workspace_id is not None and self.workspace_id in set(workspace_ids):
            self.workspace_id = None
            changed = True
        if changed:
            logger.debug("Cleared selection of deleted items")
            await self._changed()
        return changed

    def attach(self, bus: EventBus) -> Subscription:
        """Follow ``WORKSPACE_CHOSEN`` events raised by other panels."""
        self.bus = self.bus or bus

        async def _on_chosen(event: FlowEvent) -> None:
            await self.select_workspace(event.entity_id)

        self._chosen_sub = bus.subscribe(_on_chosen, kinds=[EventKind.WORKSPACE_CHOSEN])
        return self._chosen_sub

    def detach(self) -> None:
        if self._chosen_sub is not None:
            self._chosen_sub.close()
            self._chosen_sub = None
