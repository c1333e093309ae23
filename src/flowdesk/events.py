# flowdesk/events.py
"""
In-process observer channel between the core and whatever renders it.

Views subscribe for the kinds they care about and close their subscription
when they go away; a closed subscription never sees another event.
"""
from __future__ import annotations
import inspect
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set, Union
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    ENTITY_CREATED = "entity_created"
    ENTITY_UPDATED = "entity_updated"
    ENTITY_DELETED = "entity_deleted"
    SELECTION_CHANGED = "selection_changed"
    DATA_CHANGED = "data_changed"
    WORKSPACE_CHOSEN = "workspace_chosen"
    NOTIFICATION = "notification"


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class FlowEvent(BaseModel):
    """Something that happened in the core."""
    model_config = ConfigDict(frozen=True)

    kind: EventKind
    collection: Optional[str] = None
    entity_id: Optional[str] = None
    level: Optional[NotificationLevel] = None
    message: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


Callback = Callable[[FlowEvent], Union[None, Awaitable[None]]]


class Subscription:
    """Handle returned by ``EventBus.subscribe``."""

    def __init__(self, bus: "EventBus", callback: Callback, kinds: Optional[Set[EventKind]]):
        self._bus = bus
        self.callback = callback
        self.kinds = kinds
        self.closed = False

    def wants(self, event: FlowEvent) -> bool:
        return not self.closed and (self.kinds is None or event.kind in self.kinds)

    def close(self) -> None:
        self.closed = True
        self._bus._discard(self)


class EventBus:
    """Delivers events to subscribers in subscription order."""

    def __init__(self, keep_history: bool = False) -> None:
        self._subscriptions: List[Subscription] = []
        self.history: List[FlowEvent] = []
        self.keep_history = keep_history

    def subscribe(self, callback: Callback, kinds: Optional[Iterable[EventKind]] = None) -> Subscription:
        sub = Subscription(self, callback, set(kinds) if kinds is not None else None)
        self._subscriptions.append(sub)
        return sub

    def _discard(self, sub: Subscription) -> None:
        if sub in self._subscriptions:
            self._subscriptions.remove(sub)

    async def publish(self, event: FlowEvent) -> None:
        """Deliver ``event``; a failing subscriber is logged and skipped."""
        if self.keep_history:
            self.history.append(event)
        for sub in list(self._subscriptions):
            if not sub.wants(event):
                continue
            try:
                result = sub.callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Subscriber %r failed on %s", sub.callback, event.kind.value)

    async def notify(self, level: NotificationLevel, message: str, **data: Any) -> None:
        """Publish a user-facing notification (the toast of a UI)."""
        await self.publish(FlowEvent(
            kind=EventKind.NOTIFICATION, level=level, message=message, data=data))
