# flowdesk/__init__.py
"""
FlowDesk core: entity store, relationship queries and cascading mutations.
"""
from flowdesk.engine import MutationEngine, MutationResult
from flowdesk.events import EventBus, EventKind, FlowEvent
from flowdesk.resolver import RelationshipResolver
from flowdesk.selection import EntityTab, SelectionState
from flowdesk.store import EntityStore

__all__ = [
    "EntityStore",
    "EntityTab",
    "EventBus",
    "EventKind",
    "FlowEvent",
    "MutationEngine",
    "MutationResult",
    "RelationshipResolver",
    "SelectionState",
]
