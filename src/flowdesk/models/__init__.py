# flowdesk/models/__init__.py
from flowdesk.models.activity import Activity
from flowdesk.models.base import Entity, calendar_day, utcnow
from flowdesk.models.collaborator import Collaborator, Permission
from flowdesk.models.collection import DISPLAY_FIELDS, MODELS, Collection, model_for
from flowdesk.models.item_ref import ItemRef, ItemType, ProjectRef, WorkspaceRef, item_ref
from flowdesk.models.note import Note, normalize_tags
from flowdesk.models.project import Project, ProjectCategory, ProjectStatus
from flowdesk.models.task import Task, TaskPriority, TaskStatus
from flowdesk.models.user import User
from flowdesk.models.workspace import Workspace

__all__ = [
    "Activity",
    "Collaborator",
    "Collection",
    "DISPLAY_FIELDS",
    "Entity",
    "ItemRef",
    "ItemType",
    "MODELS",
    "Note",
    "Permission",
    "Project",
    "ProjectCategory",
    "ProjectRef",
    "ProjectStatus",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "User",
    "Workspace",
    "WorkspaceRef",
    "calendar_day",
    "item_ref",
    "model_for",
    "normalize_tags",
    "utcnow",
]
