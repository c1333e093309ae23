# flowdesk/models/collection.py
"""
Collection names and the model stored in each.
"""
from __future__ import annotations
from enum import Enum
from typing import Dict, Optional, Type

from flowdesk.models.activity import Activity
from flowdesk.models.base import Entity
from flowdesk.models.collaborator import Collaborator
from flowdesk.models.note import Note
from flowdesk.models.project import Project
from flowdesk.models.task import Task
from flowdesk.models.user import User
from flowdesk.models.workspace import Workspace


class Collection(str, Enum):
    PROJECTS = "projects"
    WORKSPACES = "workspaces"
    TASKS = "tasks"
    NOTES = "notes"
    USERS = "users"
    COLLABORATORS = "collaborators"
    ACTIVITY = "activity"

    @property
    def singular(self) -> str:
        return "activity" if self is Collection.ACTIVITY else self.value[:-1]


MODELS: Dict[Collection, Type[Entity]] = {
    Collection.PROJECTS: Project,
    Collection.WORKSPACES: Workspace,
    Collection.TASKS: Task,
    Collection.NOTES: Note,
    Collection.USERS: User,
    Collection.COLLABORATORS: Collaborator,
    Collection.ACTIVITY: Activity,
}

# attribute searched by the "contains" queries
DISPLAY_FIELDS: Dict[Collection, Optional[str]] = {
    Collection.PROJECTS: "name",
    Collection.WORKSPACES: "name",
    Collection.TASKS: "title",
    Collection.NOTES: "title",
    Collection.USERS: "name",
    Collection.COLLABORATORS: None,
    Collection.ACTIVITY: "item_name",
}


def model_for(collection: Collection) -> Type[Entity]:
    return MODELS[Collection(collection)]
