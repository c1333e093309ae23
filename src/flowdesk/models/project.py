# flowdesk/models/project.py
from __future__ import annotations
from enum import Enum
from typing import Optional

from flowdesk.models.base import Entity


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class ProjectCategory(str, Enum):
    PERSONAL = "personal"
    WORK = "work"
    EDUCATION = "education"
    HOBBY = "hobby"
    OTHER = "other"


class Project(Entity):
    """Top-level container; owns workspaces."""
    name: str
    description: Optional[str] = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    category: ProjectCategory = ProjectCategory.PERSONAL
