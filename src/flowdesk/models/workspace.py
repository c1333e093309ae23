# flowdesk/models/workspace.py
from __future__ import annotations
from typing import Optional

from flowdesk.models.base import Entity


class Workspace(Entity):
    """A workspace always belongs to exactly one project."""
    name: str
    description: Optional[str] = None
    project_id: str
