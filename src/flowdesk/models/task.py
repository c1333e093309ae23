# flowdesk/models/task.py
from __future__ import annotations
from datetime import date
from enum import Enum
from typing import Any, Optional
from pydantic import field_validator

from flowdesk.models.base import Entity, calendar_day


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class Task(Entity):
    """A task, optionally inside a workspace and optionally a subtask."""
    title: str
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    due_date: Optional[date] = None
    parent_task_id: Optional[str] = None
    workspace_id: Optional[str] = None

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_as_calendar_day(cls, value: Any) -> Any:
        return calendar_day(value)

    @field_validator("parent_task_id", "workspace_id", mode="before")
    @classmethod
    def _blank_ref_is_none(cls, value: Any) -> Any:
        return value or None

    @property
    def is_subtask(self) -> bool:
        return self.parent_task_id is not None

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED
