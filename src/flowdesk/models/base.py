# flowdesk/models/base.py
"""
Shared base for every persisted entity.
"""
from __future__ import annotations
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def calendar_day(value: Any) -> Any:
    """Reduce a date-like value to the calendar day it names.

    Aware datetimes are converted to local time first; ISO strings keep the
    date they spell out, whatever time or offset follows it.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip().split("T", 1)[0])
    return value


class Entity(BaseModel):
    """Identifier, owner and audit timestamps common to all entities."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    owner_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def label(self) -> str:
        """Human readable name used in notifications and the activity feed."""
        return getattr(self, "name", None) or getattr(self, "title", None) or self.id

    def to_record(self) -> Dict[str, Any]:
        """Flat wire record: camelCase keys, ISO dates, joined tags."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Entity":
        return cls.model_validate(record)
