# flowdesk/models/note.py
from __future__ import annotations
from typing import Any, Iterable, List, Optional, Union
from pydantic import Field, field_serializer, field_validator

from flowdesk.models.base import Entity


def normalize_tags(value: Union[str, Iterable[str], None]) -> List[str]:
    """Split comma separated tag input, trim it and drop empty or repeated tags.

    Already-normalised input comes back unchanged.
    """
    if value is None:
        return []
    if isinstance(value, str):
        parts = value.split(",")
    else:
        try:
            value = iter(value)
        except TypeError:
            raise ValueError(f"tags must be text or a list of text, not {type(value).__name__}") from None
        parts = [piece for item in value for piece in str(item).split(",")]

    tags: List[str] = []
    for part in parts:
        tag = part.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


class Note(Entity):
    """Free-form note with tags."""
    title: str
    content: str = ""
    tags: List[str] = Field(default_factory=list)
    workspace_id: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: Any) -> List[str]:
        return normalize_tags(value)

    @field_validator("workspace_id", mode="before")
    @classmethod
    def _blank_ref_is_none(cls, value: Any) -> Any:
        return value or None

    @field_serializer("tags", when_used="json")
    def _join_tags(self, tags: List[str]) -> str:
        return ",".join(tags)
