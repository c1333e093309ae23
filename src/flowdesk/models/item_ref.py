# flowdesk/models/item_ref.py
"""
Typed references to the items collaborators can be attached to.

On the wire a collaborator stores a flat ``(itemId, itemType)`` pair; in
memory it is one of the reference classes below, discriminated on ``kind``.
"""
from __future__ import annotations
from enum import Enum
from typing import Annotated, Literal, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as ModelValidationError

from flowdesk.exceptions import ValidationError


class ItemType(str, Enum):
    PROJECT = "project"
    WORKSPACE = "workspace"


class ProjectRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["project"] = "project"
    id: str


class WorkspaceRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["workspace"] = "workspace"
    id: str


ItemRef = Annotated[Union[ProjectRef, WorkspaceRef], Field(discriminator="kind")]


def item_ref(item_type: Union[ItemType, str], item_id: str) -> Union[ProjectRef, WorkspaceRef]:
    """Build the reference for a flat ``(item_type, item_id)`` pair."""
    try:
        kind = ItemType(item_type)
    except ValueError:
        raise ValidationError(f"Unknown item type: {item_type!r}") from None
    model = ProjectRef if kind is ItemType.PROJECT else WorkspaceRef
    try:
        return model(id=item_id)
    except ModelValidationError:
        raise ValidationError(f"Invalid {kind.value} id: {item_id!r}") from None
