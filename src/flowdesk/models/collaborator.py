# flowdesk/models/collaborator.py
from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from pydantic import Field, model_validator

from flowdesk.models.base import Entity, utcnow
from flowdesk.models.item_ref import ItemRef, ItemType


class Permission(str, Enum):
    VIEWER = "viewer"
    EDITOR = "editor"


class Collaborator(Entity):
    """A user granted access to a project or workspace."""
    user_id: str
    item: ItemRef
    permission: Permission = Permission.EDITOR
    invited_by: Optional[str] = None
    invited_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="before")
    @classmethod
    def _unflatten_item(cls, data: Any) -> Any:
        """Accept the flat itemId/itemType pair used by stored records."""
        if not isinstance(data, dict) or "item" in data:
            return data
        item_id = data.get("itemId", data.get("item_id"))
        item_type = data.get("itemType", data.get("item_type"))
        if item_id is None or item_type is None:
            return data
        data = {
            k: v for k, v in data.items()
            if k not in ("itemId", "item_id", "itemType", "item_type")
        }
        data["item"] = {"kind": getattr(item_type, "value", item_type), "id": item_id}
        return data

    @property
    def item_id(self) -> str:
        return self.item.id

    @property
    def item_type(self) -> ItemType:
        return ItemType(self.item.kind)

    def to_record(self) -> Dict[str, Any]:
        record = super().to_record()
        item = record.pop("item")
        record["itemId"] = item["id"]
        record["itemType"] = item["kind"]
        return record
