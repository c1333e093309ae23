# flowdesk/models/user.py
from __future__ import annotations
from typing import Any, Optional
from pydantic import field_validator

from flowdesk.models.base import Entity


class User(Entity):
    """A registered user; ``email`` is the invitation match key."""
    name: str
    email: str
    avatar: Optional[str] = None
    is_online: bool = False
    last_seen: Optional[str] = None
    role: str = "member"

    @field_validator("email", mode="before")
    @classmethod
    def _strip_email(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    def matches_email(self, email: str) -> bool:
        return self.email.casefold() == email.strip().casefold()
