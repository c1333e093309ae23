# flowdesk/exceptions.py
"""
Exception hierarchy for FlowDesk.

Everything raised on purpose derives from ``FlowDeskError`` so the mutation
engine can turn it into a user-facing result.
"""
from __future__ import annotations
from typing import List, Optional

from pydantic import BaseModel, Field


class RecordFailure(BaseModel):
    """One record a batch write could not apply."""
    collection: str
    record_id: Optional[str] = None
    message: str
    errors: List[str] = Field(default_factory=list)

    def describe(self) -> str:
        target = self.record_id or "new record"
        detail = "; ".join(self.errors) if self.errors else self.message
        return f"{self.collection}/{target}: {detail}"


class FlowDeskError(Exception):
    """Base class for all FlowDesk errors."""
    kind = "error"


class ValidationError(FlowDeskError):
    """Raised when submitted data is rejected before any persistence call."""
    kind = "validation"


class NotFoundError(FlowDeskError):
    """Raised when a referenced entity or user does not exist."""
    kind = "not_found"


class ConflictError(FlowDeskError):
    """Raised when a write would violate a uniqueness rule."""
    kind = "conflict"


class BusyError(FlowDeskError):
    """Raised when the same operation is submitted while still outstanding."""
    kind = "busy"


class StorageError(FlowDeskError):
    """Raised by persistence providers when the backing store fails."""
    kind = "storage"


class PersistenceError(FlowDeskError):
    """Raised when a write-through to the persistence adapter fails."""
    kind = "persistence"

    def __init__(self, message: str, failures: Optional[List[RecordFailure]] = None):
        super().__init__(message)
        self.failures: List[RecordFailure] = list(failures or [])
