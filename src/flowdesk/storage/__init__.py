# flowdesk/storage/__init__.py
from flowdesk.storage.base import (
    REQUIRED_FIELDS,
    BatchResult,
    PersistenceAdapter,
    Record,
    RecordResult,
    SnapshotAdapter,
)
from flowdesk.storage.factory import create_adapter
from flowdesk.storage.providers.file import FileAdapter
from flowdesk.storage.providers.memory import InMemoryAdapter
from flowdesk.storage.providers.redis import RedisAdapter

__all__ = [
    "BatchResult",
    "FileAdapter",
    "InMemoryAdapter",
    "PersistenceAdapter",
    "REQUIRED_FIELDS",
    "Record",
    "RecordResult",
    "RedisAdapter",
    "SnapshotAdapter",
    "create_adapter",
]
