# flowdesk/storage/providers/__init__.py
from flowdesk.storage.providers.file import FileAdapter, create_file_adapter
from flowdesk.storage.providers.memory import InMemoryAdapter
from flowdesk.storage.providers.redis import RedisAdapter

__all__ = ["FileAdapter", "InMemoryAdapter", "RedisAdapter", "create_file_adapter"]
