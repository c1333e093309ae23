# flowdesk/storage/factory.py
"""
Pick a persistence adapter from settings.
"""
import logging

from flowdesk.config import Settings, StorageBackend
from flowdesk.storage.base import PersistenceAdapter
from flowdesk.storage.providers.file import FileAdapter
from flowdesk.storage.providers.memory import InMemoryAdapter
from flowdesk.storage.providers.redis import RedisAdapter

logger = logging.getLogger(__name__)


def create_adapter(settings: Settings) -> PersistenceAdapter:
    """Build the adapter named by ``settings.storage``."""
    if settings.storage is StorageBackend.FILE:
        logger.info("Using local blob %s/%s.json", settings.data_dir, settings.storage_key)
        return FileAdapter(settings.data_dir, settings.storage_key)
    if settings.storage is StorageBackend.REDIS:
        logger.info("Using redis record service at %s", settings.redis_url)
        return RedisAdapter.from_url(settings.redis_url, key_prefix=settings.redis_prefix)
    logger.info("Using in-memory storage; nothing will persist")
    return InMemoryAdapter()
