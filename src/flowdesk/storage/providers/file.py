# flowdesk/storage/providers/file.py
"""
Async local-mode persistence: the whole snapshot lives in one JSON blob.
"""
import json
import logging
from pathlib import Path
from typing import Union

import aiofiles
import aiofiles.os

from flowdesk.exceptions import StorageError
from flowdesk.storage.base import Snapshot, SnapshotAdapter

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "flowdesk-data"


class FileAdapter(SnapshotAdapter):
    """
    Stores every collection in ``<directory>/<storage_key>.json``.

    Reads deserialize the blob wholesale and writes replace it wholesale,
    through a temporary file so a crash never leaves half a blob behind.
    """

    def __init__(self,
                 directory: Union[str, Path],
                 storage_key: str = DEFAULT_STORAGE_KEY):
        """
        Initialize the file adapter.

        Args:
            directory: Directory holding the blob (created if missing)
            storage_key: Fixed key naming the blob file
        """
        super().__init__()
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.storage_key = storage_key

    @property
    def path(self) -> Path:
        return self.directory / f"{self.storage_key}.json"

    async def _read_snapshot(self) -> Snapshot:
        if not self.path.exists():
            return {}
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                data = json.loads(await f.read())
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Failed to read {self.path}: {e}")
            raise StorageError(f"Failed to read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Unexpected blob layout in {self.path}")
        return data

    async def _write_snapshot(self, snapshot: Snapshot) -> None:
        tmp_path = self.path.with_suffix(".json.tmp")
        try:
            json_str = json.dumps(snapshot, indent=2)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(json_str)
            await aiofiles.os.replace(tmp_path, self.path)
        except (OSError, TypeError) as e:
            logger.error(f"Failed to write {self.path}: {e}")
            raise StorageError(f"Failed to write {self.path}: {e}") from e


async def create_file_adapter(
    directory: Union[str, Path],
    storage_key: str = DEFAULT_STORAGE_KEY,
) -> FileAdapter:
    """
    Create a file adapter.

    Args:
        directory: Directory where the blob is stored
        storage_key: Name of the blob

    Returns:
        A configured FileAdapter
    """
    return FileAdapter(directory, storage_key)
