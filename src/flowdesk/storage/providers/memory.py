# flowdesk/storage/providers/memory.py
"""
Async in-memory persistence adapter.
"""
import copy
from typing import Dict, Optional

from flowdesk.storage.base import Snapshot, SnapshotAdapter


class InMemoryAdapter(SnapshotAdapter):
    """Keeps the snapshot in a dictionary.

    Nothing survives the process; useful for tests and throwaway sessions.
    Records are deep-copied in and out so callers never alias stored rows.
    """

    def __init__(self, initial: Optional[Snapshot] = None) -> None:
        super().__init__()
        self._data: Snapshot = copy.deepcopy(initial) if initial else {}

    async def _read_snapshot(self) -> Snapshot:
        return copy.deepcopy(self._data)

    async def _write_snapshot(self, snapshot: Snapshot) -> None:
        self._data = copy.deepcopy(snapshot)

    def dump(self) -> Dict[str, list]:
        """Synchronous copy of the stored snapshot."""
        return copy.deepcopy(self._data)

    async def clear(self) -> None:
        """Async: drop every stored record."""
        async with self._lock:
            self._data = {}
