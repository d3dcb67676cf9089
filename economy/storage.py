# economy/storage.py
from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional

from .errors import PersistenceError

log = logging.getLogger(__name__)


class JsonFileStorage:
    """Snapshot bytes on disk. Writes are atomic (tmp file + replace)."""

    def __init__(self, path: str):
        self.path = path

    def read(self) -> Optional[bytes]:
        if not os.path.exists(self.path):
            log.info("No existing data file at %s, starting fresh", self.path)
            return None
        try:
            with open(self.path, "rb") as f:
                return f.read()
        except OSError as e:
            raise PersistenceError(f"could not read {self.path}: {e}") from e

    def write(self, data: bytes) -> None:
        tmp = self.path + ".tmp"
        try:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            with open(tmp, "wb") as f:
                f.write(data)
            os.replace(tmp, self.path)
        except OSError as e:
            raise PersistenceError(f"could not write {self.path}: {e}") from e


class MemoryStorage:
    """Keeps the last snapshot in memory (tests, dry runs)."""

    def __init__(self, data: Optional[bytes] = None):
        self.data = data
        self.writes = 0

    def read(self) -> Optional[bytes]:
        return self.data

    def write(self, data: bytes) -> None:
        self.data = data
        self.writes += 1


class SnapshotWriter:
    """Flushes a ledger without blocking the event loop.

    The snapshot is serialized on the loop (so no command can mutate it
    half-way) and written from a worker thread. Writes are serialized by a
    lock; a failed write is logged and picked up by the next flush.
    """

    def __init__(self, ledger):
        self.ledger = ledger
        self._lock = asyncio.Lock()
        self._pending: set = set()

    async def flush(self) -> bool:
        storage = self.ledger.storage
        if storage is None:
            return False
        async with self._lock:
            data = self.ledger.save_snapshot()
            write = asyncio.ensure_future(asyncio.to_thread(storage.write, data))
            try:
                await asyncio.shield(write)
            except asyncio.CancelledError:
                # the worker thread can't be stopped; hold the lock until it's done
                await asyncio.wait([write])
                if not write.cancelled() and write.exception() is not None:
                    log.warning("ledger flush failed: %s", write.exception())
                raise
            except PersistenceError as e:
                log.warning("ledger flush failed: %s", e)
                return False
        return True

    def request(self) -> asyncio.Task:
        """Fire-and-forget flush, for use right after a mutating command."""
        task = asyncio.get_running_loop().create_task(self.flush())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
