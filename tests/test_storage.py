import asyncio
import json
import threading
import time

import pytest

from economy import Ledger, MemoryStorage, PersistenceError, SnapshotWriter


class FailingStorage(MemoryStorage):
    def __init__(self):
        super().__init__()
        self.fail = True

    def write(self, data):
        if self.fail:
            raise PersistenceError("disk full")
        super().write(data)


class SlowStorage(MemoryStorage):
    """Records whether two writes ever ran at the same time."""

    def __init__(self):
        super().__init__()
        self._guard = threading.Lock()
        self.active = 0
        self.overlap = False

    def write(self, data):
        with self._guard:
            self.active += 1
            self.overlap = self.overlap or self.active > 1
        time.sleep(0.2)
        super().write(data)
        with self._guard:
            self.active -= 1


@pytest.mark.asyncio
async def test_flush_writes_current_state():
    ledger = Ledger(storage=MemoryStorage())
    ledger.get_or_create_account("a").balance = 3
    assert await SnapshotWriter(ledger).flush()
    assert json.loads(ledger.storage.data)["users"]["a"]["points"] == 3


@pytest.mark.asyncio
async def test_back_to_back_flushes_keep_last_state():
    ledger = Ledger(storage=MemoryStorage())
    saver = SnapshotWriter(ledger)
    acct = ledger.get_or_create_account("a")
    for n in range(5):
        acct.balance = n
        saver.request()
    await saver.drain()
    assert ledger.storage.writes == 5
    assert json.loads(ledger.storage.data)["users"]["a"]["points"] == 4


@pytest.mark.asyncio
async def test_failed_flush_is_retried_later():
    ledger = Ledger(storage=FailingStorage())
    saver = SnapshotWriter(ledger)
    assert not await saver.flush()
    ledger.storage.fail = False
    assert await saver.flush()
    assert ledger.storage.writes == 1


@pytest.mark.asyncio
async def test_flush_without_storage_is_noop():
    assert not await SnapshotWriter(Ledger()).flush()


@pytest.mark.asyncio
async def test_cancelled_flush_holds_lock_until_write_finishes():
    storage = SlowStorage()
    saver = SnapshotWriter(Ledger(storage=storage))
    first = asyncio.ensure_future(saver.flush())
    await asyncio.sleep(0.05)
    first.cancel()
    with pytest.raises(asyncio.CancelledError):
        await first
    assert storage.writes == 1
    assert await saver.flush()
    assert not storage.overlap
    assert storage.writes == 2
