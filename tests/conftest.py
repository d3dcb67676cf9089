import datetime

import pytest

from economy import Ledger, MemoryStorage

T0 = datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)


class ScriptedRandom:
    """Hands out queued values instead of random ones."""

    def __init__(self, *values):
        self.values = list(values)

    def _next(self):
        return self.values.pop(0)

    def randint(self, a, b):
        v = self._next()
        assert a <= v <= b
        return v

    def choice(self, seq):
        v = self._next()
        assert v in seq
        return v

    def randrange(self, stop):
        v = self._next()
        assert 0 <= v < stop
        return v


@pytest.fixture
def ledger():
    return Ledger(storage=MemoryStorage())


@pytest.fixture
def funded(ledger):
    ledger.get_or_create_account("alice").balance = 1000
    return ledger


def hours(n):
    return T0 + datetime.timedelta(hours=n)
