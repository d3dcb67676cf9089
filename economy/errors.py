# economy/errors.py
from __future__ import annotations

import datetime
from typing import Optional


class EconomyError(Exception):
    """Expected, user-facing outcome of an economy operation."""


class ValidationError(EconomyError):
    pass


class CooldownError(EconomyError):
    def __init__(self, next_claim: datetime.datetime):
        self.next_claim = next_claim
        super().__init__(f"Already claimed. Next claim at {next_claim.isoformat()}.")


class InsufficientFundsError(EconomyError):
    def __init__(self, balance: int, needed: int):
        self.balance = balance
        self.needed = needed
        super().__init__(f"Insufficient points! You have {balance} but need {needed}.")


class UnknownCardError(EconomyError):
    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Unknown gift card: {kind!r}.")


class NothingToConvertError(EconomyError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "You have no redeemed gift cards to convert back.")


class PersistenceError(EconomyError):
    """Snapshot could not be read, parsed or written."""
