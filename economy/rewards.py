# economy/rewards.py
from __future__ import annotations

import datetime
import math
from dataclasses import dataclass

from . import STREAK_STEP, CLAIM_COOLDOWN_HOURS, STREAK_WINDOW_HOURS
from .errors import CooldownError
from .ledger import as_utc

NEVER_CLAIMED = "NEVER_CLAIMED"
ON_COOLDOWN = "ON_COOLDOWN"
STREAK_CONTINUES = "STREAK_CONTINUES"
STREAK_RESET = "STREAK_RESET"

COOLDOWN = datetime.timedelta(hours=CLAIM_COOLDOWN_HOURS)


@dataclass(frozen=True)
class ClaimResult:
    reward: int
    streak: int
    multiplier: float
    next_claim: datetime.datetime


def streak_multiplier(streak: int, cap: float) -> float:
    return min(1 + streak * STREAK_STEP, cap)


def claim_status(account, now: datetime.datetime) -> str:
    if account.last_claim is None:
        return NEVER_CLAIMED
    hours = (as_utc(now) - account.last_claim).total_seconds() / 3600
    if hours < CLAIM_COOLDOWN_HOURS:
        return ON_COOLDOWN
    if hours <= STREAK_WINDOW_HOURS:
        return STREAK_CONTINUES
    return STREAK_RESET


def claim_daily(ledger, user_id, now: datetime.datetime) -> ClaimResult:
    """Pay out the daily reward.

    Not idempotent: every call that clears the cooldown pays again, so
    callers must not retry on their own.
    """
    now = as_utc(now)
    acct = ledger.get_or_create_account(user_id)
    state = claim_status(acct, now)
    if state == ON_COOLDOWN:
        raise CooldownError(acct.last_claim + COOLDOWN)

    streak = acct.streak + 1 if state == STREAK_CONTINUES else 1
    settings = ledger.settings
    multiplier = streak_multiplier(streak, settings.max_streak_multiplier)
    reward = math.floor(settings.daily_reward * multiplier)

    acct.streak = streak
    acct.credit(reward)
    acct.last_claim = now
    return ClaimResult(reward=reward, streak=streak, multiplier=multiplier, next_claim=now + COOLDOWN)
