import datetime

import pytest

from economy import CooldownError, GlobalSettings, Ledger, claim_daily, claim_status
from economy.rewards import NEVER_CLAIMED, ON_COOLDOWN, STREAK_CONTINUES, STREAK_RESET, streak_multiplier

from .conftest import T0, hours


def test_first_claim_starts_streak(ledger):
    res = claim_daily(ledger, "u1", T0)
    acct = ledger.get_or_create_account("u1")
    assert res.streak == 1
    assert res.reward == 55  # 50 * 1.1
    assert acct.balance == 55 and acct.total_earned == 55
    assert acct.last_claim == T0
    assert res.next_claim == hours(24)


def test_second_claim_inside_cooldown_is_rejected(ledger):
    claim_daily(ledger, "u1", T0)
    with pytest.raises(CooldownError) as exc:
        claim_daily(ledger, "u1", hours(23.5))
    assert exc.value.next_claim == hours(24)
    acct = ledger.get_or_create_account("u1")
    assert acct.balance == 55
    assert acct.streak == 1
    assert acct.last_claim == T0


def test_streak_sequence():
    ledger = Ledger()
    streaks = [claim_daily(ledger, "u1", hours(h)).streak for h in (0, 25, 75, 175)]
    assert streaks == [1, 2, 1, 1]


def test_streak_continues_on_back_to_back_days():
    ledger = Ledger()
    streaks = [claim_daily(ledger, "u1", hours(h)).streak for h in (0, 25, 50)]
    assert streaks == [1, 2, 3]
    assert ledger.get_or_create_account("u1").balance == 55 + 60 + 65


@pytest.mark.parametrize("elapsed, state", [
    (23.99, ON_COOLDOWN),
    (24, STREAK_CONTINUES),
    (36, STREAK_CONTINUES),
    (36.01, STREAK_RESET),
])
def test_claim_status_windows(ledger, elapsed, state):
    acct = ledger.get_or_create_account("u1")
    assert claim_status(acct, T0) == NEVER_CLAIMED
    acct.last_claim = T0
    assert claim_status(acct, hours(elapsed)) == state


def test_multiplier_is_capped():
    ledger = Ledger(settings=GlobalSettings(daily_reward=50, max_streak_multiplier=1.5))
    acct = ledger.get_or_create_account("u1")
    acct.streak = 40
    acct.last_claim = T0
    res = claim_daily(ledger, "u1", hours(30))
    assert res.streak == 41
    assert res.multiplier == 1.5
    assert res.reward == 75


def test_reward_is_floored():
    ledger = Ledger(settings=GlobalSettings(daily_reward=7))
    res = claim_daily(ledger, "u1", T0)
    assert res.reward == 7  # floor(7 * 1.1)


def test_streak_multiplier_grows_by_tenths():
    assert streak_multiplier(0, 3.0) == 1
    assert streak_multiplier(5, 3.0) == pytest.approx(1.5)
    assert streak_multiplier(25, 3.0) == 3.0


def test_naive_timestamps_are_read_as_utc():
    ledger = Ledger()
    naive = T0.replace(tzinfo=None)
    claim_daily(ledger, "u1", naive)
    assert ledger.get_or_create_account("u1").last_claim == T0

    restored = Ledger()
    restored.load_snapshot(ledger.save_snapshot())
    assert restored.users == ledger.users

    res = claim_daily(restored, "u1", naive + datetime.timedelta(hours=25))
    assert res.streak == 2
    with pytest.raises(CooldownError):
        claim_daily(restored, "u1", hours(26))
