# economy/wagers.py
from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Any, List, Tuple

from . import (
    MIN_BET, GUESS_PAYOUT, FLIP_PAYOUT, SLOTS_BET,
    SLOT_WEIGHTS, SLOT_TRIPLES, SLOT_TRIPLE_DEFAULT, SLOT_PAIR,
)
from .errors import ValidationError, InsufficientFundsError

FLIP_SIDES = ("heads", "tails")
_FLIP_ALIASES = {"h": "heads", "heads": "heads", "t": "tails", "tails": "tails"}


@dataclass(frozen=True)
class GameResult:
    won: bool
    result: Any
    delta: int
    bet: int


@dataclass(frozen=True)
class ReelResult:
    reels: Tuple[str, str, str]
    multiplier: float
    payout: int
    delta: int


# -------- helpers --------
def _parse_int(value, what: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{what} must be a whole number.")
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError(f"{what} must be a whole number.") from None


def _check_bet(bet) -> int:
    bet = _parse_int(bet, "Bet")
    if bet < MIN_BET:
        raise ValidationError(f"Minimum bet is {MIN_BET} diamonds!")
    return bet


def _check_funds(acct, needed: int) -> None:
    if acct.balance < needed:
        raise InsufficientFundsError(acct.balance, needed)


def _settle(acct, bet: int, payout: int) -> int:
    """Guess/flip settlement: a win credits the payout on top of the stake."""
    if payout:
        acct.credit(payout)
        return payout
    acct.debit(bet)
    return -bet


def parse_flip_choice(choice: str) -> str:
    side = _FLIP_ALIASES.get(str(choice).strip().lower())
    if side is None:
        raise ValidationError("Choice must be 'heads', 'tails', 'H', or 'T'!")
    return side


# =================== Guess (dice) ===================
def play_guess(ledger, user_id, guess, bet, rng: random.Random) -> GameResult:
    guess = _parse_int(guess, "Guess")
    if not 1 <= guess <= 6:
        raise ValidationError("Guess must be between 1 and 6!")
    bet = _check_bet(bet)
    acct = ledger.get_or_create_account(user_id)
    _check_funds(acct, bet)

    roll = rng.randint(1, 6)
    won = guess == roll
    delta = _settle(acct, bet, bet * GUESS_PAYOUT if won else 0)
    return GameResult(won=won, result=roll, delta=delta, bet=bet)


# =================== Coin flip ===================
def play_coin_flip(ledger, user_id, choice, bet, rng: random.Random) -> GameResult:
    side = parse_flip_choice(choice)
    bet = _check_bet(bet)
    acct = ledger.get_or_create_account(user_id)
    _check_funds(acct, bet)

    outcome = rng.choice(FLIP_SIDES)
    won = side == outcome
    delta = _settle(acct, bet, bet * FLIP_PAYOUT if won else 0)
    return GameResult(won=won, result=outcome, delta=delta, bet=bet)


# =================== Slots ===================
def _weighted_symbol(rng: random.Random) -> str:
    total = sum(SLOT_WEIGHTS.values())
    r = rng.randrange(total)
    upto = 0
    for symbol, w in SLOT_WEIGHTS.items():
        upto += w
        if r < upto:
            return symbol
    return next(iter(SLOT_WEIGHTS))


def reel_multiplier(reels: List[str]) -> float:
    a, b, c = reels
    if a == b == c:
        return SLOT_TRIPLES.get(a, SLOT_TRIPLE_DEFAULT)
    if a == b or b == c or a == c:
        return SLOT_PAIR
    return 0


def play_reels(ledger, user_id, rng: random.Random) -> ReelResult:
    acct = ledger.get_or_create_account(user_id)
    bet = SLOTS_BET
    _check_funds(acct, bet)

    reels = (_weighted_symbol(rng), _weighted_symbol(rng), _weighted_symbol(rng))
    mult = reel_multiplier(list(reels))
    payout = math.floor(bet * mult)
    if payout > 0:
        # the stake comes out of the payout, but earned counts the full payout
        acct.balance += payout - bet
        acct.total_earned += payout
        delta = payout - bet
    else:
        acct.debit(bet)
        delta = -bet
    return ReelResult(reels=reels, multiplier=mult, payout=payout, delta=delta)
