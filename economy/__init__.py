# economy/__init__.py
from __future__ import annotations

# ---------- Daily claims ----------
DAILY_REWARD = 50
MAX_STREAK_MULTIPLIER = 3.0
STREAK_STEP = 0.1          # +10% per consecutive day
CLAIM_COOLDOWN_HOURS = 24
STREAK_WINDOW_HOURS = 36   # miss this and the streak starts over

# ---------- Games ----------
MIN_BET = 10
GUESS_PAYOUT = 5
FLIP_PAYOUT = 2
SLOTS_BET = 30

# relative weights, normalized by their total
SLOT_WEIGHTS = {
    "cherry": 30,
    "lemon": 25,
    "orange": 20,
    "diamond": 15,
    "star": 8,
    "clover": 2,
}
SLOT_TRIPLES = {"diamond": 10, "star": 8, "clover": 12}
SLOT_TRIPLE_DEFAULT = 3
SLOT_PAIR = 1.5

# ---------- Gift cards ----------
CONVERT_BACK_RATE = 0.8

GIFT_CARDS = {
    "steam":   {"name": "Steam Gift Card",      "cost": 1000, "emoji": "🎮"},
    "amazon":  {"name": "Amazon Gift Card",     "cost": 1500, "emoji": "📦"},
    "spotify": {"name": "Spotify Premium",      "cost": 800,  "emoji": "🎵"},
    "netflix": {"name": "Netflix Subscription", "cost": 1200, "emoji": "🎬"},
    "google":  {"name": "Google Play Card",     "cost": 900,  "emoji": "📱"},
}

from .errors import (
    EconomyError, ValidationError, CooldownError, InsufficientFundsError,
    UnknownCardError, NothingToConvertError, PersistenceError,
)
from .ledger import Account, GiftCard, GiftCardRequest, GlobalSettings, Ledger, RedeemedCard
from .storage import JsonFileStorage, MemoryStorage, SnapshotWriter
from .rewards import ClaimResult, claim_daily, claim_status
from .wagers import GameResult, ReelResult, play_guess, play_coin_flip, play_reels
from .transfers import (
    transfer, redeem_gift_card, convert_back,
    leaderboard, pending_requests, fulfil_requests,
)

__all__ = [
    "DAILY_REWARD", "MAX_STREAK_MULTIPLIER", "MIN_BET", "SLOTS_BET",
    "SLOT_WEIGHTS", "GIFT_CARDS", "CONVERT_BACK_RATE",
    "EconomyError", "ValidationError", "CooldownError", "InsufficientFundsError",
    "UnknownCardError", "NothingToConvertError", "PersistenceError",
    "Account", "GiftCard", "GiftCardRequest", "GlobalSettings", "Ledger", "RedeemedCard",
    "JsonFileStorage", "MemoryStorage", "SnapshotWriter",
    "ClaimResult", "claim_daily", "claim_status",
    "GameResult", "ReelResult", "play_guess", "play_coin_flip", "play_reels",
    "transfer", "redeem_gift_card", "convert_back",
    "leaderboard", "pending_requests", "fulfil_requests",
]
