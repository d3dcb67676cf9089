# economy/ledger.py
from __future__ import annotations

import datetime
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from . import DAILY_REWARD, MAX_STREAK_MULTIPLIER, GIFT_CARDS
from .errors import PersistenceError

log = logging.getLogger(__name__)

# JSON layout:
# {
#   "users": {
#     "<user_id>": {
#       "points": int, "last_claim": iso | null, "streak": int,
#       "total_earned": int, "total_spent": int,
#       "gift_cards_redeemed": [ {"type", "name", "cost", "date"}, ... ]
#     }, ...
#   },
#   "settings": { "daily_reward", "max_streak_multiplier", "gift_cards": {...} },
#   "gift_card_requests": [ {...}, ... ]
# }


def _dt_out(value: Optional[datetime.datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def as_utc(dt: datetime.datetime) -> datetime.datetime:
    """Naive datetimes are taken to be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc)


def _dt_in(value: Any) -> Optional[datetime.datetime]:
    if value is None:
        return None
    return as_utc(datetime.datetime.fromisoformat(str(value).replace("Z", "+00:00")))


@dataclass(frozen=True)
class GiftCard:
    name: str
    cost: int
    emoji: str = "🎁"


@dataclass
class RedeemedCard:
    kind: str
    cost: int
    name: str = ""
    redeemed_at: Optional[datetime.datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "name": self.name, "cost": self.cost, "date": _dt_out(self.redeemed_at)}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RedeemedCard":
        card = cls(
            kind=str(d["type"]),
            cost=int(d["cost"]),
            name=str(d.get("name", "")),
            redeemed_at=_dt_in(d.get("date")),
        )
        if card.cost <= 0:
            raise ValueError(f"redeemed card {card.kind!r} has a non-positive cost")
        return card


@dataclass
class Account:
    balance: int = 0
    last_claim: Optional[datetime.datetime] = None
    streak: int = 0
    total_earned: int = 0
    total_spent: int = 0
    gift_cards: List[RedeemedCard] = field(default_factory=list)

    # move the audit counters together with the balance
    def credit(self, amount: int) -> None:
        self.balance += amount
        self.total_earned += amount

    def debit(self, amount: int) -> None:
        if amount > self.balance:
            raise ValueError(f"debit of {amount} exceeds balance {self.balance}")
        self.balance -= amount
        self.total_spent += amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "points": self.balance,
            "last_claim": _dt_out(self.last_claim),
            "streak": self.streak,
            "total_earned": self.total_earned,
            "total_spent": self.total_spent,
            "gift_cards_redeemed": [c.to_dict() for c in self.gift_cards],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Account":
        acct = cls(
            balance=int(d.get("points", 0)),
            last_claim=_dt_in(d.get("last_claim")),
            streak=int(d.get("streak", 0)),
            total_earned=int(d.get("total_earned", 0)),
            total_spent=int(d.get("total_spent", 0)),
            gift_cards=[RedeemedCard.from_dict(c) for c in d.get("gift_cards_redeemed") or []],
        )
        if min(acct.balance, acct.streak, acct.total_earned, acct.total_spent) < 0:
            raise ValueError("negative counter in account record")
        return acct


@dataclass
class GiftCardRequest:
    user_id: str
    kind: str
    name: str
    cost: int
    requested_at: Optional[datetime.datetime] = None
    status: str = "pending"  # pending | fulfilled | cancelled

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "card_type": self.kind,
            "card_name": self.name,
            "cost": self.cost,
            "timestamp": _dt_out(self.requested_at),
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GiftCardRequest":
        req = cls(
            user_id=str(d["user_id"]),
            kind=str(d["card_type"]),
            name=str(d.get("card_name", "")),
            cost=int(d["cost"]),
            requested_at=_dt_in(d.get("timestamp")),
            status=str(d.get("status", "pending")),
        )
        if req.cost <= 0:
            raise ValueError("gift card request with a non-positive cost")
        return req


def _default_catalog() -> Dict[str, GiftCard]:
    return {kind: GiftCard(**card) for kind, card in GIFT_CARDS.items()}


@dataclass
class GlobalSettings:
    daily_reward: int = DAILY_REWARD
    max_streak_multiplier: float = MAX_STREAK_MULTIPLIER
    gift_cards: Dict[str, GiftCard] = field(default_factory=_default_catalog)

    def __post_init__(self):
        if self.daily_reward <= 0:
            raise ValueError("daily_reward must be positive")
        if self.max_streak_multiplier < 1.0:
            raise ValueError("max_streak_multiplier must be >= 1.0")
        for kind, card in self.gift_cards.items():
            if card.cost <= 0:
                raise ValueError(f"gift card {kind!r} must have a positive cost")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "daily_reward": self.daily_reward,
            "max_streak_multiplier": self.max_streak_multiplier,
            "gift_cards": {
                kind: {"name": c.name, "cost": c.cost, "emoji": c.emoji}
                for kind, c in self.gift_cards.items()
            },
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any], fallback: Optional["GlobalSettings"] = None) -> "GlobalSettings":
        base = fallback or cls()
        cards = d.get("gift_cards")
        return cls(
            daily_reward=int(d.get("daily_reward", base.daily_reward)),
            max_streak_multiplier=float(d.get("max_streak_multiplier", base.max_streak_multiplier)),
            gift_cards=(
                {k: GiftCard(name=str(c["name"]), cost=int(c["cost"]), emoji=str(c.get("emoji", "🎁")))
                 for k, c in cards.items()}
                if cards else dict(base.gift_cards)
            ),
        )


class Ledger:
    """In-memory account store with a pluggable snapshot backend.

    One instance is built at startup and handed to every cog; nothing here
    touches the disk except `load()` and `flush()`, which go through `storage`.
    """

    def __init__(self, storage=None, settings: Optional[GlobalSettings] = None):
        self.storage = storage
        self.settings = settings or GlobalSettings()
        self.users: Dict[str, Account] = {}
        self.requests: List[GiftCardRequest] = []

    def __len__(self) -> int:
        return len(self.users)

    def __contains__(self, user_id) -> bool:
        return str(user_id) in self.users

    # ------------ accounts ------------
    def get_or_create_account(self, user_id) -> Account:
        key = str(user_id)
        acct = self.users.get(key)
        if acct is None:
            acct = self.users[key] = Account()
        return acct

    # ------------ snapshots ------------
    def save_snapshot(self) -> bytes:
        doc = {
            "users": {uid: acct.to_dict() for uid, acct in self.users.items()},
            "settings": self.settings.to_dict(),
            "gift_card_requests": [r.to_dict() for r in self.requests],
        }
        return json.dumps(doc, ensure_ascii=False, indent=2, sort_keys=True).encode("utf-8")

    def load_snapshot(self, data: Optional[bytes]) -> None:
        """Replace the store with a parsed snapshot; all-or-nothing."""
        if not data:
            self.users, self.requests = {}, []
            return
        try:
            doc = json.loads(data)
            if not isinstance(doc, dict):
                raise ValueError("snapshot root must be an object")
            users = {str(uid): Account.from_dict(rec) for uid, rec in (doc.get("users") or {}).items()}
            settings = GlobalSettings.from_dict(doc.get("settings") or {}, fallback=self.settings)
            requests = [GiftCardRequest.from_dict(r) for r in doc.get("gift_card_requests") or []]
        except (ValueError, TypeError, KeyError, AttributeError, RecursionError) as e:
            raise PersistenceError(f"malformed snapshot: {e}") from e
        self.users, self.settings, self.requests = users, settings, requests

    # ------------ storage backend ------------
    def load(self) -> None:
        """Load from storage; a broken snapshot leaves the store empty."""
        if self.storage is None:
            return
        try:
            self.load_snapshot(self.storage.read())
        except PersistenceError as e:
            log.error("Could not load ledger, starting empty: %s", e)
            self.users, self.requests = {}, []
            return
        log.info("Loaded data for %d users", len(self.users))

    def flush(self) -> None:
        if self.storage is None:
            return
        self.storage.write(self.save_snapshot())
