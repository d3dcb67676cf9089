# economy/transfers.py
from __future__ import annotations

import datetime
import math
from typing import List, Optional, Tuple

from . import CONVERT_BACK_RATE
from .errors import (
    ValidationError, InsufficientFundsError,
    UnknownCardError, NothingToConvertError,
)
from .ledger import Account, GiftCardRequest, RedeemedCard, as_utc


# ------------ transfers ------------
def transfer(ledger, sender_id, recipient_id, amount: int) -> None:
    sender_id, recipient_id = str(sender_id), str(recipient_id)
    if sender_id == recipient_id:
        raise ValidationError("You can't transfer points to yourself!")
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError("Amount must be a positive whole number.")
    sender = ledger.get_or_create_account(sender_id)
    if sender.balance < amount:
        raise InsufficientFundsError(sender.balance, amount)

    recipient = ledger.get_or_create_account(recipient_id)
    sender.debit(amount)
    recipient.credit(amount)


# ------------ gift cards ------------
def redeem_gift_card(ledger, user_id, kind: str, now: Optional[datetime.datetime] = None) -> RedeemedCard:
    """Buy a gift card and queue it for an admin to deliver.

    Redemption does not count toward total_spent; convert_back then credits
    total_earned. Both are kept that way so existing totals stay stable.
    """
    key = str(kind).strip().lower()
    card = ledger.settings.gift_cards.get(key)
    if card is None:
        raise UnknownCardError(str(kind))
    acct = ledger.get_or_create_account(user_id)
    if acct.balance < card.cost:
        raise InsufficientFundsError(acct.balance, card.cost)

    now = as_utc(now) if now else datetime.datetime.now(datetime.timezone.utc)
    redeemed = RedeemedCard(kind=key, cost=card.cost, name=card.name, redeemed_at=now)
    acct.balance -= card.cost
    acct.gift_cards.append(redeemed)
    ledger.requests.append(GiftCardRequest(
        user_id=str(user_id), kind=key, name=card.name, cost=card.cost, requested_at=now,
    ))
    return redeemed


def convert_back(ledger, user_id) -> int:
    """Turn every redeemed card back into points at CONVERT_BACK_RATE."""
    acct = ledger.get_or_create_account(user_id)
    if not acct.gift_cards:
        raise NothingToConvertError()

    total = sum(c.cost for c in acct.gift_cards)
    refund = math.floor(total * CONVERT_BACK_RATE)
    acct.credit(refund)
    acct.gift_cards = []
    uid = str(user_id)
    for req in ledger.requests:
        if req.user_id == uid and req.status == "pending":
            req.status = "cancelled"
    return refund


# ------------ admin / display ------------
def leaderboard(ledger, limit: int = 10) -> List[Tuple[str, Account]]:
    ranked = sorted(ledger.users.items(), key=lambda kv: (-kv[1].balance, kv[0]))
    return ranked[:max(0, limit)]


def pending_requests(ledger) -> List[GiftCardRequest]:
    return [r for r in ledger.requests if r.status == "pending"]


def fulfil_requests(ledger, user_id) -> int:
    """Mark a user's pending requests delivered; returns how many."""
    uid = str(user_id)
    n = 0
    for req in ledger.requests:
        if req.user_id == uid and req.status == "pending":
            req.status = "fulfilled"
            n += 1
    return n
