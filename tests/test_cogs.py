import json
import logging
from types import SimpleNamespace

import discord
import pytest
from discord.ext import commands

import bot as bank_bot
from cogs.admin import Admin
from cogs.bank import Bank, _fmt_delta
from cogs.gamble import Gamble
from economy import Ledger, MemoryStorage, SnapshotWriter

from .conftest import ScriptedRandom


class FakeContext:
    prefix = "!"
    guild = SimpleNamespace(id=99)

    def __init__(self, user_id):
        self.author = SimpleNamespace(id=user_id, display_name=f"user{user_id}", send=self._dm)
        self.sent = []
        self.dms = []

    async def _dm(self, content=None, **kwargs):
        self.dms.append(content)

    async def send(self, content=None, **kwargs):
        self.sent.append(content if content is not None else kwargs)


class RecordingSaver:
    def __init__(self):
        self.requests = 0

    def request(self):
        self.requests += 1


@pytest.fixture
def ledger():
    ledger = Ledger(storage=MemoryStorage())
    ledger.get_or_create_account(1).balance = 100
    return ledger


@pytest.mark.asyncio
async def test_dice_command_settles_and_saves(ledger):
    saver = SnapshotWriter(ledger)
    cog = Gamble(None, ledger, saver, rng=ScriptedRandom(3))
    ctx = FakeContext(1)
    await cog.dice_cmd.callback(cog, ctx, "3", "10")
    await saver.drain()
    assert ledger.get_or_create_account(1).balance == 150
    assert "LUCKY DICE" in ctx.sent[0]
    assert ledger.storage.writes == 1


@pytest.mark.asyncio
async def test_dice_command_reports_validation_error(ledger):
    cog = Gamble(None, ledger, SnapshotWriter(ledger), rng=ScriptedRandom())
    ctx = FakeContext(1)
    await cog.dice_cmd.callback(cog, ctx, "9", "10")
    assert ctx.sent == ["❌ Guess must be between 1 and 6!"]
    assert ledger.storage.writes == 0


@pytest.mark.asyncio
async def test_convertback_command_without_cards(ledger):
    cog = Bank(None, ledger, SnapshotWriter(ledger))
    ctx = FakeContext(1)
    await cog.convertback_cmd.callback(cog, ctx)
    assert ctx.sent[0].startswith("❌ You have no redeemed gift cards")


def test_fmt_delta():
    assert _fmt_delta(59) == "59s"
    assert _fmt_delta(3 * 3600 + 5) == "3h 0m 5s"
    assert _fmt_delta(-4) == "0s"


@pytest.mark.asyncio
async def test_transfer_command_moves_points_and_saves(ledger):
    saver = RecordingSaver()
    cog = Bank(None, ledger, saver)
    ctx = FakeContext(1)
    bob = SimpleNamespace(id=2, bot=False, display_name="bob")
    await cog.transfer_cmd.callback(cog, ctx, bob, 40)
    assert ledger.get_or_create_account(1).balance == 60
    assert ledger.get_or_create_account(2).balance == 40
    assert saver.requests == 1
    assert "Transfer complete" in ctx.sent[0]


@pytest.mark.asyncio
async def test_transfer_command_refuses_bots(ledger):
    saver = RecordingSaver()
    cog = Bank(None, ledger, saver)
    ctx = FakeContext(1)
    await cog.transfer_cmd.callback(cog, ctx, SimpleNamespace(id=3, bot=True, display_name="robot"), 40)
    assert ledger.get_or_create_account(1).balance == 100
    assert 3 not in ledger
    assert saver.requests == 0


@pytest.mark.asyncio
async def test_redeem_command_queues_request_and_sends_dm(ledger):
    ledger.get_or_create_account(1).balance = 1000
    saver = RecordingSaver()
    cog = Bank(None, ledger, saver)
    ctx = FakeContext(1)
    await cog.redeem_cmd.callback(cog, ctx, "spotify")
    acct = ledger.get_or_create_account(1)
    assert acct.balance == 200
    assert [c.kind for c in acct.gift_cards] == ["spotify"]
    assert [r.status for r in ledger.requests] == ["pending"]
    assert saver.requests == 1
    assert len(ctx.dms) == 1
    assert "Details sent to your DM" in ctx.sent[0]


@pytest.mark.asyncio
async def test_sync_command_syncs_current_guild(ledger):
    calls = []

    async def sync(**kwargs):
        calls.append(kwargs)

    fake_bot = SimpleNamespace(tree=SimpleNamespace(sync=sync))
    cog = Admin(fake_bot, ledger, RecordingSaver())
    ctx = FakeContext(1)
    await cog.sync.callback(cog, ctx)
    assert calls == [{"guild": ctx.guild}]
    assert ctx.sent[0].startswith("✅")


@pytest.mark.asyncio
async def test_unhandled_command_errors_are_logged(ledger, caplog):
    bank = Bank(None, ledger, RecordingSaver())
    gamble = Gamble(None, ledger, RecordingSaver(), rng=ScriptedRandom())
    ctx = FakeContext(1)
    ctx.command = "dice"
    with caplog.at_level(logging.WARNING):
        await bank.cog_command_error(ctx, commands.CheckFailure("not allowed"))
        await gamble.cog_command_error(ctx, commands.BadArgument("bad bet"))
    assert ctx.sent == []
    messages = [r.getMessage() for r in caplog.records]
    assert any("not allowed" in m for m in messages)
    assert any("bad bet" in m for m in messages)


@pytest.mark.asyncio
async def test_bot_shutdown_flushes_pending_state():
    storage = MemoryStorage()
    b = bank_bot.Bot(ledger=Ledger(storage=storage), command_prefix="!", intents=discord.Intents.none())
    b.ledger.get_or_create_account("alice").balance = 5
    b.saver.request()
    b.ledger.get_or_create_account("alice").balance = 9
    assert await b.shutdown()
    assert storage.writes == 2
    assert json.loads(storage.data)["users"]["alice"]["points"] == 9
