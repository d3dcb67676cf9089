# bot.py: Diamond Bank (daily claims, casino, transfers, gift cards)
from __future__ import annotations

import asyncio
import logging
import os
import random
from pathlib import Path
from typing import Optional

import discord
from discord.ext import commands, tasks
from dotenv import load_dotenv

from economy import GlobalSettings, JsonFileStorage, Ledger, SnapshotWriter

log = logging.getLogger("bot")

# --- TOKEN LOADING ---
# .env next to bot.py wins over the process environment
ENV_PATH = Path(__file__).with_name(".env")
load_dotenv(dotenv_path=ENV_PATH, override=True)

TOKEN = os.getenv("DISCORD_TOKEN") or os.getenv("DISCORD_BOT_TOKEN")
# ----------------------------------------

COMMAND_PREFIX = os.getenv("BANK_PREFIX", "!")
DATA_FILE = os.getenv("BANK_DATA_FILE", "bot_data.json")
DAILY_REWARD = int(os.getenv("BANK_DAILY_REWARD", "50"))
MAX_STREAK_MULTIPLIER = float(os.getenv("BANK_MAX_STREAK_MULTIPLIER", "3.0"))
AUTOSAVE_MINUTES = 5

EXTENSIONS = ("cogs.bank", "cogs.gamble", "cogs.admin")

intents = discord.Intents.default()
intents.message_content = True
intents.members = True


# ---------- autosave ----------
@tasks.loop(minutes=AUTOSAVE_MINUTES)
async def autosave():
    await bot.saver.flush()

@autosave.before_loop
async def _wait_ready():
    await bot.wait_until_ready()


# ---------- Bot subclass ----------
class Bot(commands.Bot):
    def __init__(self, *, ledger: Ledger, rng: Optional[random.Random] = None, **kwargs):
        super().__init__(**kwargs)
        self.ledger = ledger
        self.saver = SnapshotWriter(ledger)
        self.rng = rng or random.Random()

    async def setup_hook(self):
        self.ledger.load()
        for ext in EXTENSIONS:
            await self.load_extension(ext)
        if not autosave.is_running():
            autosave.start()

    async def shutdown(self) -> bool:
        """Stop autosave, wait out queued flushes and write the ledger once more."""
        task = autosave.get_task()
        autosave.cancel()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        await self.saver.drain()
        ok = await self.saver.flush()
        if ok:
            log.info("ledger flushed on shutdown (%d users)", len(self.ledger))
        else:
            log.warning("ledger was not flushed on shutdown")
        return ok

    async def close(self):
        await self.shutdown()
        await super().close()


def build_ledger() -> Ledger:
    settings = GlobalSettings(daily_reward=DAILY_REWARD, max_streak_multiplier=MAX_STREAK_MULTIPLIER)
    return Ledger(storage=JsonFileStorage(DATA_FILE), settings=settings)


bot = Bot(ledger=build_ledger(), command_prefix=COMMAND_PREFIX, intents=intents)

@bot.event
async def on_ready():
    log.info("Logged in as %s (%s)", bot.user, bot.user.id)


def main():
    if not TOKEN:
        raise RuntimeError(
            "DISCORD_TOKEN is not set. "
            "Create a .env next to bot.py (DISCORD_TOKEN=...) or set the environment variable."
        )
    bot.run(TOKEN, root_logger=True)


if __name__ == "__main__":
    main()
