# cogs/gamble.py
from __future__ import annotations
import logging
import random
from typing import Optional

import discord
from discord.ext import commands

from economy import (
    EconomyError, InsufficientFundsError, Ledger, SnapshotWriter,
    play_guess, play_coin_flip, play_reels,
    MIN_BET, SLOTS_BET,
)

log = logging.getLogger(__name__)

CURRENCY = "💎"
DICE_FACES = ["⚀", "⚁", "⚂", "⚃", "⚄", "⚅"]
FLIP_ICONS = {"heads": "👑", "tails": "💰"}
REEL_ICONS = {"cherry": "🍒", "lemon": "🍋", "orange": "🍊", "diamond": "💎", "star": "⭐", "clover": "🍀"}


def _fmt(n: int) -> str:
    return f"{n:,} {CURRENCY}"


class Gamble(commands.Cog, name="Gamble"):
    """🎰 Diamond Casino: dice, coin flip and lucky slots."""

    def __init__(self, bot: commands.Bot, ledger: Ledger, saver: SnapshotWriter,
                 rng: Optional[random.Random] = None):
        self.bot = bot
        self.ledger = ledger
        self.saver = saver
        self.rng = rng or random.Random()

    def _bal(self, ctx: commands.Context) -> int:
        return self.ledger.get_or_create_account(ctx.author.id).balance

    async def cog_command_error(self, ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, commands.CommandOnCooldown):
            await ctx.send(f"⏳ Slow down! Try again in {error.retry_after:.1f}s.")
        elif isinstance(error, commands.MissingRequiredArgument):
            await ctx.send(f"Usage: `{ctx.prefix}{ctx.command.qualified_name} {ctx.command.usage or ctx.command.signature}`")
        elif isinstance(error, commands.CommandInvokeError):
            log.exception("gamble command %s failed", ctx.command, exc_info=error.original)
            await ctx.send("❌ An error occurred while processing your command.")
        else:
            log.warning("gamble command %s rejected: %s", ctx.command, error)

    async def _reject(self, ctx: commands.Context, error: EconomyError):
        if isinstance(error, InsufficientFundsError):
            return await ctx.send(f"❌ Insufficient points! You have {_fmt(error.balance)} but need {_fmt(error.needed)}.")
        await ctx.send(f"❌ {error}")

    # ---------- DICE ----------
    @commands.command(
        name="dice", aliases=["guess"],
        help=f"Guess the roll **1–6**. Win = 5× your bet. Minimum bet {MIN_BET}.",
        usage="<1-6> <bet>",
    )
    @commands.cooldown(1, 2.0, commands.BucketType.user)
    async def dice_cmd(self, ctx: commands.Context, guess: str, bet: str):
        try:
            res = play_guess(self.ledger, ctx.author.id, guess, bet, self.rng)
        except EconomyError as e:
            return await self._reject(ctx, e)
        self.saver.request()
        face = DICE_FACES[res.result - 1]
        if res.won:
            msg = f"🎲 **{res.result}** {face} — LUCKY DICE! Won **{_fmt(res.delta)}** (5×)."
        else:
            msg = f"🎲 **{res.result}** {face} — lost **{_fmt(res.bet)}**."
        await ctx.send(f"{msg} Balance: **{_fmt(self._bal(ctx))}**.")

    # ---------- COIN FLIP ----------
    @commands.command(
        name="flip", aliases=["coinflip", "cf"],
        help=f"Call **heads** or **tails** (H/T). Win = 2× your bet. Minimum bet {MIN_BET}.",
        usage="<heads|tails> <bet>",
    )
    @commands.cooldown(1, 2.0, commands.BucketType.user)
    async def flip_cmd(self, ctx: commands.Context, choice: str, bet: str):
        try:
            res = play_coin_flip(self.ledger, ctx.author.id, choice, bet, self.rng)
        except EconomyError as e:
            return await self._reject(ctx, e)
        self.saver.request()
        icon = FLIP_ICONS[res.result]
        if res.won:
            msg = f"🪙 {icon} **{res.result}** — PERFECT FLIP! Won **{_fmt(res.delta)}**."
        else:
            msg = f"🪙 {icon} **{res.result}** — lost **{_fmt(res.bet)}**."
        await ctx.send(f"{msg} Balance: **{_fmt(self._bal(ctx))}**.")

    # ---------- SLOTS ----------
    @commands.command(
        name="slots", aliases=["spin"],
        help=f"Fixed bet {SLOTS_BET}. 🍀🍀🍀 = 12×, 💎💎💎 = 10×, ⭐⭐⭐ = 8×, other triple = 3×, any pair = 1.5×.",
    )
    @commands.cooldown(1, 2.0, commands.BucketType.user)
    async def slots_cmd(self, ctx: commands.Context):
        try:
            res = play_reels(self.ledger, ctx.author.id, self.rng)
        except EconomyError as e:
            return await self._reject(ctx, e)
        self.saver.request()
        line = " ".join(REEL_ICONS[s] for s in res.reels)
        if res.payout:
            title = "JACKPOT!" if res.multiplier >= 8 else "Winner!"
            msg = f"🎰 {line} — **{title}** Won **{_fmt(res.payout)}** ({res.multiplier:g}×)."
        else:
            msg = f"🎰 {line} — lost **{_fmt(SLOTS_BET)}**."
        await ctx.send(f"{msg} Balance: **{_fmt(self._bal(ctx))}**.")

    # ---------- DETAILS ----------
    @commands.command(name="games", aliases=["casino"], help="How the casino games pay.")
    async def games_cmd(self, ctx: commands.Context):
        embed = discord.Embed(title="🎮 Casino Games Details", description="**Choose Your Stakes!**", color=0x0099FF)
        embed.add_field(name="🎲 Dice", value=f"• Choose number 1-6\n• Minimum bet: {MIN_BET} {CURRENCY}\n• Win: 5x your bet", inline=True)
        embed.add_field(name="🪙 Coinflip", value=f"• Pick H/T or heads/tails\n• Minimum bet: {MIN_BET} {CURRENCY}\n• Win: 2x your bet", inline=True)
        embed.add_field(name="🎰 Lucky Slots", value=f"• Auto-spin reels\n• Fixed bet: {SLOTS_BET} {CURRENCY}\n• Win: Up to 12x bet", inline=True)
        await ctx.send(embed=embed)


async def setup(bot: commands.Bot):
    await bot.add_cog(Gamble(bot, bot.ledger, bot.saver, rng=getattr(bot, "rng", None)))
