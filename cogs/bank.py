# cogs/bank.py
from __future__ import annotations
import logging
from typing import Optional

import discord
from discord.ext import commands

from economy import (
    EconomyError, CooldownError, InsufficientFundsError,
    Ledger, SnapshotWriter,
    claim_daily, transfer, redeem_gift_card, convert_back, leaderboard,
    CONVERT_BACK_RATE,
)

log = logging.getLogger(__name__)

CURRENCY = "💎"
MEDALS = ["🥇", "🥈", "🥉"]


def _fmt(n: int) -> str:
    return f"{n:,} {CURRENCY}"


def _fmt_delta(seconds: int) -> str:
    seconds = max(0, int(seconds))
    m, s = divmod(seconds, 60); h, m = divmod(m, 60); d, h = divmod(h, 24)
    parts = []
    if d: parts.append(f"{d}d")
    if h or d: parts.append(f"{h}h")
    if m or h or d: parts.append(f"{m}m")
    parts.append(f"{s}s")
    return " ".join(parts)


class Bank(commands.Cog, name="Bank"):
    """🏦 Diamonds: daily claims, transfers, leaderboard and the gift card store."""

    def __init__(self, bot: commands.Bot, ledger: Ledger, saver: SnapshotWriter):
        self.bot = bot
        self.ledger = ledger
        self.saver = saver

    async def cog_command_error(self, ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, (commands.MissingRequiredArgument, commands.BadArgument)):
            await ctx.send(f"❌ {error}\nUsage: `{ctx.prefix}{ctx.command.qualified_name} {ctx.command.signature}`")
        elif isinstance(error, commands.CommandInvokeError):
            log.exception("bank command %s failed", ctx.command, exc_info=error.original)
            await ctx.send("❌ An error occurred while processing your command.")
        else:
            log.warning("bank command %s rejected: %s", ctx.command, error)

    # ---------- balance ----------
    @commands.command(name="balance", aliases=["bal", "points"], help="Show your (or someone's) diamonds.")
    async def balance_cmd(self, ctx: commands.Context, member: Optional[discord.Member] = None):
        member = member or ctx.author
        acct = self.ledger.get_or_create_account(member.id)
        embed = discord.Embed(title=f"{CURRENCY} {member.display_name}'s Points", color=0x0099FF)
        embed.add_field(name="💰 Balance", value=_fmt(acct.balance), inline=True)
        embed.add_field(name="🔥 Streak", value=f"{acct.streak} days", inline=True)
        embed.add_field(name="🎁 Gift Cards", value=str(len(acct.gift_cards)), inline=True)
        embed.add_field(name="📊 Total Earned", value=_fmt(acct.total_earned), inline=True)
        embed.add_field(name="💸 Total Spent", value=_fmt(acct.total_spent), inline=True)
        await ctx.send(embed=embed)

    # ---------- daily ----------
    @commands.command(name="daily", aliases=["claim"], help="Claim your daily diamonds. Streaks raise the reward.")
    async def daily_cmd(self, ctx: commands.Context):
        now = discord.utils.utcnow()
        try:
            res = claim_daily(self.ledger, ctx.author.id, now)
        except CooldownError as e:
            remaining = (e.next_claim - now).total_seconds()
            rel = discord.utils.format_dt(e.next_claim, style="R")
            return await ctx.send(f"⏳ Already claimed. Come back {rel} (**{_fmt_delta(remaining)}**).")
        self.saver.request()
        rel = discord.utils.format_dt(res.next_claim, style="R")
        await ctx.send(f"✅ Daily claimed! +{_fmt(res.reward)} • 🔥 {res.streak} day streak "
                       f"({res.multiplier:.1f}x). Next claim {rel}.")

    # ---------- transfers ----------
    @commands.command(name="transfer", aliases=["give", "pay"], help="Send diamonds to another member.",
                      usage="<member> <amount>")
    async def transfer_cmd(self, ctx: commands.Context, member: discord.Member, amount: int):
        if member.bot:
            return await ctx.send("Bots don't need diamonds.")
        try:
            transfer(self.ledger, ctx.author.id, member.id, amount)
        except EconomyError as e:
            return await ctx.send(f"❌ {e}")
        self.saver.request()
        await ctx.send(f"💸 **{ctx.author.display_name}** → **{member.display_name}**: {_fmt(amount)}. Transfer complete!")

    # ---------- leaderboard ----------
    @commands.command(name="leaderboard", aliases=["top", "rich"], help="Top 10 richest players.")
    async def leaderboard_cmd(self, ctx: commands.Context, limit: int = 10):
        rows = leaderboard(self.ledger, max(1, min(25, limit)))
        lines = []
        for i, (uid, acct) in enumerate(rows, start=1):
            m = ctx.guild.get_member(int(uid)) if ctx.guild and uid.isdigit() else None
            name = m.display_name if m else f"User {uid}"
            pos = MEDALS[i - 1] if i <= len(MEDALS) else f"**{i}.**"
            lines.append(f"{pos} {name} — {_fmt(acct.balance)} • 🔥 {acct.streak}")
        if not lines:
            lines = ["Nobody has any diamonds yet."]
        await ctx.send("🏆 **Diamond Leaderboard**\n" + "\n".join(lines))

    # ---------- gift cards ----------
    @commands.command(name="giftcards", aliases=["store", "shop"], help="List the gift cards you can redeem.")
    async def giftcards_cmd(self, ctx: commands.Context):
        acct = self.ledger.get_or_create_account(ctx.author.id)
        embed = discord.Embed(
            title="🎁 Gift Card Redemption Center",
            description=f"**Your Balance:** {_fmt(acct.balance)}\nRedeem with `{ctx.prefix}redeem <card>`.",
            color=0xFFD700,
        )
        for kind, card in self.ledger.settings.gift_cards.items():
            ok = "✅" if acct.balance >= card.cost else "❌"
            embed.add_field(name=f"{card.emoji} {card.name}", value=f"{ok} {_fmt(card.cost)} • `{kind}`", inline=True)
        await ctx.send(embed=embed)

    @commands.command(name="redeem", help="Redeem a gift card, e.g. `!redeem steam`.", usage="<card>")
    async def redeem_cmd(self, ctx: commands.Context, kind: str):
        try:
            card = redeem_gift_card(self.ledger, ctx.author.id, kind, discord.utils.utcnow())
        except InsufficientFundsError as e:
            return await ctx.send(f"❌ You need {_fmt(e.needed)} but only have {_fmt(e.balance)}.")
        except EconomyError as e:
            return await ctx.send(f"❌ {e} Try `{ctx.prefix}giftcards`.")
        self.saver.request()
        remaining = self.ledger.get_or_create_account(ctx.author.id).balance
        msg = f"✅ Redeemed **{card.name}** for {_fmt(card.cost)}. Remaining: {_fmt(remaining)}."
        try:
            await ctx.author.send(f"🎉 **{card.name}** has been redeemed! An administrator will contact you "
                                  f"within 24 hours to deliver it. Please keep this message for reference.")
            msg += "\n📧 Details sent to your DM!"
        except discord.HTTPException:
            log.info("could not DM %s about redemption", ctx.author.id)
            msg += "\n⚠️ Couldn't send DM. Please enable DMs from server members."
        await ctx.send(msg)

    @commands.command(name="convertback", aliases=["refund"],
                      help=f"Convert all your redeemed gift cards back to diamonds ({int(CONVERT_BACK_RATE * 100)}% value).")
    async def convertback_cmd(self, ctx: commands.Context):
        try:
            refund = convert_back(self.ledger, ctx.author.id)
        except EconomyError as e:
            return await ctx.send(f"❌ {e}")
        self.saver.request()
        bal = self.ledger.get_or_create_account(ctx.author.id).balance
        await ctx.send(f"♻️ Converted your gift cards back: +{_fmt(refund)}. Balance: **{_fmt(bal)}**.")


async def setup(bot: commands.Bot):
    await bot.add_cog(Bank(bot, bot.ledger, bot.saver))
