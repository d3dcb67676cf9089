# cogs/admin.py
from __future__ import annotations

import logging
import traceback
from typing import Optional

import discord
from discord.ext import commands

from economy import Ledger, SnapshotWriter, pending_requests, fulfil_requests

log = logging.getLogger(__name__)

BANK_OWNER_ID: Optional[int] = None  # put your Discord user id here for owner checks (or keep None to use is_owner())


def is_bank_owner():
    async def predicate(ctx: commands.Context):
        if BANK_OWNER_ID is not None:
            return ctx.author.id == BANK_OWNER_ID
        return await ctx.bot.is_owner(ctx.author)
    return commands.check(predicate)


class Admin(commands.Cog, name="Admin"):
    """⚙️ Admin: persistence, gift card fulfilment, and hot reload."""

    def __init__(self, bot: commands.Bot, ledger: Ledger, saver: SnapshotWriter):
        self.bot = bot
        self.ledger = ledger
        self.saver = saver

    @commands.command(name="save", brief="Flush the bank to disk now.", hidden=True)
    @is_bank_owner()
    async def save_cmd(self, ctx: commands.Context):
        ok = await self.saver.flush()
        await ctx.message.add_reaction("💾" if ok else "⚠️")

    @commands.command(name="giftrequests", aliases=["requests"], brief="List pending gift card requests.")
    @is_bank_owner()
    async def giftrequests_cmd(self, ctx: commands.Context):
        reqs = pending_requests(self.ledger)
        if not reqs:
            return await ctx.send("📭 No pending gift card requests.")
        lines = []
        for r in reqs[:20]:
            when = discord.utils.format_dt(r.requested_at, style="R") if r.requested_at else "?"
            lines.append(f"• <@{r.user_id}> — **{r.name}** ({r.cost:,} 💎) {when}")
        extra = f"\n…and {len(reqs) - 20} more." if len(reqs) > 20 else ""
        await ctx.send("🎁 **Pending gift cards:**\n" + "\n".join(lines) + extra)

    @commands.command(name="fulfil", aliases=["fulfill"], brief="Mark a member's gift cards as delivered.")
    @is_bank_owner()
    async def fulfil_cmd(self, ctx: commands.Context, member: discord.User):
        n = fulfil_requests(self.ledger, member.id)
        if not n:
            return await ctx.send(f"No pending requests for **{member.display_name}**.")
        self.saver.request()
        await ctx.send(f"✅ Marked {n} request(s) for **{member.display_name}** as fulfilled.")

    @commands.command(brief="Sync slash commands", help="Sync application commands to this guild.")
    @is_bank_owner()
    async def sync(self, ctx: commands.Context):
        await self.bot.tree.sync(guild=ctx.guild)
        await ctx.send("✅ Synced application commands for this guild.")

    @commands.command(brief="Reload a cog, e.g. `!reload gamble`", help="Reload a loaded extension. Example: `!reload gamble` or `!reload cogs.gamble`")
    @is_bank_owner()
    async def reload(self, ctx: commands.Context, module: str):
        mod = module if module.startswith("cogs.") else f"cogs.{module}"
        try:
            await self.bot.reload_extension(mod)
            await ctx.send(f"🔁 Reloaded `{mod}`.")
        except commands.ExtensionNotLoaded:
            try:
                await self.bot.load_extension(mod)
                await ctx.send(f"➕ Loaded `{mod}`.")
            except Exception:
                log.exception("failed to load %s", mod)
                await ctx.send(f"❌ Failed to load `{mod}`:\n```py\n{traceback.format_exc()}\n```")
        except Exception:
            log.exception("failed to reload %s", mod)
            await ctx.send(f"❌ Failed to reload `{mod}`:\n```py\n{traceback.format_exc()}\n```")


async def setup(bot: commands.Bot):
    await bot.add_cog(Admin(bot, bot.ledger, bot.saver))
