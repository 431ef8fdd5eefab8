#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Nekozilla is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# Nekozilla is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with Nekozilla.  If not, see <https://www.gnu.org/licenses/>.

"""
Extension that lets a bot show paginated help and jump between pages.

Load with ``await bot.load_extension("embedbook.ext")``.
"""
import typing

import discord
from discord.ext import commands

from embedbook import backend
from embedbook import logging_utils
from embedbook import navigator

COMMANDS_PER_PAGE = 5

# Lifetime of a help booklet, and how long each page change extends it by.
HELP_TIME = 60_000
HELP_TIME_PER_PAGE = 10_000


class PaginationCog(logging_utils.Loggable, commands.Cog):
    """Paginated command listing, plus a command to type a page number."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.backend = backend.DiscordBackend(bot)
        # Most recent booklet per (channel id, user id).
        self.navigators: typing.Dict[typing.Tuple[int, int], navigator.EmbedNavigator] = {}

    def make_help_navigator(self, channel, author, entries: typing.Sequence[typing.Tuple[str, str]]):
        nav = navigator.EmbedNavigator(self.backend, channel, user=author)
        nav.calculate_pages(
            len(entries),
            COMMANDS_PER_PAGE,
            lambda embed, i: embed.add_field(name=entries[i][0], value=entries[i][1] or "No description", inline=False),
        )
        nav.set_title("Commands").set_colour(discord.Colour.blurple()).set_time(HELP_TIME)
        nav.set_time_per_page(HELP_TIME_PER_PAGE)

        key = (channel.id, author.id)

        @nav.on("stop")
        def forget(_reason):
            if self.navigators.get(key) is nav:
                del self.navigators[key]

        self.navigators[key] = nav
        return nav

    @commands.command(name="pages", brief="Shows every command, a few at a time.")
    async def pages_command(self, ctx: commands.Context):
        entries = sorted((c.qualified_name, c.brief) for c in self.bot.walk_commands() if not c.hidden)
        if not entries:
            return await ctx.send("There are no commands to show.")

        nav = self.make_help_navigator(ctx.channel, ctx.author, entries)
        await nav.build()

    @commands.command(name="goto", brief="Jump to a page of your last booklet by typing its number.")
    async def goto_command(self, ctx: commands.Context):
        nav = self.navigators.get((ctx.channel.id, ctx.author.id))
        if nav is None or nav.state is not navigator.SessionState.ACTIVE:
            return await ctx.send("You do not have an open booklet in this channel.")

        nav.await_page_update(ctx.author)

    async def cog_unload(self):
        count = await navigator.shutdown_all()
        self.logger.info("Shut down %s navigator(s)", count)


async def setup(bot):
    await bot.add_cog(PaginationCog(bot))
