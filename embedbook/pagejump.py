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
Asks a user to type a page number, and reports what they picked.

Example usage::

    prompt = PageJumpPrompt(backend, ctx.channel, ctx.author, navigator.pages)

    @prompt.on("page")
    async def on_page(number, content):
        await navigator.update_page(number - 1)

    await prompt.start()

Most of the time you want :meth:`EmbedNavigator.await_page_update` instead,
which does the above in the background.
"""

__all__ = ("PageJumpPrompt",)

import asyncio
import typing

from embedbook import backend as _backend
from embedbook import events
from embedbook import options as _options


class PageJumpPrompt(events.EventEmitter):
    """
    Collects text replies from one user until they give a valid page number,
    cancel, or run out of time.

    Events:

    - ``page(number, content)``: a valid 1-based page number was given.
    - ``invalid(content)``: the reply was not a number, or out of range. The
      prompt keeps listening.
    - ``cancel(content)``: the user typed the cancel keyword.
    - ``timeout()``: the time budget ran out.

    :param backend: the chat backend.
    :param channel: the channel to prompt and listen in.
    :param user: the only user whose replies are considered.
    :param pages: anything with a length; checked on every reply, so it may
        grow while the prompt is open.
    :param options: messages and time budget.
    """

    def __init__(
        self,
        backend: _backend.Backend,
        channel,
        user,
        pages: typing.Sized,
        options: _options.PageJumpOptions = None,
    ):
        super().__init__()
        self.backend = backend
        self.channel = channel
        self.user = user
        self.pages = pages
        self.options = options or _options.PageJumpOptions()
        self.task: typing.Optional[asyncio.Task] = None
        self.result: typing.Optional[int] = None
        self.done = False

    def _format(self, template: str, number: int = None) -> str:
        text = template.replace("%u", self.backend.mention(self.user))
        if number is not None:
            text = text.replace("%n", str(number))
        return text

    def _is_requesting_user(self, author) -> bool:
        return getattr(author, "id", author) == getattr(self.user, "id", self.user)

    def _is_cancel(self, content: str) -> bool:
        return self.options.cancel and content.startswith(self.options.cancel_keyword)

    async def start(self) -> typing.Optional[int]:
        """
        Sends the prompt and listens for replies.

        :return: the 1-based page number picked, or ``None`` if cancelled or
            timed out.
        """
        await self.backend.send_text(self.channel, self._format(self.options.message))

        replies = self.backend.reply_listener(self.channel, self._is_requesting_user, self.options.time / 1000)
        try:
            async for content in replies:
                if await self.handle_reply(content):
                    break
            else:
                self.logger.info("%s did not pick a page in time", self.user)
                await self.emit("timeout")
        finally:
            await replies.aclose()

        self.done = True
        return self.result

    async def handle_reply(self, content: str) -> bool:
        """
        Processes one reply.

        :return: true if the prompt is finished.
        """
        stripped = content.strip()
        try:
            number = int(stripped)
        except ValueError:
            number = None

        if number is None and self._is_cancel(stripped):
            await self.emit("cancel", content)
            await self.backend.send_text(self.channel, self._format(self.options.cancel_format))
            return True

        if number is not None and 1 <= number <= len(self.pages):
            self.result = number
            await self.emit("page", number, content)
            await self.backend.send_text(self.channel, self._format(self.options.success, number))
            return True

        self.logger.debug("Rejected page %r from %s", content, self.user)
        await self.emit("invalid", content)
        await self.backend.send_text(self.channel, self._format(self.options.invalid_page))
        return False

    def run_in_background(self) -> asyncio.Task:
        self.task = asyncio.ensure_future(self.start())
        return self.task

    async def wait(self) -> typing.Optional[int]:
        if self.task is None:
            return await self.start()
        return await self.task
