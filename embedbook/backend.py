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
The chat platform, as seen by navigators and page-jump prompts.

Navigators never touch discord.py directly. They send, edit and react
through a :class:`Backend`, and receive reactions and replies as async
iterators from it. :class:`DiscordBackend` is the real implementation.

Listener timeouts are in seconds, and may either be a number, or a
zero-argument callable that is asked again every time the listener waits.
The latter lets a navigator's timer be extended while a listener is open.
A listener stream ends once its timeout runs out.
"""

__all__ = ("Backend", "DiscordBackend", "Timeout")

import abc
import asyncio
import typing

import discord
from discord.ext import commands

from embedbook import errors
from embedbook import logging_utils

Timeout = typing.Union[float, typing.Callable[[], float]]

ReactionPredicate = typing.Callable[[str, typing.Any], bool]
ReplyPredicate = typing.Callable[[typing.Any], bool]


def _deadline_for(timeout: Timeout) -> typing.Callable[[], float]:
    """Turns a timeout into a callable giving the seconds remaining."""
    if callable(timeout):
        return timeout

    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    return lambda: deadline - loop.time()


class Backend(abc.ABC):
    """Collaborator contract for sending, editing and listening to messages."""

    @abc.abstractmethod
    async def send(self, channel, page):
        """Sends a page and returns the message handle."""

    @abc.abstractmethod
    async def send_text(self, channel, text: str):
        """Sends plain text and returns the message handle."""

    @abc.abstractmethod
    async def edit(self, message, page) -> None:
        ...

    @abc.abstractmethod
    async def delete(self, message) -> None:
        ...

    @abc.abstractmethod
    async def add_reactions(self, message, symbols: typing.Sequence[str]) -> None:
        ...

    @abc.abstractmethod
    async def remove_reaction(self, message, symbol: str, actor) -> None:
        ...

    @abc.abstractmethod
    async def clear_reactions(self, message) -> None:
        ...

    @abc.abstractmethod
    def reaction_listener(
        self, message, predicate: ReactionPredicate, timeout: Timeout
    ) -> typing.AsyncIterator[typing.Tuple[str, typing.Any]]:
        """Yields ``(symbol, actor)`` for reactions on ``message`` that pass the predicate."""

    @abc.abstractmethod
    def reply_listener(self, channel, predicate: ReplyPredicate, timeout: Timeout) -> typing.AsyncIterator[str]:
        """Yields the text of messages in ``channel`` whose author passes the predicate."""

    def mention(self, user) -> str:
        return getattr(user, "mention", str(user))


class DiscordBackend(Backend, logging_utils.Loggable):
    """
    Backend for a discord.py bot. Every ``discord.HTTPException`` raised
    by an operation is re-raised as :class:`embedbook.errors.DeliveryFailed`.

    Listeners are attached with ``add_listener``, so the client must be a
    ``commands.Bot`` (or anything else offering ``add_listener`` and
    ``remove_listener``).
    """

    def __init__(self, client: commands.Bot):
        self.client = client

    def _resolve_emoji(self, symbol: str):
        # Bare ids refer to custom emoji the bot can see.
        if symbol.isdigit():
            emoji = self.client.get_emoji(int(symbol))
            if emoji is None:
                raise errors.DeliveryFailed(f"Cannot find custom emoji with id {symbol}")
            return emoji
        return symbol

    async def send(self, channel: discord.abc.Messageable, page: discord.Embed) -> discord.Message:
        try:
            return await channel.send(embed=page)
        except discord.HTTPException as ex:
            raise errors.DeliveryFailed(f"Could not send page: {ex}") from ex

    async def send_text(self, channel: discord.abc.Messageable, text: str) -> discord.Message:
        try:
            return await channel.send(content=text)
        except discord.HTTPException as ex:
            raise errors.DeliveryFailed(f"Could not send message: {ex}") from ex

    async def edit(self, message: discord.Message, page: discord.Embed) -> None:
        try:
            await message.edit(embed=page)
        except discord.HTTPException as ex:
            raise errors.DeliveryFailed(f"Could not edit message {message.id}: {ex}") from ex

    async def delete(self, message: discord.Message) -> None:
        try:
            await message.delete()
        except discord.HTTPException as ex:
            raise errors.DeliveryFailed(f"Could not delete message {message.id}: {ex}") from ex

    async def add_reactions(self, message: discord.Message, symbols: typing.Sequence[str]) -> None:
        for symbol in symbols:
            try:
                await message.add_reaction(self._resolve_emoji(symbol))
            except discord.HTTPException as ex:
                raise errors.DeliveryFailed(f"Could not react with {symbol}: {ex}") from ex

    async def remove_reaction(self, message: discord.Message, symbol: str, actor) -> None:
        try:
            await message.remove_reaction(self._resolve_emoji(symbol), actor)
        except discord.HTTPException as ex:
            raise errors.DeliveryFailed(f"Could not remove reaction {symbol}: {ex}") from ex

    async def clear_reactions(self, message: discord.Message) -> None:
        try:
            await message.clear_reactions()
        except discord.HTTPException as ex:
            raise errors.DeliveryFailed(f"Could not clear reactions on {message.id}: {ex}") from ex

    async def _stream(self, event: str, convert: typing.Callable[..., typing.Any], timeout: Timeout):
        """
        Yields ``convert(*args)`` for every ``event`` dispatched by the bot,
        skipping ``None``. One listener stays registered for the whole
        stream, so events that arrive while the consumer is busy are queued
        rather than missed.
        """
        remaining = _deadline_for(timeout)
        queue: asyncio.Queue = asyncio.Queue()

        async def listener(*args):
            item = convert(*args)
            if item is not None:
                queue.put_nowait(item)

        name = f"on_{event}"
        self.client.add_listener(listener, name)
        try:
            while True:
                seconds = remaining()
                if seconds <= 0:
                    self.logger.debug("%s listener ran out of time with %s unread", event, queue.qsize())
                    return

                try:
                    item = await asyncio.wait_for(queue.get(), timeout=seconds)
                except asyncio.TimeoutError:
                    # The deadline may have moved while we waited.
                    continue

                yield item
        finally:
            self.client.remove_listener(listener, name)

    def reaction_listener(self, message, predicate, timeout):
        def convert(reaction, user):
            if reaction.message.id != message.id or user == self.client.user:
                return None
            symbol = str(reaction.emoji)
            return (symbol, user) if predicate(symbol, user) else None

        return self._stream("reaction_add", convert, timeout)

    def reply_listener(self, channel, predicate, timeout):
        def convert(msg):
            if msg.channel.id != channel.id or not predicate(msg.author):
                return None
            return msg.content

        return self._stream("message", convert, timeout)
