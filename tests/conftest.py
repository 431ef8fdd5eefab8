"""Pytest configuration and fixtures."""

import asyncio
import dataclasses
import itertools
import typing

import discord
import pytest
import pytest_asyncio

from embedbook import Backend
from embedbook import DeliveryFailed
from embedbook import EmbedNavigator
from embedbook import SessionState

_ids = itertools.count(1000)


@dataclasses.dataclass(eq=False)
class FakeUser:
    id: int
    name: str = "user"

    @property
    def mention(self):
        return f"<@{self.id}>"

    def __str__(self):
        return self.name


@dataclasses.dataclass(eq=False)
class FakeChannel:
    id: int = dataclasses.field(default_factory=lambda: next(_ids))


@dataclasses.dataclass(eq=False)
class FakeMessage:
    channel: FakeChannel
    embed: typing.Optional[discord.Embed] = None
    content: typing.Optional[str] = None
    id: int = dataclasses.field(default_factory=lambda: next(_ids))
    reactions: typing.List[str] = dataclasses.field(default_factory=list)
    deleted: bool = False


def _deadline_for(timeout):
    if callable(timeout):
        return timeout
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    return lambda: deadline - loop.time()


class FakeBackend(Backend):
    """
    In-memory backend. Reactions and replies are pushed onto queues by the
    test with :meth:`react` and :meth:`reply`. ``await backend.settle()``
    waits until everything pushed so far has been fully handled.
    """

    def __init__(self):
        self.sent: typing.List[FakeMessage] = []
        self.texts: typing.List[str] = []
        self.edits: typing.List[typing.Tuple[FakeMessage, discord.Embed]] = []
        self.removed: typing.List[typing.Tuple[str, typing.Any]] = []
        self.cleared: typing.List[FakeMessage] = []
        self.fail_send = False
        self.fail_edit = False
        self.fail_reactions = False
        self.reaction_queues: typing.Dict[int, asyncio.Queue] = {}
        self.reply_queues: typing.Dict[int, asyncio.Queue] = {}

    def _reaction_queue(self, message) -> asyncio.Queue:
        return self.reaction_queues.setdefault(message.id, asyncio.Queue())

    def _reply_queue(self, channel) -> asyncio.Queue:
        return self.reply_queues.setdefault(channel.id, asyncio.Queue())

    def react(self, message, symbol, user):
        self._reaction_queue(message).put_nowait((symbol, user))

    def reply(self, channel, content, user):
        self._reply_queue(channel).put_nowait((content, user))

    async def settle(self):
        for queue in itertools.chain(self.reaction_queues.values(), self.reply_queues.values()):
            await asyncio.wait_for(queue.join(), timeout=2)

    async def send(self, channel, page):
        if self.fail_send:
            raise DeliveryFailed("send failed")
        message = FakeMessage(channel, embed=page)
        self.sent.append(message)
        return message

    async def send_text(self, channel, text):
        if self.fail_send:
            raise DeliveryFailed("send failed")
        self.texts.append(text)
        return FakeMessage(channel, content=text)

    async def edit(self, message, page):
        if self.fail_edit:
            raise DeliveryFailed("edit failed")
        message.embed = page
        self.edits.append((message, page))

    async def delete(self, message):
        message.deleted = True

    async def add_reactions(self, message, symbols):
        if self.fail_reactions:
            raise DeliveryFailed("reactions failed")
        message.reactions.extend(symbols)

    async def remove_reaction(self, message, symbol, actor):
        self.removed.append((symbol, actor))

    async def clear_reactions(self, message):
        message.reactions.clear()
        self.cleared.append(message)

    async def _listen(self, queue, accept, project, timeout):
        remaining_time = _deadline_for(timeout)
        while True:
            remaining = remaining_time()
            if remaining <= 0:
                return
            try:
                item = await asyncio.wait_for(queue.get(), timeout=remaining)
            except asyncio.TimeoutError:
                continue

            # Marked done once the consumer asks for the next item, or closes us.
            try:
                if accept(item):
                    yield project(item)
            finally:
                queue.task_done()

    def reaction_listener(self, message, predicate, timeout):
        return self._listen(self._reaction_queue(message), lambda item: predicate(*item), lambda item: item, timeout)

    def reply_listener(self, channel, predicate, timeout):
        return self._listen(self._reply_queue(channel), lambda item: predicate(item[1]), lambda item: item[0], timeout)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def author():
    return FakeUser(1, "author")


@pytest.fixture
def stranger():
    return FakeUser(2, "stranger")


def _make_pages(count):
    return [discord.Embed(description=f"page {i + 1}") for i in range(count)]


@pytest.fixture
def make_pages():
    return _make_pages


@pytest.fixture
def navigator(backend, channel, author):
    return EmbedNavigator(backend, channel, _make_pages(3), user=author)


@pytest_asyncio.fixture
async def built(navigator):
    """A navigator that has been built, and is cancelled afterwards if still running."""
    await navigator.build()
    yield navigator
    if navigator.state is SessionState.ACTIVE:
        await navigator.cancel()
