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
The navigator: a state machine that shows one page of a booklet of embeds in
a single message, and moves between pages when users press reaction
buttons.

Example usage::

    nav = EmbedNavigator(DiscordBackend(bot), ctx.channel, user=ctx.author)
    nav.calculate_pages(len(items), 10, lambda embed, i: embed.add_field(name=i, value=items[i]))
    nav.set_title("Items").set_time(30_000).set_time_per_page(5_000)

    @nav.on("stop")
    def on_stop(reason):
        print("Navigator ended because of", reason)

    await nav.build()

Lifecycle::

    UNBUILT --build()--> ACTIVE --stop button / timeout / cancel()--> TERMINATED

Once terminated, every method that would change the navigator raises
:class:`embedbook.errors.SessionEnded`, as nothing is listening any more.
"""

__all__ = ("SessionState", "StopReason", "EmbedNavigator", "shutdown_all")

import asyncio
import contextlib
import enum
import functools
import typing
import weakref

import async_timeout
import discord

from embedbook import actions as _actions
from embedbook import backend as _backend
from embedbook import errors
from embedbook import events
from embedbook import functional
from embedbook import options as _options
from embedbook import pagejump
from embedbook import pages as _pages
from embedbook import timer as _timer


class SessionState(enum.Enum):
    UNBUILT = enum.auto()
    ACTIVE = enum.auto()
    TERMINATED = enum.auto()


class StopReason(str, enum.Enum):
    STOP_TRIGGER = "stop-trigger"
    TIMEOUT = "timeout"
    CANCELLED = "explicit-cancel"


def _id_of(user):
    return getattr(user, "id", user)


def _mutator(method):
    """Makes the method raise SessionEnded once the navigator has terminated."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        self._ensure_not_ended()
        return method(self, *args, **kwargs)

    return wrapper


class EmbedNavigator(events.EventEmitter):
    """
    Owns the pages, the current index, the reaction buttons and the lifetime
    timer of one paginated message.

    Events:

    - ``create(message)``: the first page was sent and the listener attached.
    - ``stop(reason)``: the navigator ended. ``reason`` is a :class:`StopReason`.
    - ``page_update(index)``: a page-jump prompt changed the page (0-based).

    :param backend: the chat backend to send through.
    :param channel: the channel to send the booklet to.
    :param pages: initial pages.
    :param user: the user who asked for the booklet. If given, and no
        ``users`` allow-list is set, only they may press the buttons.
    :param users: optional allow-list of users (or user ids) who may press
        the buttons.
    :param options: a :class:`embedbook.options.SessionOptions`, or a
        mapping of option names. A ``SessionOptions`` is copied, so the
        same object can be handed to any number of navigators.
    :param clock: optional time source for the lifetime timer.
    """

    #: Every navigator that has been built and not yet torn down.
    active_navigators = weakref.WeakSet()

    def __init__(
        self,
        backend: _backend.Backend,
        channel,
        pages: typing.Iterable[discord.Embed] = (),
        *,
        user=None,
        users: typing.Iterable = None,
        options: typing.Union[_options.SessionOptions, typing.Mapping[str, typing.Any]] = None,
        clock: typing.Callable[[], float] = None,
    ):
        super().__init__()
        if options is None:
            options = _options.SessionOptions()
        elif isinstance(options, _options.SessionOptions):
            # Setters write through to the options, so each navigator needs its own.
            options = options.copy()
        else:
            options = _options.SessionOptions.from_mapping(options)

        self.backend = backend
        self.channel = channel
        self.options = options
        self.user = user
        self.users = {_id_of(u) for u in users} if users is not None else None

        self.pages = _pages.PageStore(pages, require_pages=options.use_pages)
        self.actions = _actions.ActionRegistry()
        self._builtin_symbols: typing.Optional[typing.Mapping[str, str]] = None
        self._apply_builtins()

        self.timer = _timer.LifetimeTimer(
            self._on_lifetime_over,
            page_bonus=options.time_per_page / 1000,
            reset_on_page=options.reset_on_page,
            clock=clock,
        )
        self.pages.on_change(self.timer.on_page_advance)

        self.state = SessionState.UNBUILT
        self.message = None
        self.stop_reason: typing.Optional[StopReason] = None
        self.prompts: typing.List[pagejump.PageJumpPrompt] = []

        self._pending_reason = StopReason.CANCELLED
        self._cancel_callback = None
        self._listener_task: typing.Optional[asyncio.Task] = None
        self._dispatching = False
        self._background: typing.Set[asyncio.Future] = set()
        self._closed = asyncio.Event()

    def __repr__(self):
        return (
            f"<EmbedNavigator state={self.state.name} page={self.pages.index + 1}/{len(self.pages)} "
            f"remaining={self.timer.remaining:.1f}s>"
        )

    def _ensure_not_ended(self):
        if self.state is SessionState.TERMINATED:
            raise errors.SessionEnded()

    def _ensure_active(self):
        if self.state is SessionState.UNBUILT:
            raise errors.NotBuilt()
        self._ensure_not_ended()

    def _apply_builtins(self):
        names = self.options.default_reaction_order
        if not self.options.use_pages:
            names = [name for name in names if name not in _actions.NAVIGATION_NAMES]
        self.actions.set_builtins(names, self._builtin_symbols)

    ###########################################################################
    # Pages                                                                   #
    ###########################################################################

    @_mutator
    def set_pages(self, pages: typing.Iterable[discord.Embed]):
        """
        Replaces every page and goes back to the first one. On a built
        navigator the change is visible on the next page change.
        """
        self.pages.set_pages(pages)
        return self

    @_mutator
    def add_page(self, page: discord.Embed):
        self.pages.append(page)
        return self

    @_mutator
    def add_pages(self, pages: typing.Iterable[discord.Embed]):
        self.pages.extend(pages)
        return self

    @_mutator
    def concat_pages(self, other: typing.Union["EmbedNavigator", typing.Iterable[discord.Embed]]):
        """Appends the pages of another navigator, or any iterable of embeds."""
        if isinstance(other, EmbedNavigator):
            other = other.pages.pages
        self.pages.extend(other)
        return self

    @_mutator
    def calculate_pages(self, count: int, per_page: int, insert: typing.Callable[[discord.Embed, int], typing.Any]):
        """See :meth:`embedbook.pages.PageStore.calculate_pages`."""
        self.pages.calculate_pages(count, per_page, insert)
        return self

    ###########################################################################
    # Settings applied to every page                                          #
    ###########################################################################

    @_mutator
    def set_title(self, title: str):
        self.pages.set_for_all("title", title)
        return self

    @_mutator
    def set_description(self, description: str):
        self.pages.set_for_all("description", description)
        return self

    @_mutator
    def set_url(self, url: str):
        self.pages.set_for_all("url", url)
        return self

    @_mutator
    def set_colour(self, colour: typing.Union[int, discord.Colour]):
        self.pages.set_for_all("colour", colour)
        return self

    set_color = set_colour

    @_mutator
    def set_timestamp(self, timestamp):
        self.pages.set_for_all("timestamp", timestamp)
        return self

    @_mutator
    def set_footer(self, text: str = None, *, icon_url: str = None):
        self.pages.set_for_all("footer", {"text": text, "icon_url": icon_url})
        return self

    @_mutator
    def set_author(self, name: str, *, url: str = None, icon_url: str = None):
        self.pages.set_for_all("author", {"name": name, "url": url, "icon_url": icon_url})
        return self

    @_mutator
    def set_thumbnail(self, url: str):
        self.pages.set_for_all("thumbnail", {"url": url})
        return self

    @_mutator
    def set_image(self, url: str):
        self.pages.set_for_all("image", {"url": url})
        return self

    @_mutator
    def add_field(self, name: str, value: str, inline: bool = True):
        self.pages.add_field_to_all(name, value, inline)
        return self

    @_mutator
    def add_fields(self, fields: typing.Iterable[typing.Union[typing.Mapping, typing.Tuple]]):
        """Accepts ``{"name": ..., "value": ..., "inline": ...}`` mappings or ``(name, value)`` tuples."""
        for field in fields:
            if isinstance(field, typing.Mapping):
                self.add_field(field["name"], field["value"], field.get("inline", True))
            else:
                self.add_field(*field)
        return self

    @_mutator
    def set_page_attribute(self, index: int, attribute: str, value):
        """
        Sets an attribute on one page only. Later calls to the global setters
        (``set_title`` and so on) will not overwrite it on this page.
        """
        self.pages.set_for_page(index, attribute, value)
        return self

    ###########################################################################
    # Buttons                                                                 #
    ###########################################################################

    @_mutator
    def add_action(self, symbol, handler: typing.Callable = None):
        """
        Binds a reaction to a handler, replacing any existing binding for
        that reaction. If no handler is given, this acts as a decorator::

            @nav.add_action("\N{WASTEBASKET}")
            async def delete(message, index, navigator, symbol):
                ...

        Reactions added after the navigator was built are reacted onto the
        message straight away.
        """
        if handler is None:

            def decorator(func):
                self.add_action(symbol, func)
                return func

            return decorator

        is_new = symbol not in self.actions
        action = self.actions.register(symbol, handler)
        if is_new and self.state is SessionState.ACTIVE:
            self._run_in_background(self.backend.add_reactions(self.message, [action.symbol]))
        return self

    add_emoji = add_action

    @_mutator
    def remove_action(self, symbol):
        """Unbinds a reaction. Does nothing if it was not bound."""
        self.actions.unregister(symbol)
        return self

    remove_emoji = remove_action

    @_mutator
    def set_default_reactions(self, order: typing.Sequence[str], symbols: typing.Mapping[str, str] = None):
        """
        Chooses which built-in buttons to show and in what order, for example
        ``("back", "stop", "next")``. ``symbols`` may map built-in names to
        replacement emoji. Only affects reactions added by :meth:`build`.
        """
        self.options.default_reaction_order = tuple(order)
        self.options.validate()
        self._builtin_symbols = symbols
        self._apply_builtins()
        return self

    @_mutator
    def use_pages(self, use: bool = True):
        """If false, only the stop button is shown."""
        self.options.use_pages = use
        self.pages.require_pages = use
        self._apply_builtins()
        return self

    @_mutator
    def show_page_number(self, show: bool = True):
        self.options.show_page_number = show
        return self

    @_mutator
    def set_page_format(self, page_format: str):
        """``%p`` is replaced with the current page, ``%m`` with the page count."""
        self.options.page_format = page_format
        return self

    @_mutator
    def allow_users(self, *users):
        """Restricts the buttons to the given users (or user ids)."""
        self.users = {_id_of(u) for u in users}
        return self

    @_mutator
    def set_channel(self, channel):
        """Sets the channel to build in. Page-jump prompts also use this channel."""
        self.channel = channel
        return self

    ###########################################################################
    # Timer                                                                   #
    ###########################################################################

    @_mutator
    def set_time(self, milliseconds: int):
        """Sets the lifetime. On a built navigator this restarts the countdown."""
        if milliseconds <= 0:
            raise ValueError("time must be a positive number of milliseconds")
        self.options.time = milliseconds
        if self.state is SessionState.ACTIVE:
            self.timer.reset(milliseconds / 1000)
        return self

    @_mutator
    def add_time(self, milliseconds: int):
        """Extends the running countdown, or the configured lifetime if not built yet."""
        if self.state is SessionState.ACTIVE:
            self.timer.add_time(milliseconds / 1000)
        else:
            self.options.time += milliseconds
        return self

    @_mutator
    def reset_timer(self, milliseconds: int = None):
        """Restarts the countdown from ``milliseconds``, or from the configured lifetime."""
        if milliseconds is not None:
            self.set_time(milliseconds)
        elif self.state is SessionState.ACTIVE:
            self.timer.reset()
        return self

    @_mutator
    def set_time_per_page(self, milliseconds: int):
        """Adds this much time on every page change. Turns off :meth:`reset_timer_on_page`."""
        self.options.time_per_page = milliseconds
        if milliseconds > 0:
            self.options.reset_on_page = False
        self.timer.set_page_bonus(milliseconds / 1000)
        return self

    @_mutator
    def reset_timer_on_page(self, reset: bool = True):
        """Restarts the countdown on every page change. Turns off :meth:`set_time_per_page`."""
        self.options.reset_on_page = reset
        if reset:
            self.options.time_per_page = 0
        self.timer.set_reset_on_page(reset)
        return self

    ###########################################################################
    # Rendering and navigation                                                #
    ###########################################################################

    def render(self, index: int = None) -> discord.Embed:
        """
        Produces what should be shown for a page. The stored page is copied,
        so the page number only ever appears in the sent message. If the page
        already has footer text, the page number is appended to it.
        """
        index = self.pages.index if index is None else index
        page = self.pages[index].copy()

        if self.options.show_page_number:
            number = self.options.page_format.replace("%p", str(index + 1)).replace("%m", str(len(self.pages)))
            text = page.footer.text
            page.set_footer(text=f"{text} \N{BULLET} {number}" if text else number, icon_url=page.footer.icon_url)

        return page

    async def build(self):
        """
        Sends the current page, starts the lifetime timer, starts listening
        for reactions and adds the buttons.

        :return: the sent message.
        :raises EmptySequence: if there are no pages.
        :raises DeliveryFailed: if the message or its reactions could not be
            sent. If the reactions fail, the navigator is cancelled first.
        """
        self._ensure_not_ended()
        if self.state is SessionState.ACTIVE:
            raise errors.AlreadyArmed("This navigator has already been built")
        if not len(self.pages):
            raise errors.EmptySequence()

        self.message = await self.backend.send(self.channel, self.render())
        self.state = SessionState.ACTIVE
        self.active_navigators.add(self)

        self.timer.start(self.options.time / 1000)
        self._listener_task = asyncio.ensure_future(self._listen())
        self.logger.debug("Built navigator with %s page(s) on message %s", len(self.pages), _id_of(self.message))

        try:
            await self.backend.add_reactions(self.message, self.actions.symbols)
        except errors.DeliveryFailed:
            self.logger.warning("Could not add reactions, cancelling navigator")
            await self.cancel()
            raise

        await self.emit("create", self.message)
        return self.message

    async def update_page(self, index: int) -> None:
        """
        Shows the page at the 0-based ``index``.

        :raises NotBuilt: before :meth:`build`.
        :raises SessionEnded: after the navigator ended.
        :raises OutOfRange: if there is no such page.
        """
        self._ensure_active()
        self.pages.set_index(index)
        await self.backend.edit(self.message, self.render())

    def await_page_update(self, user, options: _options.PageJumpOptions = None) -> pagejump.PageJumpPrompt:
        """
        Asks ``user`` to type a page number in the navigator's channel and
        goes to that page. Runs in the background; await
        ``prompt.wait()`` to wait for it to finish.

        A ``page_update`` event is emitted when the page changes.
        """
        self._ensure_active()
        prompt = pagejump.PageJumpPrompt(
            self.backend, self.channel, user, self.pages, options or self.options.page_jump
        )
        prompt.on("page", self._jump_to)
        prompt.run_in_background()
        prompt.task.add_done_callback(functools.partial(self._prompt_done, prompt))
        self.prompts.append(prompt)
        return prompt

    def _prompt_done(self, prompt: pagejump.PageJumpPrompt, task: asyncio.Task) -> None:
        self.prompts.remove(prompt)
        if task.cancelled():
            return
        ex = task.exception()
        if ex is not None:
            self.logger.error("Page-jump prompt for %s failed: %s", prompt.user, ex, exc_info=ex)

    async def _jump_to(self, number: int, _content: str):
        if self.state is not SessionState.ACTIVE:
            self.logger.info("Ignoring page %s picked after the navigator ended", number)
            return

        index = number - 1
        await self.update_page(index)
        await self.emit("page_update", index)

    ###########################################################################
    # Reaction listener                                                       #
    ###########################################################################

    def _accepts(self, _symbol: str, actor) -> bool:
        if self.users is not None:
            return _id_of(actor) in self.users
        if self.user is not None:
            return _id_of(actor) == _id_of(self.user)
        return True

    async def _listen(self):
        reactions = self.backend.reaction_listener(self.message, self._accepts, lambda: self.timer.remaining)
        try:
            async for symbol, actor in reactions:
                if self.state is not SessionState.ACTIVE:
                    break

                self._dispatching = True
                try:
                    await self._handle(symbol, actor)
                except Exception as ex:
                    self.logger.exception("Handler for %s raised", symbol, exc_info=ex)
                finally:
                    self._dispatching = False

                if self.state is not SessionState.ACTIVE:
                    break
        finally:
            await reactions.aclose()

    async def _handle(self, symbol: str, actor):
        if symbol not in self.actions:
            return

        if self.options.remove_reactions:
            try:
                await self.backend.remove_reaction(self.message, symbol, actor)
            except errors.DeliveryFailed as ex:
                self.logger.warning("Could not remove reaction: %s", ex)

        await self.actions.dispatch(symbol, self.message, self.pages.index, self)

    def _track(self, coro) -> asyncio.Future:
        future = asyncio.ensure_future(coro)
        self._background.add(future)
        future.add_done_callback(self._background.discard)
        return future

    def _run_in_background(self, coro):
        async def runner():
            try:
                await coro
            except errors.DeliveryFailed as ex:
                self.logger.warning("Background operation failed: %s", ex)

        return self._track(runner())

    ###########################################################################
    # Teardown                                                                #
    ###########################################################################

    async def stop(self, callback: typing.Callable = None) -> None:
        """What the stop button does. Same as :meth:`cancel`, with a different reason."""
        await self.cancel(callback, reason=StopReason.STOP_TRIGGER)

    async def cancel(self, callback: typing.Callable = None, *, reason: StopReason = StopReason.CANCELLED) -> None:
        """
        Ends the navigator. The timer is disarmed, the listener detached,
        the reactions cleared, then ``callback()`` is run (if given) and
        ``stop`` is emitted. Safe to call from inside a button handler.

        Calling this on an already ended navigator just waits for the
        teardown to finish.

        :raises NotBuilt: before :meth:`build`.
        """
        if self.state is SessionState.UNBUILT:
            raise errors.NotBuilt()

        if self.state is SessionState.ACTIVE:
            self._pending_reason = reason
            self._cancel_callback = callback
            # Fires _on_lifetime_over synchronously.
            self.timer.cancel()

        await self.wait_closed()

    async def wait_closed(self) -> None:
        """Waits until the navigator has ended and the ``stop`` event has been emitted."""
        await self._closed.wait()

    def _on_lifetime_over(self, elapsed: bool) -> None:
        if self.state is not SessionState.ACTIVE:
            return

        reason = StopReason.TIMEOUT if elapsed else self._pending_reason
        self.state = SessionState.TERMINATED
        self.stop_reason = reason
        self.logger.debug("Navigator on message %s ending: %s", _id_of(self.message), reason.value)

        task = self._listener_task
        if task is not None and not self._dispatching and task is not asyncio.current_task():
            task.cancel()

        self._track(self._finish(reason, self._cancel_callback))

    async def _finish(self, reason: StopReason, callback) -> None:
        self.active_navigators.discard(self)
        try:
            if self.options.delete_on_stop:
                await self.backend.delete(self.message)
            elif self.options.clear_reactions_on_stop:
                await self.backend.clear_reactions(self.message)
        except errors.DeliveryFailed as ex:
            self.logger.warning("Could not tidy up message after stopping: %s", ex)

        if callback is not None:
            try:
                await functional.maybe_await(callback())
            except Exception as ex:
                self.logger.exception("Cancel callback raised", exc_info=ex)

        try:
            await self.emit("stop", reason)
        finally:
            self._closed.set()


async def shutdown_all(timeout: float = 10) -> int:
    """
    Cancels every active navigator, waiting up to ``timeout`` seconds for
    them to finish tearing down. Call this before logging the bot out.

    :return: how many navigators were cancelled.
    """
    navigators = [nav for nav in EmbedNavigator.active_navigators if nav.state is SessionState.ACTIVE]

    with contextlib.suppress(asyncio.TimeoutError):
        async with async_timeout.timeout(timeout):
            EmbedNavigator.logger.info("Waiting up to %ss for %s navigator(s) to terminate", timeout, len(navigators))
            await asyncio.gather(*(nav.cancel() for nav in navigators), return_exceptions=True)

    return len(navigators)
