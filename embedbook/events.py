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
Callback registration for lifecycle events.

Example usage::

    nav = EmbedNavigator(...)

    @nav.on("stop")
    async def on_stop(reason):
        ...

    nav.on("create", lambda message: print("sent", message.id))

"""

__all__ = ("EventEmitter",)

import collections
import typing

from embedbook import functional
from embedbook import logging_utils


class EventEmitter(logging_utils.Loggable):
    """
    Keeps a list of listeners per event name. Listeners may be plain
    functions or coroutine functions, and are awaited one after the other in
    the order they were registered.

    Much like ``discord.Client.dispatch``, an exception raised by a listener
    is logged and does not stop the remaining listeners, nor does it propagate
    to whatever emitted the event.
    """

    def __init__(self):
        self._listeners: typing.Dict[str, typing.List[typing.Callable]] = collections.defaultdict(list)

    def on(self, event: str, callback: typing.Callable = None):
        """
        Registers ``callback`` for ``event``. If no callback is given, this
        acts as a decorator.
        """
        if callback is None:

            def decorator(func):
                self._listeners[event].append(func)
                return func

            return decorator

        self._listeners[event].append(callback)
        return callback

    def remove_listener(self, event: str, callback: typing.Callable) -> None:
        """Removes the listener if it is registered. Never fails."""
        try:
            self._listeners[event].remove(callback)
        except ValueError:
            pass

    def listeners(self, event: str) -> typing.List[typing.Callable]:
        return list(self._listeners.get(event, ()))

    async def emit(self, event: str, *args) -> None:
        listeners = self.listeners(event)
        self.logger.debug("Emitting %r to %s listener(s)", event, len(listeners))

        for listener in listeners:
            try:
                await functional.maybe_await(listener(*args))
            except Exception as ex:
                self.logger.exception("Listener %r for %r raised", listener, event, exc_info=ex)
