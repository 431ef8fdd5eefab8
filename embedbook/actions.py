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
Reaction "buttons" and the registry mapping each emoji to what it does.

A handler is any callable (plain or ``async def``) taking::

    handler(message, page_index, navigator, symbol)

where ``message`` is the sent message, ``page_index`` is the 0-based index
at the time the reaction arrived, ``navigator`` is the owning
:class:`embedbook.navigator.EmbedNavigator`, and ``symbol`` is the reaction
that triggered it.
"""

__all__ = (
    "Action",
    "ActionRegistry",
    "BUILTIN_NAMES",
    "NAVIGATION_NAMES",
    "DEFAULT_SYMBOLS",
    "default_actions",
    "normalise_symbol",
)

import collections
import dataclasses
import re
import typing

from embedbook import functional
from embedbook import logging_utils

BUILTIN_NAMES = ("first", "back", "stop", "next", "last")

# Built-ins that are dropped when page navigation is turned off.
NAVIGATION_NAMES = ("first", "back", "next", "last")

DEFAULT_SYMBOLS = {
    "first": "\N{BLACK LEFT-POINTING DOUBLE TRIANGLE WITH VERTICAL BAR}",
    "back": "\N{BLACK LEFT-POINTING TRIANGLE}",
    "stop": "\N{BLACK SQUARE FOR STOP}",
    "next": "\N{BLACK RIGHT-POINTING TRIANGLE}",
    "last": "\N{BLACK RIGHT-POINTING DOUBLE TRIANGLE WITH VERTICAL BAR}",
}

_CUSTOM_EMOJI = re.compile(r"^<a?:[A-Za-z0-9_]+:(?P<id>\d+)>$")


def normalise_symbol(symbol) -> str:
    """
    Reactions may be unicode strings, custom emoji objects, ``<:name:id>``
    strings or bare ids. Custom emoji are keyed by their id so that all of
    these forms refer to the same registry entry.
    """
    symbol = str(symbol)
    match = _CUSTOM_EMOJI.match(symbol)
    return match.group("id") if match else symbol


@dataclasses.dataclass()
class Action:
    symbol: str
    handler: typing.Callable
    name: typing.Optional[str] = None

    @property
    def is_builtin(self) -> bool:
        return self.name is not None


async def _first(message, index, navigator, symbol):
    if index != 0:
        await navigator.update_page(0)


async def _back(message, index, navigator, symbol):
    if index > 0:
        await navigator.update_page(index - 1)


async def _stop(message, index, navigator, symbol):
    await navigator.stop()


async def _next(message, index, navigator, symbol):
    if index < len(navigator.pages) - 1:
        await navigator.update_page(index + 1)


async def _last(message, index, navigator, symbol):
    last = len(navigator.pages) - 1
    if index != last:
        await navigator.update_page(last)


_BUILTIN_HANDLERS = {"first": _first, "back": _back, "stop": _stop, "next": _next, "last": _last}


def default_actions(
    names: typing.Sequence[str] = BUILTIN_NAMES, symbols: typing.Mapping[str, str] = None
) -> typing.List[Action]:
    """
    Produces the built-in actions named in ``names``, in that order.

    :param names: which built-ins to include.
    :param symbols: optional mapping of built-in name to a replacement emoji.
    """
    symbols = {**DEFAULT_SYMBOLS, **(symbols or {})}
    actions = []
    for name in names:
        if name not in _BUILTIN_HANDLERS:
            raise ValueError(f"Unknown built-in reaction {name!r}. Expected one of {', '.join(BUILTIN_NAMES)}")
        actions.append(Action(normalise_symbol(symbols[name]), _BUILTIN_HANDLERS[name], name))
    return actions


class ActionRegistry(logging_utils.Loggable):
    """
    Ordered mapping of reaction symbol to :class:`Action`. Iteration order is
    the order reactions get added to the message.

    Registering a symbol that already exists replaces its handler in place,
    which is how built-in buttons are overridden or remapped.
    """

    def __init__(self, actions: typing.Iterable[Action] = ()):
        self._actions: typing.Dict[str, Action] = collections.OrderedDict()
        for action in actions:
            self._actions[action.symbol] = action

    def __len__(self):
        return len(self._actions)

    def __iter__(self):
        return iter(self._actions.values())

    def __contains__(self, symbol):
        return normalise_symbol(symbol) in self._actions

    def get(self, symbol) -> typing.Optional[Action]:
        return self._actions.get(normalise_symbol(symbol))

    @property
    def symbols(self) -> typing.List[str]:
        return list(self._actions)

    def register(self, symbol, handler: typing.Callable, name: str = None) -> Action:
        symbol = normalise_symbol(symbol)
        action = Action(symbol, handler, name)
        if symbol in self._actions:
            self.logger.debug("Replacing handler for %s", symbol)
        self._actions[symbol] = action
        return action

    def unregister(self, symbol) -> typing.Optional[Action]:
        """Removes the symbol if present. Never fails."""
        return self._actions.pop(normalise_symbol(symbol), None)

    def set_builtins(self, names: typing.Sequence[str], symbols: typing.Mapping[str, str] = None) -> None:
        """
        Rebuilds the built-in buttons so exactly ``names`` are present, in
        that order, ahead of any custom buttons. If a user has registered
        their own handler under a built-in's symbol, that handler is kept.
        """
        ordered = collections.OrderedDict()
        for action in default_actions(names, symbols):
            existing = self._actions.get(action.symbol)
            ordered[action.symbol] = existing if existing is not None and not existing.is_builtin else action

        for symbol, action in self._actions.items():
            if symbol not in ordered and not action.is_builtin:
                ordered[symbol] = action

        self._actions = ordered

    def remove_builtins(self, names: typing.Iterable[str]) -> None:
        names = set(names)
        for symbol, action in list(self._actions.items()):
            if action.name in names:
                del self._actions[symbol]

    async def dispatch(self, symbol, message, index: int, navigator) -> bool:
        """
        Invokes the handler bound to ``symbol`` and waits for it to finish.

        :return: false if nothing is bound, in which case nothing happens.
        """
        action = self.get(symbol)
        if action is None:
            return False

        self.logger.debug("Dispatching %s (%s) on page %s", action.symbol, action.name or "custom", index)
        await functional.maybe_await(action.handler(message, index, navigator, symbol))
        return True
