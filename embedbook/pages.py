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
Ordered storage of embed pages plus the currently active page index.

Settings can be applied to every page at once, or to one page. Applying a
setting to every page happens at call time, so the order of calls matters:

- a per-page call pins that attribute on that page, so later calls to
  ``set_for_all`` skip it;
- a per-page call made after ``set_for_all`` overwrites the global value on
  that page;
- pages appended after ``set_for_all`` never receive the global value.
"""

__all__ = ("PageStore", "PAGE_ATTRIBUTES")

import collections
import math
import typing

import discord

from embedbook import errors
from embedbook import logging_utils

# Attributes assigned directly on the embed.
_PLAIN_ATTRIBUTES = ("title", "description", "url", "colour", "timestamp")

# Attributes assigned with the embed's ``set_<name>(**kwargs)`` method.
_SETTER_ATTRIBUTES = ("footer", "author", "thumbnail", "image")

PAGE_ATTRIBUTES = _PLAIN_ATTRIBUTES + _SETTER_ATTRIBUTES


def _apply(page: discord.Embed, attribute: str, value) -> None:
    if attribute in _PLAIN_ATTRIBUTES:
        setattr(page, attribute, value)
    elif attribute in _SETTER_ATTRIBUTES:
        setter = getattr(page, f"set_{attribute}")
        if isinstance(value, dict):
            setter(**value)
        elif attribute in ("footer", "author"):
            setter(**{"text" if attribute == "footer" else "name": value})
        else:
            setter(url=value)
    else:
        raise AttributeError(f"{attribute!r} is not a page attribute. Use one of {', '.join(PAGE_ATTRIBUTES)}")


class PageStore(logging_utils.Loggable):
    """
    Holds the pages and the current index.

    The index is only ever changed through :meth:`set_index`, which checks
    the bounds and then calls every hook registered with :meth:`on_change`.

    :param pages: initial pages.
    :param require_pages: if true, :meth:`set_pages` refuses an empty
        sequence.
    """

    def __init__(self, pages: typing.Iterable[discord.Embed] = (), *, require_pages: bool = True):
        self._pages: typing.List[discord.Embed] = list(pages)
        self._index = 0
        self._pinned: typing.Dict[int, typing.Set[str]] = collections.defaultdict(set)
        self._change_hooks: typing.List[typing.Callable[[int], None]] = []
        self.require_pages = require_pages

    def __len__(self):
        return len(self._pages)

    def __iter__(self):
        return iter(self._pages)

    def __getitem__(self, index):
        return self._pages[index]

    @property
    def pages(self) -> typing.Tuple[discord.Embed, ...]:
        return tuple(self._pages)

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> discord.Embed:
        return self._pages[self._index]

    @property
    def last_index(self) -> int:
        return len(self._pages) - 1

    def on_change(self, hook: typing.Callable[[int], None]) -> None:
        """Registers a hook called with the new index on every successful :meth:`set_index`."""
        self._change_hooks.append(hook)

    def set_index(self, index: int) -> int:
        if not 0 <= index < len(self._pages):
            raise errors.OutOfRange(index, len(self._pages))

        self._index = index
        for hook in self._change_hooks:
            hook(index)
        return index

    def set_pages(self, pages: typing.Iterable[discord.Embed]) -> None:
        pages = list(pages)
        if not pages and self.require_pages:
            raise errors.EmptySequence()

        self._pages = pages
        self._pinned.clear()
        self._index = 0

    def append(self, page: discord.Embed) -> None:
        self._pages.append(page)

    def extend(self, pages: typing.Iterable[discord.Embed]) -> None:
        self._pages.extend(pages)

    def calculate_pages(
        self, count: int, per_page: int, insert: typing.Callable[[discord.Embed, int], typing.Any]
    ) -> typing.List[discord.Embed]:
        """
        Splits ``count`` items into pages of ``per_page`` items each. A fresh
        embed is made for each page, then ``insert(embed, i)`` is called once
        per item so the caller can fill it in. The new pages are appended.

        :return: the pages that were created.
        """
        if per_page < 1:
            raise ValueError("per_page must be at least 1")

        created = [discord.Embed() for _ in range(math.ceil(count / per_page))]
        for i in range(count):
            insert(created[i // per_page], i)

        self.extend(created)
        return created

    def set_for_all(self, attribute: str, value) -> None:
        """Assigns the attribute on every page that has not pinned it."""
        skipped = 0
        for i, page in enumerate(self._pages):
            if attribute in self._pinned[i]:
                skipped += 1
            else:
                _apply(page, attribute, value)

        if skipped:
            self.logger.debug("Did not overwrite %r on %s pinned page(s)", attribute, skipped)

    def set_for_page(self, index: int, attribute: str, value) -> None:
        """Assigns the attribute on one page and pins it there."""
        if not 0 <= index < len(self._pages):
            raise errors.OutOfRange(index, len(self._pages))

        _apply(self._pages[index], attribute, value)
        self._pinned[index].add(attribute)

    def add_field_to_all(self, name: str, value: str, inline: bool = True) -> None:
        for page in self._pages:
            page.add_field(name=name, value=value, inline=inline)
