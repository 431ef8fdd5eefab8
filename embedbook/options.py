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
Recognised options for navigators and page-jump prompts.

Durations are integer milliseconds.
"""

__all__ = ("SessionOptions", "PageJumpOptions")

import dataclasses
import re
import typing

from embedbook import actions
from embedbook import errors


def _snake_case(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _normalise_keys(mapping: typing.Mapping[str, typing.Any], known: typing.Iterable[str]) -> dict:
    known = set(known)
    result = {}
    for key, value in mapping.items():
        snake = _snake_case(key)
        if snake not in known:
            raise KeyError(f"Unrecognised option {key!r}")
        result[snake] = value
    return result


@dataclasses.dataclass()
class PageJumpOptions:
    """
    Messages used by :class:`embedbook.pagejump.PageJumpPrompt`. ``%u`` is
    replaced with the user's mention, and ``%n`` with the page number in
    ``success``.
    """

    message: str = "%u Please pick a page to go to."
    time: int = 10_000
    cancel: bool = True
    cancel_keyword: str = "cancel"
    cancel_format: str = "%u Successfully canceled request."
    invalid_page: str = "%u Sorry, I could not find that page."
    success: str = "%u Set the page to %n"

    @classmethod
    def from_mapping(cls, mapping: typing.Mapping[str, typing.Any]) -> "PageJumpOptions":
        fields = (f.name for f in dataclasses.fields(cls))
        return cls(**_normalise_keys(mapping, fields))


@dataclasses.dataclass()
class SessionOptions:
    use_pages: bool = True
    show_page_number: bool = True
    page_format: str = "%p/%m"
    time: int = 60_000
    time_per_page: int = 0
    reset_on_page: bool = False
    default_reaction_order: typing.Sequence[str] = actions.BUILTIN_NAMES
    remove_reactions: bool = True
    clear_reactions_on_stop: bool = True
    delete_on_stop: bool = False
    page_jump: PageJumpOptions = dataclasses.field(default_factory=PageJumpOptions)

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if self.time_per_page > 0 and self.reset_on_page:
            raise errors.ConflictingTimerMode()
        if self.time <= 0:
            raise ValueError("time must be a positive number of milliseconds")

        unknown = [name for name in self.default_reaction_order if name not in actions.BUILTIN_NAMES]
        if unknown:
            raise ValueError(f"Unknown reactions in default_reaction_order: {', '.join(map(repr, unknown))}")
        self.default_reaction_order = tuple(self.default_reaction_order)

        if isinstance(self.page_jump, typing.Mapping):
            self.page_jump = PageJumpOptions.from_mapping(self.page_jump)

    def copy(self) -> "SessionOptions":
        """Returns an independent copy, page-jump options included."""
        return dataclasses.replace(self, page_jump=dataclasses.replace(self.page_jump))

    @classmethod
    def from_mapping(cls, mapping: typing.Mapping[str, typing.Any]) -> "SessionOptions":
        """Accepts either ``camelCase`` or ``snake_case`` keys."""
        fields = (f.name for f in dataclasses.fields(cls))
        return cls(**_normalise_keys(mapping, fields))
