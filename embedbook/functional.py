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
Helpers for treating plain callbacks and coroutine callbacks the same way.
Handlers, event listeners and cancel callbacks may be either.
"""
import inspect

__all__ = ("maybe_await",)


async def maybe_await(result):
    """
    Awaits the result of calling a callback if it handed back an awaitable,
    so ``def`` and ``async def`` callbacks can be used interchangeably.

    Example usage::

        >>> await maybe_await(callback(*args))
    """
    if inspect.isawaitable(result):
        return await result
    return result
