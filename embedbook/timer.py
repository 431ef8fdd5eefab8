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
A resettable, extendable countdown that ends a session when it runs out.
"""

__all__ = ("LifetimeTimer",)

import asyncio
import typing

from embedbook import errors
from embedbook import logging_utils


class LifetimeTimer(logging_utils.Loggable):
    """
    Countdown with a movable deadline. All durations are in seconds.

    The countdown is an asyncio task that waits on an event with a timeout of
    whatever time remains. Moving the deadline sets the event, which wakes
    the task so it can recalculate.

    ``on_expire`` is called exactly once per arming. It is called with
    ``True`` if the deadline was reached, or ``False`` if :meth:`cancel` was
    called. The timer is already disarmed when it is called.

    :param on_expire: the termination callback.
    :param page_bonus: seconds added on every page change.
    :param reset_on_page: restart the countdown on every page change instead.
    :param clock: optional time source. Defaults to the running loop's clock.
    """

    def __init__(
        self,
        on_expire: typing.Callable[[bool], typing.Any] = None,
        *,
        page_bonus: float = 0,
        reset_on_page: bool = False,
        clock: typing.Callable[[], float] = None,
    ):
        if page_bonus > 0 and reset_on_page:
            raise errors.ConflictingTimerMode()

        self.on_expire = on_expire
        self.page_bonus = page_bonus
        self.reset_on_page = reset_on_page
        self.base_duration = 0.0
        self._clock = clock
        self._deadline = 0.0
        self._armed = False
        self._changed: typing.Optional[asyncio.Event] = None
        self._task: typing.Optional[asyncio.Task] = None

    def __repr__(self):
        return f"<LifetimeTimer armed={self._armed} remaining={self.remaining:.3f}s base={self.base_duration}s>"

    def _now(self) -> float:
        if self._clock is not None:
            return self._clock()
        return asyncio.get_running_loop().time()

    @property
    def armed(self) -> bool:
        return self._armed

    @property
    def remaining(self) -> float:
        if not self._armed:
            return 0.0
        return max(0.0, self._deadline - self._now())

    def start(self, duration: float) -> None:
        """Arms the timer. Must be called from within a running event loop."""
        if self._armed:
            raise errors.AlreadyArmed()
        if duration <= 0:
            raise ValueError("Timer duration must be positive")

        self.base_duration = duration
        self._deadline = self._now() + duration
        self._changed = asyncio.Event()
        self._armed = True
        self._task = asyncio.ensure_future(self._countdown())
        self.logger.debug("Armed for %ss", duration)

    def add_time(self, delta: float) -> None:
        """Pushes the deadline back by ``delta``. Does nothing if not armed."""
        if not self._armed:
            return
        self._deadline += delta
        self._changed.set()

    def reset(self, duration: float = None) -> None:
        """
        Restarts the countdown from ``duration``, or from the last base
        duration if omitted. Does nothing if not armed.
        """
        if duration is not None:
            if duration <= 0:
                raise ValueError("Timer duration must be positive")
            self.base_duration = duration

        if not self._armed:
            return
        self._deadline = self._now() + self.base_duration
        self._changed.set()

    def cancel(self) -> None:
        """Disarms the timer and fires ``on_expire(False)``. Idempotent."""
        if not self._armed:
            return

        self._armed = False
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()
        self.logger.debug("Cancelled")
        self._fire(False)

    def set_page_bonus(self, bonus: float) -> None:
        self.page_bonus = bonus
        if bonus > 0:
            self.reset_on_page = False

    def set_reset_on_page(self, reset: bool = True) -> None:
        self.reset_on_page = reset
        if reset:
            self.page_bonus = 0

    def on_page_advance(self, *_) -> None:
        """Called whenever the page index changes."""
        if self.reset_on_page:
            self.reset()
        elif self.page_bonus > 0:
            self.add_time(self.page_bonus)

    async def _countdown(self):
        while self._armed:
            delay = self._deadline - self._now()
            if delay <= 0:
                break

            self._changed.clear()
            try:
                await asyncio.wait_for(self._changed.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

        if self._armed:
            self._armed = False
            self.logger.debug("Elapsed")
            self._fire(True)

    def _fire(self, elapsed: bool) -> None:
        if self.on_expire is not None:
            self.on_expire(elapsed)
