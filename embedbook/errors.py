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
Implementations of errors.

Anything deriving from :class:`PaginationError` is a contract violation by
the caller (or a transport failure, in the case of :class:`DeliveryFailed`),
and is raised immediately rather than being logged and ignored.
"""

__all__ = (
    "PaginationError",
    "EmptySequence",
    "OutOfRange",
    "AlreadyArmed",
    "SessionEnded",
    "NotBuilt",
    "DeliveryFailed",
    "ConflictingTimerMode",
)


class PaginationError(RuntimeError):
    """Base for every error raised by the pagination core."""

    default_message = "Pagination error"

    def __init__(self, message=None):
        self.message = message if message else self.default_message

    def __str__(self):
        return self.message


class EmptySequence(PaginationError):
    default_message = "Cannot paginate an empty sequence of pages"


class OutOfRange(PaginationError, IndexError):
    def __init__(self, index: int, length: int):
        self.index = index
        self.length = length
        super().__init__(f"Page index {index} is out of range for {length} page(s)")


class AlreadyArmed(PaginationError):
    default_message = "The timer is already running"


class SessionEnded(PaginationError):
    default_message = "This session has already ended and cannot be modified"


class NotBuilt(PaginationError):
    default_message = "This session has not been built yet"


class DeliveryFailed(PaginationError):
    """
    Raised by a backend when a message could not be sent, edited or deleted.
    The underlying transport error is chained as ``__cause__``.
    """

    default_message = "Failed to deliver message"


class ConflictingTimerMode(PaginationError, ValueError):
    default_message = "time_per_page and reset_on_page cannot both be enabled"
