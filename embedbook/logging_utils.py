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
Loggable class.
"""
import logging
import typing

__all__ = ("Loggable", "LOG_FORMAT", "configure")

LOG_FORMAT = "%(asctime)s:%(levelname)s:%(name)s: %(message)s"


class Loggable:
    """Adds functionality to a class to allow it to log information."""

    logger: logging.Logger

    def __init_subclass__(cls, **_):
        cls.logger: logging.Logger = logging.getLogger(f"embedbook.{cls.__name__}")


def configure(level: typing.Union[int, str] = "INFO", filename: str = None) -> logging.Logger:
    """
    Attaches a handler to the ``embedbook`` logger hierarchy.

    :param level: the level name or number to log at.
    :param filename: optional file to write to. Defaults to stderr.
    :return: the root ``embedbook`` logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger("embedbook")
    logger.setLevel(level)

    if filename:
        handler = logging.FileHandler(filename=filename, encoding="utf-8", mode="w")
    else:
        handler = logging.StreamHandler()

    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger
