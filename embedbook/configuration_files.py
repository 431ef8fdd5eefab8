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
Handles reading navigator option files.

A file looks like this (YAML or JSON)::

    usePages: true
    showPageNumber: true
    pageFormat: "Page %p of %m"
    time: 60000
    timePerPage: 5000
    defaultReactionOrder: [back, stop, next]
    pageJump:
      time: 15000
      cancelKeyword: nevermind
"""
import io
import json
import os
import typing

import aiofiles
import yaml

from embedbook import logging_utils
from embedbook import options

__all__ = ("CONFIG_DIRECTORY", "ConfigFile", "load_options", "async_load_options", "get_from_config_dir")

CONFIG_DIRECTORY = os.getenv("EMBEDBOOK_CONFIG_DIRECTORY", "./config")

# Functions to call to deserialize each type.
deserializers = {".json": json.load, ".yaml": yaml.safe_load, ".yml": yaml.safe_load}


class ConfigFile(logging_utils.Loggable):
    """
    Read-only access to a configuration file. The data is cached after the
    first read until :meth:`invalidate` is called.

    If the extension is omitted, for example ``navigator``, then
    ``navigator.json``, ``navigator.yaml`` and ``navigator.yml`` are tried in
    that order.

    :param path: the path of the file to read.
    :param should_guess: defaults to true. If true, we allow guessing of the
        extension if we fail to find it.
    """

    def __init__(self, path, *, should_guess=True):
        path, ext = self._get_extension(os.fspath(path), should_guess)

        if not os.access(path, os.R_OK):
            raise PermissionError(f"I do not have read access to {path!r}.")

        self.path = path
        self._value = None
        try:
            self.deserializer = deserializers[ext]
        except KeyError:
            raise NotImplementedError(f"No deserialiser is defined for {ext!r}") from None

    @staticmethod
    def _get_extension(base: str, should_guess: bool = True) -> typing.Tuple[str, str]:
        for ext in deserializers:
            if os.path.isfile(base) and base.endswith(ext):
                return base, ext
            elif should_guess and os.path.isfile(base + ext):
                return base + ext, ext

        if not os.path.exists(base):
            raise FileNotFoundError(f"{base!r} does not exist.")
        elif not os.path.isfile(base):
            raise TypeError(f"{base!r} is not a valid file.")
        else:
            return base, os.path.splitext(base)[1]

    async def async_get(self):
        """Asynchronously reads the config from file."""
        if self._value is None:
            self.logger.info("Asynchronously deserialising %s using %s", self.path, self.deserializer.__name__)
            async with aiofiles.open(self.path) as fp:
                with io.StringIO(await fp.read()) as str_io:
                    self._value = self.deserializer(str_io)
        return self._value

    def sync_get(self):
        """Blocks while we read the config from the file."""
        if self._value is None:
            self.logger.info("Deserialising %s using %s", self.path, self.deserializer.__name__)
            with open(self.path) as fp:
                self._value = self.deserializer(fp)
        return self._value

    def invalidate(self):
        """Drops the cache so the next read hits the file again."""
        old = self._value
        self._value = None
        return old

    @property
    def is_cached(self):
        return self._value is not None


def _to_options(data) -> options.SessionOptions:
    if data is None:
        return options.SessionOptions()
    if not isinstance(data, dict):
        raise TypeError(f"Expected a mapping of options, got {type(data).__name__}")
    return options.SessionOptions.from_mapping(data)


def load_options(path) -> options.SessionOptions:
    """Reads and validates a :class:`embedbook.options.SessionOptions` file."""
    return _to_options(ConfigFile(path).sync_get())


async def async_load_options(path) -> options.SessionOptions:
    return _to_options(await ConfigFile(path).async_get())


def get_from_config_dir(file_name) -> options.SessionOptions:
    """Loads options from a file in ``$EMBEDBOOK_CONFIG_DIRECTORY``."""
    return load_options(os.path.join(CONFIG_DIRECTORY, file_name))
