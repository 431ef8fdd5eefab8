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
Paginated embeds for Discord bots.

A navigator is a state machine that shows one page of a booklet of embeds
in a single message, and provides Discord reactions (known as "buttons")
that have actions associated with them. When an authorised user presses a
button, the bot removes the reaction and performs the given task. The
built-in buttons go to the first, previous, next and last page, or stop the
navigator. Buttons can be remapped, removed, or added to do anything you
like.

Navigators time out after a while. The timeout can be extended or reset
every time the page changes. Users can also type a page number to jump
to, via :meth:`EmbedNavigator.await_page_update`.
"""

__author__ = "Nekokatt"
__version__ = "0.3.0"

from .actions import *
from .backend import *
from .errors import *
from .events import *
from .navigator import *
from .options import *
from .pagejump import *
from .pages import *
from .timer import *

from . import configuration_files
from . import logging_utils
