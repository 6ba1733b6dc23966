# -*- Mode:Python; indent-tabs-mode:nil; tab-width:4 -*-
#
# Copyright 2025 Canonical Ltd.
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU Lesser General Public
# License version 3 as published by the Free Software Foundation.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
# Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

"""Lazily opened, range-bounded content streams."""

import enum
import logging
from io import RawIOBase
from typing import BinaryIO

from craft_layers.errors import ContentOpenError, PartialReadError

from .opener import ArchiveOpener
from .reference import ContentLocator

logger = logging.getLogger(__name__)


class ReaderState(enum.Enum):
    """The lifetime state of a deferred reader."""

    UNOPENED = "unopened"
    OPEN = "open"
    EXHAUSTED = "exhausted"
    FAILED = "failed"
    CLOSED = "closed"


class DeferredPartialReader(RawIOBase):
    """A binary stream over a byte range of an archive.

    The archive is only opened on the first read, and the handle is released
    as soon as the end of the range is reached. This allows a large number of
    readers to exist while only the ones being consumed hold a handle.

    Closing is valid in any state and can be repeated. Reading after closing
    raises ``ValueError``, as with any closed stream.

    :param locator: The location of the bytes to read.
    :param opener: The archive opener used on the first read.
    """

    def __init__(self, locator: ContentLocator, opener: ArchiveOpener) -> None:
        super().__init__()
        self.locator = locator
        self._opener = opener
        self._handle: BinaryIO | None = None
        self._remaining = locator.size
        self._state = ReaderState.UNOPENED

    def __repr__(self) -> str:
        return f"DeferredPartialReader({self.locator!s}, state={self._state.value})"

    @property
    def state(self) -> ReaderState:
        """The current lifetime state."""
        return self._state

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:  # type: ignore[override]
        """Read bytes into a pre-allocated buffer.

        :returns: The number of bytes read, 0 at the end of the range.

        :raises ContentOpenError: If the archive cannot be opened.
        :raises PartialReadError: If reading from the archive fails.
        """
        if self._state is ReaderState.CLOSED:
            raise ValueError("I/O operation on closed reader")

        if self._state is ReaderState.FAILED:
            raise PartialReadError(self.locator, "a previous read failed")

        if self._state is ReaderState.EXHAUSTED:
            return 0

        if self._remaining == 0:
            self._release(ReaderState.EXHAUSTED)
            return 0

        if self._state is ReaderState.UNOPENED:
            self._open()

        view = memoryview(buffer).cast("B")[: self._remaining]
        if not len(view):
            return 0

        try:
            data = self._handle.read(len(view))  # type: ignore[union-attr]
        except OSError as err:
            self._release(ReaderState.FAILED)
            raise PartialReadError(self.locator, str(err)) from err

        count = len(data)
        view[:count] = data
        self._remaining -= count

        # a short archive ends the range early
        if count == 0 or self._remaining == 0:
            self._release(ReaderState.EXHAUSTED)

        return count

    def close(self) -> None:
        """Release the archive handle, if any. Calling it again does nothing."""
        if self._state is not ReaderState.CLOSED:
            self._release(ReaderState.CLOSED)
        super().close()

    def _open(self) -> None:
        try:
            self._handle = self._opener.open(self.locator)
        except OSError as err:
            raise ContentOpenError(self.locator, str(err)) from err

        self._state = ReaderState.OPEN

    def _release(self, state: ReaderState) -> None:
        self._state = state
        handle, self._handle = self._handle, None
        if handle is None:
            return

        logger.debug("release %s", self.locator)
        try:
            handle.close()
        except OSError as err:
            logger.debug("error closing %s: %s", self.locator, err)
