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

"""Access to raw archive bytes."""

import abc
import logging
from typing import BinaryIO

from overrides import overrides

from .reference import ContentLocator

logger = logging.getLogger(__name__)


class ArchiveOpener(abc.ABC):
    """The base class for archive access.

    Openers are shared by every reader of an image and must not keep
    per-reader state: each call returns an independent handle.
    """

    @abc.abstractmethod
    def open(self, locator: ContentLocator) -> BinaryIO:
        """Open the archive holding the located bytes.

        :param locator: The location of the bytes to read.

        :returns: A binary stream positioned at the first located byte.

        :raises OSError: If the archive cannot be opened or positioned.
        """


class FileArchiveOpener(ArchiveOpener):
    """Open archives stored as regular files on the local filesystem."""

    @overrides
    def open(self, locator: ContentLocator) -> BinaryIO:
        logger.debug("open %s", locator)
        handle = open(locator.archive_path, "rb")  # noqa: SIM115
        try:
            handle.seek(locator.offset)
        except OSError:
            handle.close()
            raise

        return handle
