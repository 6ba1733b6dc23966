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

"""File content catalog."""

import logging
import threading
from collections.abc import Iterator

from craft_layers.errors import CatalogSealedError, UnregisteredReference

from .opener import ArchiveOpener, FileArchiveOpener
from .reader import DeferredPartialReader
from .reference import ContentLocator, FileReference

logger = logging.getLogger(__name__)


class FileCatalog:
    """Map file references to the location of their contents.

    Entries are added while layers are loaded. Once the catalog is sealed it
    becomes read-only and can be shared by concurrent readers without locking.

    :param opener: The archive opener handed to content readers.
    """

    def __init__(self, opener: ArchiveOpener | None = None) -> None:
        self._opener = opener or FileArchiveOpener()
        self._entries: dict[FileReference, ContentLocator] = {}
        self._lock = threading.Lock()
        self._sealed = False

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, reference: object) -> bool:
        return reference in self._entries

    @property
    def sealed(self) -> bool:
        """Whether the catalog is read-only."""
        return self._sealed

    def seal(self) -> None:
        """Stop accepting new entries."""
        with self._lock:
            self._sealed = True
        logger.debug("file catalog sealed with %d entries", len(self._entries))

    def add(self, reference: FileReference, locator: ContentLocator) -> None:
        """Register the content location of a file.

        :raises CatalogSealedError: If the catalog is sealed.
        """
        with self._lock:
            if self._sealed:
                raise CatalogSealedError(reference)
            self._entries[reference] = locator

    def locator(self, reference: FileReference) -> ContentLocator:
        """Return the content location of a file.

        :raises UnregisteredReference: If the reference was never added.
        """
        try:
            return self._entries[reference]
        except KeyError:
            raise UnregisteredReference(reference) from None

    def references(self) -> Iterator[FileReference]:
        """Iterate over every registered file reference."""
        return iter(self._entries)

    def file_contents(self, reference: FileReference) -> DeferredPartialReader:
        """Return a lazy reader for the contents of a file.

        The archive is not touched until the first read.

        :raises UnregisteredReference: If the reference was never added.
        """
        return DeferredPartialReader(self.locator(reference), self._opener)

    def multiple_file_contents(
        self, *references: FileReference
    ) -> dict[FileReference, DeferredPartialReader]:
        """Return lazy readers for the contents of several files.

        Either every reference is known and one reader is returned for each
        distinct reference, or nothing is returned at all.

        :raises UnregisteredReference: For the first reference never added.
        """
        locators = {reference: self.locator(reference) for reference in references}

        return {
            reference: DeferredPartialReader(locator, self._opener)
            for reference, locator in locators.items()
        }

    def clear(self) -> None:
        """Release every entry."""
        with self._lock:
            self._entries.clear()
