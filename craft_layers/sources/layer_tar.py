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

"""Enumerate the change-set records of a layer tarball."""

import logging
import re
import tarfile
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

from craft_layers.file import ContentLocator
from craft_layers.filetree import normalize_path
from craft_layers.image import EntryKind, LayerEntry

from . import errors

logger = logging.getLogger(__name__)


def iter_layer_entries(
    archive_path: Path,
    *,
    fileobj: BinaryIO | None = None,
    base_offset: int = 0,
) -> Iterator[LayerEntry]:
    """Yield the records of an uncompressed layer tarball, in archive order.

    File locators point into ``archive_path``. When the layer tarball is
    itself stored in another archive, pass the stream of the layer in
    ``fileobj`` and the position of its first byte in ``base_offset``.

    Hard links are reported as regular files located at the bytes of their
    link target. Device nodes and FIFOs are skipped.

    :param archive_path: The archive holding the layer bytes.
    :param fileobj: The layer tarball stream, if not ``archive_path`` itself.
    :param base_offset: The position of the layer tarball in ``archive_path``.

    :raises ArchiveFormatError: If the layer is not a valid uncompressed tarball.
    """
    locators: dict[str, ContentLocator] = {}

    try:
        with tarfile.open(
            None if fileobj else archive_path, mode="r:", fileobj=fileobj
        ) as tar:
            for member in tar:
                path = _member_path(member.name)
                if path is None:
                    continue

                if member.isdir():
                    yield LayerEntry(path, EntryKind.DIRECTORY)
                elif member.issym():
                    locator = ContentLocator(
                        archive_path, base_offset + member.offset_data, 0
                    )
                    yield LayerEntry(
                        path,
                        EntryKind.SYMLINK,
                        link_target=member.linkname,
                        locator=locator,
                    )
                elif member.islnk():
                    target = _member_path(member.linkname)
                    hardlink_locator = locators.get(target) if target else None
                    if hardlink_locator is None:
                        logger.debug("hard link target not found: %s", member.linkname)
                    else:
                        locators[path] = hardlink_locator
                    yield LayerEntry(
                        path, EntryKind.REGULAR_FILE, locator=hardlink_locator
                    )
                elif member.isreg():
                    locator = ContentLocator(
                        archive_path, base_offset + member.offset_data, member.size
                    )
                    locators[path] = locator
                    yield LayerEntry(path, EntryKind.REGULAR_FILE, locator=locator)
                else:
                    logger.debug("skip unsupported member type: %s", member.name)
    except tarfile.TarError as err:
        raise errors.ArchiveFormatError(str(archive_path), str(err)) from err


def _member_path(name: str) -> str | None:
    """Convert a member name to an absolute tree path.

    :returns: The path, or None for the archive root.
    """
    # strip leading '/', './' or '../' as many times as needed
    stripped = re.sub(r"^(\.{0,2}/)*", r"", name).rstrip("/")
    path = normalize_path("/" + stripped)
    if path == "/":
        return None

    return path
