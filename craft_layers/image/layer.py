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

"""Layer definition and change-set parsing."""

import enum
import logging
from collections.abc import Iterable
from pathlib import PurePosixPath
from typing import NamedTuple

from craft_layers.config import EngineConfig
from craft_layers.file import ContentLocator, FileCatalog
from craft_layers.filetree import FileTree, NodeKind, normalize_path
from craft_layers.whiteouts import (
    is_oci_opaque_marker,
    is_oci_whiteout_file,
    oci_whited_out_file,
)

from .metadata import LayerMetadata

logger = logging.getLogger(__name__)


class EntryKind(enum.Enum):
    """The type of a change-set entry."""

    DIRECTORY = "directory"
    REGULAR_FILE = "file"
    SYMLINK = "symlink"


class LayerEntry(NamedTuple):
    """One change-set record, as enumerated from a layer archive.

    Hard links are reported as regular files located at the bytes of
    their link target.
    """

    path: str
    kind: EntryKind
    link_target: str | None = None
    locator: ContentLocator | None = None


class Layer:
    """A filesystem change-set in an image's history.

    :param metadata: The layer description.
    :param tree: The change-set tree, including whiteout markers.
    """

    def __init__(self, metadata: LayerMetadata, tree: FileTree) -> None:
        self.metadata = metadata
        self.tree = tree

    def __repr__(self) -> str:
        return f"Layer(index={self.index}, digest={self.digest!r})"

    @property
    def index(self) -> int:
        """The layer position, 0 is the bottom layer."""
        return self.metadata.index

    @property
    def digest(self) -> str:
        """The layer identity."""
        return self.metadata.digest

    @property
    def size(self) -> int:
        """The size of the layer contents."""
        return self.metadata.size or 0

    @classmethod
    def from_entries(
        cls,
        metadata: LayerMetadata,
        entries: Iterable[LayerEntry],
        catalog: FileCatalog,
        *,
        config: EngineConfig | None = None,
    ) -> "Layer":
        """Build a layer from its change-set records.

        OCI whiteout entries become whiteout markers in the layer tree, and
        the contents of every file are registered in the catalog. If the
        metadata has no size, the size of the regular files is used.

        :param metadata: The layer description.
        :param entries: The change-set records, in archive order.
        :param catalog: The catalog receiving the file content locations.
        :param config: The engine configuration.

        :returns: The new layer, whose tree is sealed.

        :raises MalformedPath: If an entry path is invalid.
        """
        config = config or EngineConfig()
        tree = FileTree(metadata.digest, max_link_depth=config.max_link_depth)
        file_sizes: dict[str, int] = {}

        logger.debug("load layer %d (%s)", metadata.index, metadata.digest)
        for entry in entries:
            path = PurePosixPath(normalize_path(entry.path))

            if is_oci_opaque_marker(path):
                logger.debug("opaque directory: %s", path.parent)
                tree.add_opaque_whiteout(str(path.parent))
                continue

            if is_oci_whiteout_file(path):
                logger.debug("whiteout: %s", oci_whited_out_file(path))
                tree.add_whiteout(str(oci_whited_out_file(path)))
                continue

            if entry.kind is EntryKind.DIRECTORY:
                tree.add_directory(str(path))
                continue

            if entry.kind is EntryKind.SYMLINK:
                reference = tree.add_symlink(str(path), entry.link_target or "")
            else:
                reference = tree.add_file(str(path))

            if entry.locator is None:
                continue

            catalog.add(reference, entry.locator)
            if entry.kind is EntryKind.REGULAR_FILE:
                file_sizes[str(path)] = entry.locator.size

        tree.seal()

        if metadata.size is None:
            size = _regular_file_size(tree, file_sizes)
            metadata = metadata.model_copy(update={"size": size})

        return cls(metadata, tree)


def _regular_file_size(tree: FileTree, file_sizes: dict[str, int]) -> int:
    """Sum the sizes of the files still present in the tree."""
    return sum(
        size
        for path, size in file_sizes.items()
        if tree.node_kind(path) is NodeKind.REGULAR_FILE
    )
