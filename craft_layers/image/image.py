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

"""Container image filesystem access."""

import logging
from collections.abc import Iterable, Sequence
from types import TracebackType

from craft_layers.config import EngineConfig
from craft_layers.errors import LayerIndexError, NotAFileError, PathNotFound
from craft_layers.file import (
    ArchiveOpener,
    DeferredPartialReader,
    FileCatalog,
    FileReference,
)
from craft_layers.filetree import FileLookup, FileTree, ResolutionMode

from .layer import Layer, LayerEntry
from .metadata import ImageMetadata, LayerMetadata
from .squash import Squasher

logger = logging.getLogger(__name__)


class Image:
    """The effective filesystem of a container image.

    Layers are squashed once, when the image is created. The squash trees and
    the file catalog are read-only afterwards and can be shared by concurrent
    readers.

    :param metadata: The image description. If it has no size, the sum of
        the layer sizes is used.
    :param layers: The image layers, bottom first.
    :param catalog: The catalog holding the contents of every layer file.
    :param config: The engine configuration.
    """

    def __init__(
        self,
        metadata: ImageMetadata,
        layers: Sequence[Layer],
        catalog: FileCatalog,
        *,
        config: EngineConfig | None = None,
    ) -> None:
        for position, layer in enumerate(layers):
            if layer.index != position:
                raise ValueError(
                    f"layer {layer.digest!r} has index {layer.index}, "
                    f"expected {position}"
                )

        if metadata.size is None:
            size = sum(layer.size for layer in layers)
            metadata = metadata.model_copy(update={"size": size})

        self.metadata = metadata
        self.layers = tuple(layers)
        self._catalog = catalog
        self._catalog.seal()
        self._squash = Squasher(self.layers, config=config).squash()

        logger.debug(
            "loaded image %s with %d layers", metadata.id or "<unnamed>", len(layers)
        )

    @classmethod
    def from_layer_entries(
        cls,
        metadata: ImageMetadata,
        layers: Iterable[tuple[LayerMetadata, Iterable[LayerEntry]]],
        *,
        config: EngineConfig | None = None,
        opener: ArchiveOpener | None = None,
    ) -> "Image":
        """Create an image from the change-set records of its layers.

        :param metadata: The image description.
        :param layers: Pairs of layer description and change-set records,
            bottom layer first.
        :param config: The engine configuration.
        :param opener: The archive opener used to read file contents.

        :returns: The loaded image.
        """
        catalog = FileCatalog(opener)
        built = [
            Layer.from_entries(layer_metadata, entries, catalog, config=config)
            for layer_metadata, entries in layers
        ]
        return cls(metadata, built, catalog, config=config)

    def __enter__(self) -> "Image":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.cleanup()

    @property
    def catalog(self) -> FileCatalog:
        """The catalog of file contents."""
        return self._catalog

    @property
    def squashed_tree(self) -> FileTree:
        """The tree after applying every layer."""
        return self._squash.final

    def squash_tree(self, index: int) -> FileTree:
        """Return the tree after applying layers ``0..index``.

        :raises LayerIndexError: If there is no layer at the given index.
        """
        if not 0 <= index < len(self._squash.trees):
            raise LayerIndexError(index, len(self._squash.trees))
        return self._squash.trees[index]

    def file(
        self,
        path: str,
        *,
        index: int | None = None,
        mode: ResolutionMode = ResolutionMode.FOLLOW_BASENAME_LINKS,
    ) -> FileLookup:
        """Look up a path in the final tree, or in the tree of a layer index."""
        tree = self.squashed_tree if index is None else self.squash_tree(index)
        return tree.file(path, mode)

    def file_contents(self, reference: FileReference) -> DeferredPartialReader:
        """Return a lazy reader for a file reference."""
        return self._catalog.file_contents(reference)

    def resolve(self, path: str) -> DeferredPartialReader:
        """Return a lazy reader for a path in the final tree.

        :raises PathNotFound: If the path does not exist.
        :raises NotAFileError: If the path resolves to a directory.
        """
        reference = _resolve_reference(self.squashed_tree, path)
        return self._catalog.file_contents(reference)

    def resolve_at_layer(self, index: int, path: str) -> DeferredPartialReader:
        """Return a lazy reader for a path in the tree of a layer index.

        :raises LayerIndexError: If there is no layer at the given index.
        :raises PathNotFound: If the path does not exist.
        :raises NotAFileError: If the path resolves to a directory.
        """
        tree = self.squash_tree(index)
        return self._catalog.file_contents(_resolve_reference(tree, path))

    def multiple_file_contents_from_squash(
        self, *paths: str
    ) -> dict[FileReference, DeferredPartialReader]:
        """Return lazy readers for several paths in the final tree.

        Every path is resolved before any reader is created. Paths resolving
        to the same file share a single entry.

        :raises PathNotFound: For the first path that does not exist.
        :raises NotAFileError: For the first path resolving to a directory.
        """
        references = [_resolve_reference(self.squashed_tree, path) for path in paths]
        return self._catalog.multiple_file_contents(*references)

    def cleanup(self) -> None:
        """Release the file catalog."""
        logger.debug("release catalog of image %s", self.metadata.id or "<unnamed>")
        self._catalog.clear()


def _resolve_reference(tree: FileTree, path: str) -> FileReference:
    exists, reference = tree.file(path, ResolutionMode.FOLLOW_BASENAME_LINKS)
    if not exists:
        raise PathNotFound(path)
    if reference is None:
        raise NotAFileError(path)
    return reference
