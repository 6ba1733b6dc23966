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

"""Merge layer change-sets into cumulative filesystem views.

A layer is applied to the views below it in three passes:

1. directories marked as opaque lose every entry inherited from lower layers;
2. entries provided by the layer are added, replacing lower entries;
   directories the layer does not list are only created to hold its entries;
3. whited out entries are deleted.

Whiteouts are applied last, so a layer that both provides and deletes a path
deletes it, regardless of the order of the archive entries.
"""

import logging
import posixpath
from collections.abc import Sequence
from pathlib import PurePosixPath
from typing import NamedTuple

from craft_layers.config import EngineConfig
from craft_layers.filetree import FileTree, Node, NodeKind
from craft_layers.whiteouts import oci_whited_out_file

from .layer import Layer

logger = logging.getLogger(__name__)


class SquashResult(NamedTuple):
    """The cumulative trees of an image.

    :ivar trees: The tree after applying layers ``0..i``, for each index ``i``.
    :ivar final: The tree after applying every layer.
    """

    trees: tuple[FileTree, ...]
    final: FileTree


class Squasher:
    """Compute the squash trees of an ordered sequence of layers.

    :param layers: The layers, bottom first.
    :param config: The engine configuration.
    """

    def __init__(
        self, layers: Sequence[Layer], *, config: EngineConfig | None = None
    ) -> None:
        self._layers = layers
        self._config = config or EngineConfig()

    def squash(self) -> SquashResult:
        """Apply every layer in order.

        :returns: One sealed tree per layer index, and the final tree.
        """
        accumulator = FileTree(max_link_depth=self._config.max_link_depth)
        trees: list[FileTree] = []

        for layer in self._layers:
            logger.debug("squash layer %d (%s)", layer.index, layer.digest)
            apply_layer(accumulator, layer.tree)
            snapshot = accumulator.copy(identity=layer.digest)
            snapshot.seal()
            trees.append(snapshot)

        if trees:
            final = trees[-1]
        else:
            final = accumulator
            final.seal()

        logger.debug("squashed %d layers into %d nodes", len(trees), len(final))
        return SquashResult(trees=tuple(trees), final=final)


def apply_layer(accumulator: FileTree, change_set: FileTree) -> None:
    """Apply a layer change-set on top of an accumulated tree.

    Whiteout and opaque whiteout markers are consumed, never copied.

    :param accumulator: The mutable tree holding the lower layers.
    :param change_set: The layer tree to apply.
    """
    entries = list(change_set.walk())

    for path, node in entries:
        if node.kind is NodeKind.OPAQUE_WHITEOUT:
            directory = posixpath.dirname(path)
            logger.debug("opaque reset: %s", directory)
            accumulator.clear_children(directory)

    for path, node in entries:
        if not node.kind.is_marker and not node.implicit:
            _add_entry(accumulator, path, node)

    for path, node in entries:
        if node.kind is NodeKind.WHITEOUT:
            whited_out = str(oci_whited_out_file(PurePosixPath(path)))
            if accumulator.remove(whited_out):
                logger.debug("whiteout: %s", whited_out)


def _add_entry(accumulator: FileTree, path: str, node: Node) -> None:
    if node.kind is NodeKind.DIRECTORY:
        accumulator.add_directory(path)
    elif node.kind is NodeKind.SYMLINK:
        accumulator.add_symlink(path, node.link_target or "", node.reference)
    else:
        accumulator.add_file(path, node.reference)
