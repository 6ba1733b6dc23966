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

"""Tree node storage."""

import dataclasses
import enum

from craft_layers.file.reference import FileReference

NodeId = int

ROOT_ID: NodeId = 0


class NodeKind(enum.Enum):
    """The type of a tree node."""

    DIRECTORY = "directory"
    REGULAR_FILE = "file"
    SYMLINK = "symlink"
    WHITEOUT = "whiteout"
    OPAQUE_WHITEOUT = "opaque-whiteout"

    @property
    def is_marker(self) -> bool:
        """Whether nodes of this kind only exist to delete content below them."""
        return self in (NodeKind.WHITEOUT, NodeKind.OPAQUE_WHITEOUT)

    @property
    def has_reference(self) -> bool:
        """Whether nodes of this kind carry a file reference."""
        return self in (NodeKind.REGULAR_FILE, NodeKind.SYMLINK)


@dataclasses.dataclass
class Node:
    """A single entry in a file tree.

    :ivar kind: The node type.
    :ivar name: The entry name in its parent directory.
    :ivar parent: The arena index of the parent directory.
    :ivar children: Child entry names to arena indexes, directories only.
    :ivar link_target: The link target, symbolic links only.
    :ivar reference: The file identity, regular files and symbolic links only.
    :ivar implicit: Whether the directory was only created to hold its children.
    """

    kind: NodeKind
    name: str
    parent: NodeId
    children: dict[str, NodeId] = dataclasses.field(default_factory=dict)
    link_target: str | None = None
    reference: FileReference | None = None
    implicit: bool = False


class NodeArena:
    """Index-addressed storage for the nodes of one tree.

    Slot 0 always holds the root directory. Released slots are reused.
    """

    def __init__(self) -> None:
        self._nodes: list[Node | None] = [
            Node(kind=NodeKind.DIRECTORY, name="", parent=ROOT_ID)
        ]
        self._free: list[NodeId] = []

    def __len__(self) -> int:
        return len(self._nodes) - len(self._free)

    def __getitem__(self, node_id: NodeId) -> Node:
        node = self._nodes[node_id]
        if node is None:
            raise KeyError(f"node {node_id} was released")
        return node

    def allocate(self, node: Node) -> NodeId:
        """Store a node and return its index."""
        if self._free:
            node_id = self._free.pop()
            self._nodes[node_id] = node
        else:
            node_id = len(self._nodes)
            self._nodes.append(node)
        return node_id

    def release(self, node_id: NodeId) -> None:
        """Release a node and every node below it."""
        pending = [node_id]
        while pending:
            current = pending.pop()
            node = self[current]
            pending.extend(node.children.values())
            self._nodes[current] = None
            self._free.append(current)

    def copy(self) -> "NodeArena":
        """Return a deep copy of this arena, preserving node indexes."""
        arena = NodeArena()
        arena._nodes = [
            dataclasses.replace(node, children=dict(node.children))
            if node is not None
            else None
            for node in self._nodes
        ]
        arena._free = list(self._free)
        return arena
