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


import pytest
from craft_layers.file import FileReference
from craft_layers.filetree.nodes import ROOT_ID, Node, NodeArena, NodeKind


class TestNodeKind:
    """Node type properties."""

    @pytest.mark.parametrize(
        ("kind", "is_marker", "has_reference"),
        [
            (NodeKind.DIRECTORY, False, False),
            (NodeKind.REGULAR_FILE, False, True),
            (NodeKind.SYMLINK, False, True),
            (NodeKind.WHITEOUT, True, False),
            (NodeKind.OPAQUE_WHITEOUT, True, False),
        ],
    )
    def test_properties(self, kind, is_marker, has_reference):
        assert kind.is_marker is is_marker
        assert kind.has_reference is has_reference


class TestNodeArena:
    """Node storage and release."""

    def test_root(self):
        arena = NodeArena()
        assert len(arena) == 1
        assert arena[ROOT_ID].kind == NodeKind.DIRECTORY
        assert arena[ROOT_ID].parent == ROOT_ID

    def test_allocate(self):
        arena = NodeArena()
        node_id = arena.allocate(Node(kind=NodeKind.REGULAR_FILE, name="a", parent=0))
        assert node_id == 1
        assert arena[node_id].name == "a"
        assert len(arena) == 2

    def test_release_subtree(self):
        arena = NodeArena()
        dir_id = arena.allocate(Node(kind=NodeKind.DIRECTORY, name="d", parent=0))
        file_id = arena.allocate(
            Node(kind=NodeKind.REGULAR_FILE, name="f", parent=dir_id)
        )
        arena[dir_id].children["f"] = file_id

        arena.release(dir_id)

        assert len(arena) == 1
        with pytest.raises(KeyError):
            arena[dir_id]
        with pytest.raises(KeyError):
            arena[file_id]

    def test_released_slots_are_reused(self):
        arena = NodeArena()
        node_id = arena.allocate(Node(kind=NodeKind.REGULAR_FILE, name="a", parent=0))
        arena.release(node_id)
        node = Node(kind=NodeKind.SYMLINK, name="b", parent=0)
        assert arena.allocate(node) == node_id

    def test_copy_is_independent(self):
        arena = NodeArena()
        ref = FileReference("layer", "/a")
        node_id = arena.allocate(
            Node(kind=NodeKind.REGULAR_FILE, name="a", parent=0, reference=ref)
        )
        arena[ROOT_ID].children["a"] = node_id

        other = arena.copy()
        other[ROOT_ID].children.clear()
        other[node_id].name = "changed"

        assert arena[ROOT_ID].children == {"a": node_id}
        assert arena[node_id].name == "a"
        assert other[node_id].reference == ref
