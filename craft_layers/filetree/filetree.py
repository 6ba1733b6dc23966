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

"""Navigable file trees."""

import collections
import enum
import logging
from collections.abc import Iterable, Iterator
from pathlib import PurePosixPath
from typing import NamedTuple

from craft_layers.config import DEFAULT_MAX_LINK_DEPTH
from craft_layers.errors import MalformedPath, SymlinkDepthExceeded, TreeSealedError
from craft_layers.file.reference import FileReference
from craft_layers.whiteouts import oci_opaque_dir, oci_whiteout

from .nodes import ROOT_ID, Node, NodeArena, NodeId, NodeKind
from .paths import ROOT, join_path, normalize_path, split_path

logger = logging.getLogger(__name__)


class ResolutionMode(enum.Enum):
    """How symbolic links are handled during a lookup.

    With ``NONE`` only links in intermediate path components are followed.
    ``FOLLOW_BASENAME_LINKS`` also follows a link at the final component.
    """

    NONE = "none"
    FOLLOW_BASENAME_LINKS = "follow-basename-links"


class FileLookup(NamedTuple):
    """The result of a path lookup."""

    exists: bool
    reference: FileReference | None


class _FileReferences:
    """A restartable view of the file references in a tree."""

    def __init__(self, tree: "FileTree") -> None:
        self._tree = tree

    def __iter__(self) -> Iterator[FileReference]:
        for _, node in self._tree.walk():
            if node.reference is not None:
                yield node.reference


class FileTree:
    """A filesystem tree whose nodes live in an arena owned by the tree.

    :param identity: The identity given to file references created in this
        tree, usually the digest of the layer it represents.
    :param max_link_depth: The maximum number of symbolic links followed
        during a single lookup.
    """

    def __init__(
        self, identity: str = "", *, max_link_depth: int = DEFAULT_MAX_LINK_DEPTH
    ) -> None:
        self.identity = identity
        self.max_link_depth = max_link_depth
        self._arena = NodeArena()
        self._sealed = False

    def __len__(self) -> int:
        """Return the number of nodes in the tree, root excluded."""
        return len(self._arena) - 1

    @property
    def sealed(self) -> bool:
        """Whether the tree is immutable."""
        return self._sealed

    def seal(self) -> None:
        """Make the tree immutable."""
        self._sealed = True

    def add_directory(self, path: str) -> None:
        """Create a directory, and any missing parent directories.

        An existing directory is kept along with its contents.

        :raises MalformedPath: If the path is invalid.
        """
        self._insert(path, NodeKind.DIRECTORY)

    def add_file(
        self, path: str, reference: FileReference | None = None
    ) -> FileReference:
        """Create or replace a regular file.

        :param path: The file path.
        :param reference: The file identity. If not specified, a new reference
            owned by this tree is created.

        :returns: The reference of the new file.

        :raises MalformedPath: If the path is invalid.
        """
        normalized = normalize_path(path)
        reference = reference or FileReference(self.identity, normalized)
        self._insert(normalized, NodeKind.REGULAR_FILE, reference=reference)
        return reference

    def add_symlink(
        self, path: str, target: str, reference: FileReference | None = None
    ) -> FileReference:
        """Create or replace a symbolic link.

        :param path: The link path.
        :param target: The link target, absolute or relative to the link's
            directory.
        :param reference: The link identity. If not specified, a new reference
            owned by this tree is created.

        :returns: The reference of the new link.

        :raises MalformedPath: If the path is invalid.
        """
        normalized = normalize_path(path)
        reference = reference or FileReference(self.identity, normalized)
        self._insert(
            normalized, NodeKind.SYMLINK, link_target=target, reference=reference
        )
        return reference

    def add_whiteout(self, path: str) -> None:
        """Mark a path as deleted.

        The marker is stored as a sibling of the deleted path, so the same
        tree can both provide and delete an entry.

        :param path: The path to delete.

        :raises MalformedPath: If the path is invalid.
        """
        normalized = normalize_path(path)
        if normalized == ROOT:
            raise MalformedPath(path, "the root directory cannot be whited out")

        marker = str(oci_whiteout(PurePosixPath(normalized)))
        self._insert(marker, NodeKind.WHITEOUT)

    def add_opaque_whiteout(self, dir_path: str) -> None:
        """Mark a directory as opaque, hiding contents from lower trees.

        :param dir_path: The directory to mark as opaque.

        :raises MalformedPath: If the path is invalid.
        """
        normalized = normalize_path(dir_path)
        marker = str(oci_opaque_dir(PurePosixPath(normalized)))
        self._insert(marker, NodeKind.OPAQUE_WHITEOUT)

    def remove(self, path: str) -> bool:
        """Delete the node at the given path and everything below it.

        Symbolic links are not followed.

        :returns: Whether a node was deleted.

        :raises MalformedPath: If the path is invalid.
        """
        normalized = normalize_path(path)
        self._check_writable(normalized)
        node_id = self._lookup(normalized)
        if node_id is None or node_id == ROOT_ID:
            return False

        node = self._arena[node_id]
        del self._arena[node.parent].children[node.name]
        self._arena.release(node_id)
        return True

    def clear_children(self, path: str) -> None:
        """Delete every entry in the directory at the given path.

        Nothing happens if the path is not a directory.

        :raises MalformedPath: If the path is invalid.
        """
        normalized = normalize_path(path)
        self._check_writable(normalized)
        node_id = self._lookup(normalized)
        if node_id is None:
            return

        node = self._arena[node_id]
        for child_id in node.children.values():
            self._arena.release(child_id)
        node.children.clear()

    def has_path(self, path: str) -> bool:
        """Verify if a node exists at the given path, without following links."""
        return self._lookup(normalize_path(path)) is not None

    def node_kind(self, path: str) -> NodeKind | None:
        """Return the kind of the node at the given path, without following links."""
        node_id = self._lookup(normalize_path(path))
        if node_id is None:
            return None
        return self._arena[node_id].kind

    def file(self, path: str, mode: ResolutionMode = ResolutionMode.NONE) -> FileLookup:
        """Look up a path, following symbolic links according to the given mode.

        A dangling link, or a missing node, is reported as not existing.
        Directories exist but have no file reference.

        :param path: The path to look up.
        :param mode: The symbolic link resolution mode.

        :returns: Whether the path exists and the resolved file reference.

        :raises MalformedPath: If the path is invalid.
        :raises SymlinkDepthExceeded: If too many links were followed.
        """
        normalized = normalize_path(path)
        node_id = self._resolve(
            normalized, follow_final=mode is ResolutionMode.FOLLOW_BASENAME_LINKS
        )
        if node_id is None:
            return FileLookup(exists=False, reference=None)

        return FileLookup(exists=True, reference=self._arena[node_id].reference)

    def all_files(self) -> Iterable[FileReference]:
        """Return the references of every file in the tree.

        The returned view can be iterated more than once.
        """
        return _FileReferences(self)

    def walk(self) -> Iterator[tuple[str, Node]]:
        """Traverse the tree in pre-order, with entries sorted by name.

        :returns: An iterator of path and node pairs. The root is not included.
        """
        pending: list[tuple[str, NodeId]] = [(ROOT, ROOT_ID)]
        while pending:
            path, node_id = pending.pop()
            node = self._arena[node_id]
            if node_id != ROOT_ID:
                yield path, node

            for name in sorted(node.children, reverse=True):
                pending.append((join_path(path, name), node.children[name]))

    def paths(self) -> set[str]:
        """Return the paths of every node in the tree."""
        return {path for path, _ in self.walk()}

    def copy(self, identity: str | None = None) -> "FileTree":
        """Return a deep, mutable copy of this tree.

        File references are values and are kept as they are.

        :param identity: The identity of the new tree. Defaults to the identity
            of this tree.
        """
        tree = FileTree(
            self.identity if identity is None else identity,
            max_link_depth=self.max_link_depth,
        )
        tree._arena = self._arena.copy()
        return tree

    def _check_writable(self, path: str) -> None:
        if self._sealed:
            raise TreeSealedError(path)

    def _insert(
        self,
        path: str,
        kind: NodeKind,
        *,
        link_target: str | None = None,
        reference: FileReference | None = None,
    ) -> NodeId:
        """Create the terminal node of a path, replacing an existing node.

        Intermediate components that are not directories are replaced by
        implicit directories, links are never followed.
        """
        normalized = normalize_path(path)
        self._check_writable(normalized)
        parts = split_path(normalized)
        if not parts:
            if kind is NodeKind.DIRECTORY:
                return ROOT_ID
            raise MalformedPath(path, "the root directory cannot be replaced")

        parent_id = ROOT_ID
        for name in parts[:-1]:
            parent_id = self._child(parent_id, name, NodeKind.DIRECTORY, implicit=True)

        return self._child(
            parent_id, parts[-1], kind, link_target=link_target, reference=reference
        )

    def _child(
        self,
        parent_id: NodeId,
        name: str,
        kind: NodeKind,
        *,
        link_target: str | None = None,
        reference: FileReference | None = None,
        implicit: bool = False,
    ) -> NodeId:
        parent = self._arena[parent_id]
        existing = parent.children.get(name)
        if existing is not None:
            node = self._arena[existing]
            if kind is NodeKind.DIRECTORY and node.kind is kind:
                node.implicit = node.implicit and implicit
                return existing
            self._arena.release(existing)

        node_id = self._arena.allocate(
            Node(
                kind=kind,
                name=name,
                parent=parent_id,
                link_target=link_target,
                reference=reference,
                implicit=implicit,
            )
        )
        parent.children[name] = node_id
        return node_id

    def _lookup(self, path: str) -> NodeId | None:
        """Find the node of a normalized path, without following links."""
        node_id = ROOT_ID
        for name in split_path(path):
            node_id = self._arena[node_id].children.get(name)
            if node_id is None:
                return None
        return node_id

    def _resolve(self, path: str, *, follow_final: bool) -> NodeId | None:
        """Find the node of a normalized path, following links.

        Links in intermediate components are always followed. Relative link
        targets are resolved from the directory containing the link, and
        ``..`` never goes above the root.
        """
        pending = collections.deque(split_path(path))
        current = ROOT_ID
        followed = 0

        while pending:
            name = pending.popleft()
            if name == ".":
                continue
            if name == "..":
                current = self._arena[current].parent
                continue

            child_id = self._arena[current].children.get(name)
            if child_id is None:
                return None

            child = self._arena[child_id]
            if child.kind is NodeKind.SYMLINK and (pending or follow_final):
                followed += 1
                if followed > self.max_link_depth:
                    raise SymlinkDepthExceeded(path, self.max_link_depth)

                target = child.link_target or ""
                logger.debug("follow link %s -> %s", child.reference, target)
                if not target:
                    return None
                if target.startswith(ROOT):
                    current = ROOT_ID
                pending.extendleft(reversed(split_path(target)))
                continue

            if pending and child.kind is not NodeKind.DIRECTORY:
                return None

            current = child_id

        return current
