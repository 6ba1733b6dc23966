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

"""Utility functions for tree paths."""

import posixpath

from craft_layers.errors import MalformedPath

ROOT = "/"


def normalize_path(path: str) -> str:
    """Validate and normalize an absolute tree path.

    Repeated separators, trailing separators, ``.`` and ``..`` components are
    collapsed lexically. Paths never escape the root.

    :param path: The path to normalize.

    :returns: The normalized path.

    :raises MalformedPath: If the path is empty, relative or contains NUL.
    """
    if not isinstance(path, str) or not path:
        raise MalformedPath(str(path), "path cannot be empty")

    if not path.startswith(ROOT):
        raise MalformedPath(path, "path must be absolute")

    if "\0" in path:
        raise MalformedPath(path, "path cannot contain NUL characters")

    # normpath keeps a leading double slash as POSIX allows it
    normalized = posixpath.normpath(path)
    return ROOT + normalized.lstrip(ROOT)


def split_path(path: str) -> list[str]:
    """Split a normalized path into its components, root excluded."""
    return [part for part in path.split(ROOT) if part]


def join_path(parent: str, name: str) -> str:
    """Join a normalized parent path and a child name."""
    if parent == ROOT:
        return ROOT + name
    return f"{parent}{ROOT}{name}"
