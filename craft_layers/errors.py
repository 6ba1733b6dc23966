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

"""Craft layers errors."""

import dataclasses
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from craft_layers.file.reference import ContentLocator, FileReference


@dataclasses.dataclass(repr=True)
class LayersError(Exception):
    """Unexpected error.

    :param brief: Brief description of error.
    :param details: Detailed information.
    :param resolution: Recommendation, if any.
    """

    brief: str
    details: str | None = None
    resolution: str | None = None

    def __str__(self) -> str:
        components = [self.brief]

        if self.details:
            components.append(self.details)

        if self.resolution:
            components.append(self.resolution)

        return "\n".join(components)


class MalformedPath(LayersError):
    """A path string is empty, relative, or otherwise invalid.

    :param path: The invalid path.
    :param message: Why the path was rejected.
    """

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        brief = f"Invalid path {path!r}: {message}."
        resolution = "Use an absolute, '/'-separated path."

        super().__init__(brief=brief, resolution=resolution)


class PathNotFound(LayersError):
    """No resolvable node exists for a path.

    :param path: The path that could not be resolved.
    """

    def __init__(self, path: str):
        self.path = path
        brief = f"Could not find file path in tree: {path}"

        super().__init__(brief=brief)


class NotAFileError(LayersError):
    """A path resolved to a node that has no file contents.

    :param path: The path being resolved.
    """

    def __init__(self, path: str):
        self.path = path
        brief = f"Path {path!r} does not resolve to a file."
        resolution = "Directories have no contents, request a file path instead."

        super().__init__(brief=brief, resolution=resolution)


class SymlinkDepthExceeded(LayersError):
    """Symbolic link resolution did not terminate within the configured bound.

    :param path: The path being resolved.
    :param max_depth: The maximum number of links that may be followed.
    """

    def __init__(self, path: str, max_depth: int):
        self.path = path
        self.max_depth = max_depth
        brief = (
            f"Failed to resolve {path!r}: more than {max_depth} symbolic "
            "links were followed."
        )
        details = "The link chain is either cyclic or too deep."

        super().__init__(brief=brief, details=details)


class TreeSealedError(LayersError):
    """An attempt was made to modify an immutable file tree.

    :param path: The path being modified.
    """

    def __init__(self, path: str):
        self.path = path
        brief = f"Cannot modify {path!r}: the file tree is immutable."

        super().__init__(brief=brief)


class LayerIndexError(LayersError):
    """A squash tree was requested for a layer index that doesn't exist.

    :param index: The requested index.
    :param layer_count: The number of layers in the image.
    """

    def __init__(self, index: int, layer_count: int):
        self.index = index
        self.layer_count = layer_count
        brief = f"Layer index {index} is out of range."
        details = f"The image has {layer_count} layer(s)."

        super().__init__(brief=brief, details=details)


class UnregisteredReference(LayersError):
    """A catalog lookup was made for a file reference that was never added.

    :param reference: The unknown file reference.
    """

    def __init__(self, reference: "FileReference"):
        self.reference = reference
        brief = f"Could not find file reference in catalog: {reference}"
        resolution = (
            "Resolve paths through the image file tree before fetching contents."
        )

        super().__init__(brief=brief, resolution=resolution)


class CatalogSealedError(LayersError):
    """An attempt was made to add an entry to a sealed file catalog.

    :param reference: The file reference being added.
    """

    def __init__(self, reference: "FileReference"):
        self.reference = reference
        brief = f"Cannot add {reference} to the file catalog: catalog is sealed."

        super().__init__(brief=brief)


class ContentOpenError(LayersError):
    """The archive location of a file could not be opened or seeked.

    :param locator: The content locator being opened.
    :param message: The error message.
    """

    def __init__(self, locator: "ContentLocator", message: str):
        self.locator = locator
        self.message = message
        brief = f"Failed to open contents at {locator}: {message}"

        super().__init__(brief=brief)


class PartialReadError(LayersError):
    """An I/O error happened while reading file contents.

    :param locator: The content locator being read.
    :param message: The error message.
    """

    def __init__(self, locator: "ContentLocator", message: str):
        self.locator = locator
        self.message = message
        brief = f"Failed to read contents at {locator}: {message}"

        super().__init__(brief=brief)
