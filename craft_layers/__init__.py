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


"""Reconstruct the filesystem of container images from their layers."""

from .config import EngineConfig
from .errors import LayersError
from .file import (
    ArchiveOpener,
    ContentLocator,
    DeferredPartialReader,
    FileArchiveOpener,
    FileCatalog,
    FileReference,
)
from .filetree import FileLookup, FileTree, NodeKind, ResolutionMode
from .image import (
    EntryKind,
    Image,
    ImageMetadata,
    Layer,
    LayerEntry,
    LayerMetadata,
    Squasher,
)


try:
    from ._version import __version__
except ImportError:  # pragma: no cover
    from importlib.metadata import version, PackageNotFoundError

    try:
        __version__ = version("craft_layers")
    except PackageNotFoundError:
        __version__ = "dev"


__all__ = [
    "__version__",
    "ArchiveOpener",
    "ContentLocator",
    "DeferredPartialReader",
    "EngineConfig",
    "EntryKind",
    "FileArchiveOpener",
    "FileCatalog",
    "FileLookup",
    "FileReference",
    "FileTree",
    "Image",
    "ImageMetadata",
    "Layer",
    "LayerEntry",
    "LayerMetadata",
    "LayersError",
    "NodeKind",
    "ResolutionMode",
    "Squasher",
]
