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

"""File identity and content location definitions."""

import dataclasses
from pathlib import Path


@dataclasses.dataclass(frozen=True)
class FileReference:
    """The identity of one file instance.

    The same path added by two different layers yields two distinct
    references, so contents can be addressed per layer.

    :ivar layer_id: The identity of the layer that provided the file.
    :ivar real_path: The path of the file, with no symbolic links in it.
    """

    layer_id: str
    real_path: str

    def __str__(self) -> str:
        return f"{self.real_path} (layer {self.layer_id or '<none>'})"


@dataclasses.dataclass(frozen=True)
class ContentLocator:
    """The location of a file's bytes inside an archive.

    :ivar archive_path: The archive containing the bytes.
    :ivar offset: The position of the first byte.
    :ivar size: The number of bytes.
    """

    archive_path: Path
    offset: int
    size: int

    def __post_init__(self) -> None:
        if self.offset < 0:
            raise ValueError(f"offset cannot be negative: {self.offset}")
        if self.size < 0:
            raise ValueError(f"size cannot be negative: {self.size}")

    def __str__(self) -> str:
        return f"{self.archive_path}[{self.offset}:{self.offset + self.size}]"
