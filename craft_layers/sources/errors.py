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

"""Archive source error definitions."""

from craft_layers import errors


class SourceError(errors.LayersError):
    """Base class for archive source errors."""


class ArchiveFormatError(SourceError):
    """An archive could not be parsed.

    :param archive: The archive being parsed.
    :param message: The error message.
    """

    def __init__(self, archive: str, message: str):
        self.archive = archive
        self.message = message
        brief = f"Failed to load archive {archive!r}: {message}"
        resolution = "Make sure the archive is an uncompressed tarball."

        super().__init__(brief=brief, resolution=resolution)
