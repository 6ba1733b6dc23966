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

"""OCI whiteout naming helpers.

Relevant OCI documentation available at:
https://github.com/opencontainers/image-spec/blob/main/layer.md
"""

from pathlib import PurePosixPath

WHITEOUT_PREFIX = ".wh."
OPAQUE_MARKER = ".wh..wh..opq"


def is_oci_opaque_marker(path: PurePosixPath) -> bool:
    """Verify if the given path is an OCI opaque directory marker.

    :param path: The path of the archive entry to verify.

    :returns: Whether the entry marks its parent directory as opaque.
    """
    return path.name == OPAQUE_MARKER


def is_oci_whiteout_file(path: PurePosixPath) -> bool:
    """Verify if the given path corresponds to an OCI whiteout file.

    :param path: The path of the archive entry to verify.

    :returns: Whether the given path is an OCI whiteout file.
    """
    return path.name.startswith(WHITEOUT_PREFIX) and path.name != OPAQUE_MARKER


def oci_whiteout(path: PurePosixPath) -> PurePosixPath:
    """Convert the given path to an OCI whiteout file name.

    :param path: The file path to white out.

    :returns: The corresponding OCI whiteout file name.
    """
    return path.parent / (WHITEOUT_PREFIX + path.name)


def oci_whited_out_file(whiteout_file: PurePosixPath) -> PurePosixPath:
    """Find the whited out file corresponding to a whiteout file.

    :param whiteout_file: The whiteout file to process.

    :returns: The file that was whited out.
    """
    if not is_oci_whiteout_file(whiteout_file):
        raise ValueError("argument is not an OCI whiteout file")

    return whiteout_file.parent / whiteout_file.name[len(WHITEOUT_PREFIX) :]


def oci_opaque_dir(path: PurePosixPath) -> PurePosixPath:
    """Return the OCI opaque directory marker.

    :param path: The directory to mark as opaque.

    :returns: The corresponding OCI opaque directory marker path.
    """
    return path / OPAQUE_MARKER
