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

"""Load images saved with ``docker save``.

Layer tarballs are stored uncompressed in the image archive, so file
contents are located directly in the outer archive and nothing is extracted.
"""

import hashlib
import json
import logging
import posixpath
import tarfile
from pathlib import Path
from typing import Any

from craft_layers.config import EngineConfig
from craft_layers.image import (
    DOCKER_LAYER_MEDIA_TYPE,
    DOCKER_MANIFEST_MEDIA_TYPE,
    Image,
    ImageMetadata,
    LayerEntry,
    LayerMetadata,
)

from . import errors
from .layer_tar import iter_layer_entries

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"


def load_docker_archive(
    archive_path: Path | str, *, config: EngineConfig | None = None
) -> Image:
    """Load the first image of a docker archive.

    :param archive_path: The archive created by ``docker save``.
    :param config: The engine configuration.

    :returns: The loaded image.

    :raises ArchiveFormatError: If the archive is not a valid docker archive.
    :raises OSError: If the archive cannot be read.
    """
    archive_path = Path(archive_path)
    logger.info("Loading docker archive %s", archive_path)

    try:
        with tarfile.open(archive_path, mode="r:") as archive:
            manifest = _read_json(archive, MANIFEST_FILE)
            if not isinstance(manifest, list) or not manifest:
                raise errors.ArchiveFormatError(
                    str(archive_path), "manifest has no images"
                )

            image_manifest = manifest[0]
            config_bytes = _read_bytes(archive, image_manifest["Config"])
            image_config = json.loads(config_bytes)
            diff_ids = image_config.get("rootfs", {}).get("diff_ids", [])

            layers: list[tuple[LayerMetadata, list[LayerEntry]]] = []
            for index, layer_name in enumerate(image_manifest["Layers"]):
                member = _regular_member(archive, layer_name)
                layer_file = archive.extractfile(member)
                digest = diff_ids[index] if index < len(diff_ids) else layer_name
                entries = list(
                    iter_layer_entries(
                        archive_path,
                        fileobj=layer_file,  # type: ignore[arg-type]
                        base_offset=member.offset_data,
                    )
                )
                logger.debug("layer %d (%s): %d entries", index, digest, len(entries))
                layers.append(
                    (
                        LayerMetadata(
                            index=index,
                            digest=digest,
                            media_type=DOCKER_LAYER_MEDIA_TYPE,
                        ),
                        entries,
                    )
                )
    except (KeyError, TypeError, ValueError) as err:
        raise errors.ArchiveFormatError(
            str(archive_path), f"invalid image manifest: {err}"
        ) from err
    except tarfile.TarError as err:
        raise errors.ArchiveFormatError(str(archive_path), str(err)) from err

    metadata = ImageMetadata(
        id="sha256:" + hashlib.sha256(config_bytes).hexdigest(),
        media_type=DOCKER_MANIFEST_MEDIA_TYPE,
        tags=tuple(image_manifest.get("RepoTags") or ()),
    )
    return Image.from_layer_entries(metadata, layers, config=config)


def _regular_member(archive: tarfile.TarFile, name: str) -> tarfile.TarInfo:
    """Find a member by name, following symbolic links between layers."""
    member = archive.getmember(name)
    for _ in range(len(archive.getmembers())):
        if not member.issym():
            break
        target = posixpath.normpath(
            posixpath.join(posixpath.dirname(member.name), member.linkname)
        )
        member = archive.getmember(target)

    if not member.isreg():
        raise ValueError(f"{name!r} is not a regular file")

    return member


def _read_bytes(archive: tarfile.TarFile, name: str) -> bytes:
    stream = archive.extractfile(_regular_member(archive, name))
    if stream is None:
        raise ValueError(f"{name!r} has no contents")
    with stream:
        return stream.read()


def _read_json(archive: tarfile.TarFile, name: str) -> Any:
    return json.loads(_read_bytes(archive, name))
