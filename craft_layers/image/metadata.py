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

"""Image and layer metadata models."""

import pydantic

DOCKER_LAYER_MEDIA_TYPE = "application/vnd.docker.image.rootfs.diff.tar"
DOCKER_MANIFEST_MEDIA_TYPE = "application/vnd.docker.distribution.manifest.v2+json"
OCI_LAYER_MEDIA_TYPE = "application/vnd.oci.image.layer.v1.tar"
OCI_MANIFEST_MEDIA_TYPE = "application/vnd.oci.image.manifest.v1+json"


def _model_config() -> pydantic.ConfigDict:
    return pydantic.ConfigDict(
        alias_generator=lambda s: s.replace("_", "-"),
        populate_by_name=True,
        extra="forbid",
    )


class LayerMetadata(pydantic.BaseModel, frozen=True):  # type: ignore[misc]
    """The description of one layer in an image."""

    model_config = _model_config()

    index: int = pydantic.Field(
        ge=0, description="The layer position, 0 is the bottom."
    )
    digest: str = pydantic.Field(min_length=1, description="The layer identity.")
    media_type: str = DOCKER_LAYER_MEDIA_TYPE
    size: int | None = pydantic.Field(
        default=None,
        ge=0,
        description="The size of the layer contents, computed if not specified.",
    )


class ImageMetadata(pydantic.BaseModel, frozen=True):  # type: ignore[misc]
    """The description of an image."""

    model_config = _model_config()

    id: str = ""
    media_type: str = DOCKER_MANIFEST_MEDIA_TYPE
    tags: tuple[str, ...] = ()
    size: int | None = pydantic.Field(
        default=None,
        ge=0,
        description="The size of the image contents, computed if not specified.",
    )
