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

import hashlib
import io
import json
import tarfile
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest

# Layer tarball members, as (type, name, data) tuples. The data is the file
# contents for "file", and the link target for "symlink" and "hardlink".
Member = tuple[str, str, Any]


def _add_member(tar: tarfile.TarFile, kind: str, name: str, data: Any) -> None:
    info = tarfile.TarInfo(name)
    if kind == "file":
        info.size = len(data)
        tar.addfile(info, io.BytesIO(data))
        return

    if kind == "dir":
        info.type = tarfile.DIRTYPE
        info.mode = 0o755
    elif kind == "symlink":
        info.type = tarfile.SYMTYPE
        info.linkname = data
    elif kind == "hardlink":
        info.type = tarfile.LNKTYPE
        info.linkname = data
    elif kind == "fifo":
        info.type = tarfile.FIFOTYPE
    else:
        raise ValueError(f"unknown member type {kind!r}")

    tar.addfile(info)


def build_layer_tar(members: Sequence[Member]) -> bytes:
    """Create an uncompressed layer tarball in memory."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w", format=tarfile.PAX_FORMAT) as tar:
        for kind, name, data in members:
            _add_member(tar, kind, name, data)
    return buffer.getvalue()


@pytest.fixture
def new_dir(monkeypatch, tmpdir):
    """Change to a new temporary directory."""
    monkeypatch.chdir(tmpdir)
    return tmpdir


@pytest.fixture
def layer_blob() -> Callable[[Sequence[Member]], bytes]:
    """Return a function that creates a layer tarball in memory."""
    return build_layer_tar


@pytest.fixture
def layer_tar(tmp_path) -> Callable[..., Path]:
    """Return a function that writes a layer tarball to the temporary directory."""

    def _layer_tar(members: Sequence[Member], name: str = "layer.tar") -> Path:
        path = tmp_path / name
        path.write_bytes(build_layer_tar(members))
        return path

    return _layer_tar


@pytest.fixture
def docker_archive(tmp_path) -> Callable[..., Path]:
    """Return a function that writes a ``docker save`` style archive."""

    def _docker_archive(
        layers: Sequence[Sequence[Member]],
        *,
        tags: Sequence[str] = ("example/image:latest",),
        name: str = "image.tar",
    ) -> Path:
        layer_blobs = [build_layer_tar(members) for members in layers]
        diff_ids = ["sha256:" + hashlib.sha256(blob).hexdigest() for blob in layer_blobs]
        config = json.dumps(
            {
                "architecture": "amd64",
                "os": "linux",
                "rootfs": {"type": "layers", "diff_ids": diff_ids},
            }
        ).encode()
        config_name = hashlib.sha256(config).hexdigest() + ".json"
        layer_names = [f"{diff_id[7:]}/layer.tar" for diff_id in diff_ids]
        manifest = json.dumps(
            [{"Config": config_name, "RepoTags": list(tags), "Layers": layer_names}]
        ).encode()

        path = tmp_path / name
        with tarfile.open(path, mode="w", format=tarfile.PAX_FORMAT) as tar:
            _add_member(tar, "file", config_name, config)
            for layer_name, blob in zip(layer_names, layer_blobs):
                _add_member(tar, "dir", layer_name.split("/")[0], None)
                _add_member(tar, "file", layer_name, blob)
            _add_member(tar, "file", "manifest.json", manifest)

        return path

    return _docker_archive
