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


import pytest
from craft_layers.config import EngineConfig
from craft_layers.errors import (
    LayerIndexError,
    NotAFileError,
    PathNotFound,
    SymlinkDepthExceeded,
    UnregisteredReference,
)
from craft_layers.file import ContentLocator, FileCatalog, FileReference
from craft_layers.filetree import FileLookup, FileTree, ResolutionMode
from craft_layers.image import (
    EntryKind,
    Image,
    ImageMetadata,
    Layer,
    LayerEntry,
    LayerMetadata,
)

# byte offsets of the file contents in the archive
CONTENTS = b"ABXnested"
A, B, X, NESTED = (0, 1), (1, 1), (2, 1), (3, 6)


@pytest.fixture
def archive(tmp_path):
    path = tmp_path / "image.tar"
    path.write_bytes(CONTENTS)
    return path


@pytest.fixture
def entries(archive):
    def _file(path, location):
        return LayerEntry(
            path, EntryKind.REGULAR_FILE, locator=ContentLocator(archive, *location)
        )

    def _symlink(path, target):
        return LayerEntry(
            path,
            EntryKind.SYMLINK,
            link_target=target,
            locator=ContentLocator(archive, 0, 0),
        )

    return [
        (
            LayerMetadata(index=0, digest="sha256:l0"),
            [
                _file("/a", A),
                _file("/real/target", X),
                _symlink("/link", "/real/target"),
            ],
        ),
        (LayerMetadata(index=1, digest="sha256:l1"), [_file("/b", B)]),
        (
            LayerMetadata(index=2, digest="sha256:l2"),
            [
                _file("/.wh..wh..opq", (0, 0)),
                _file("/b/nested", NESTED),
                _file("/real/target", X),
                _symlink("/link", "/real/target"),
                _symlink("/dangling", "/missing"),
                _symlink("/loop-1", "/loop-2"),
                _symlink("/loop-2", "/loop-1"),
            ],
        ),
    ]


@pytest.fixture
def image(entries):
    metadata = ImageMetadata(id="sha256:image", tags=("example:latest",))
    with Image.from_layer_entries(metadata, entries) as image:
        yield image


class TestSquashTrees:
    """Per-layer filesystem views."""

    def test_squash_trees(self, image):
        assert image.squash_tree(0).paths() == {"/a", "/real", "/real/target", "/link"}
        assert image.squash_tree(1).paths() == {
            "/a",
            "/b",
            "/real",
            "/real/target",
            "/link",
        }
        assert image.squash_tree(2).paths() == {
            "/b",
            "/b/nested",
            "/real",
            "/real/target",
            "/link",
            "/dangling",
            "/loop-1",
            "/loop-2",
        }
        assert image.squashed_tree is image.squash_tree(2)

    @pytest.mark.parametrize("index", [-1, 3, 10])
    def test_squash_tree_out_of_range(self, image, index):
        with pytest.raises(LayerIndexError) as raised:
            image.squash_tree(index)
        assert raised.value.index == index
        assert raised.value.layer_count == 3

    def test_file(self, image):
        assert image.file("/a") == FileLookup(exists=False, reference=None)
        assert image.file("/a", index=0) == FileLookup(
            exists=True, reference=FileReference("sha256:l0", "/a")
        )
        assert image.file("/link", mode=ResolutionMode.NONE).reference == (
            FileReference("sha256:l2", "/link")
        )
        assert image.file("/link").reference == (
            FileReference("sha256:l2", "/real/target")
        )

    def test_follow_links_idempotent(self, image):
        resolved = image.file("/link").reference
        assert resolved is not None
        assert image.file(resolved.real_path).reference == resolved
        assert image.file(resolved.real_path, mode=ResolutionMode.NONE) == (
            image.file("/link")
        )


class TestMetadata:
    """Image and layer description."""

    def test_layers(self, image):
        assert [layer.index for layer in image.layers] == [0, 1, 2]
        assert [layer.digest for layer in image.layers] == [
            "sha256:l0",
            "sha256:l1",
            "sha256:l2",
        ]
        assert [layer.size for layer in image.layers] == [2, 1, 7]

    def test_image_metadata(self, image):
        assert image.metadata.id == "sha256:image"
        assert image.metadata.tags == ("example:latest",)
        assert image.metadata.size == 10

    def test_image_size_from_metadata(self, entries):
        metadata = ImageMetadata(size=42)
        image = Image.from_layer_entries(metadata, entries)
        assert image.metadata.size == 42

    def test_layer_index_mismatch(self):
        layer = Layer(LayerMetadata(index=1, digest="sha256:l1"), FileTree())
        with pytest.raises(ValueError) as raised:  # noqa: PT011
            Image(ImageMetadata(), [layer], FileCatalog())
        assert str(raised.value) == "layer 'sha256:l1' has index 1, expected 0"

    def test_catalog_sealed(self, image):
        assert image.catalog.sealed is True

    def test_config(self, entries):
        image = Image.from_layer_entries(
            ImageMetadata(), entries, config=EngineConfig(max_link_depth=5)
        )
        assert image.squashed_tree.max_link_depth == 5
        assert image.layers[0].tree.max_link_depth == 5

    def test_no_layers(self):
        image = Image(ImageMetadata(), [], FileCatalog())
        assert image.metadata.size == 0
        assert image.squashed_tree.paths() == set()
        with pytest.raises(LayerIndexError):
            image.squash_tree(0)


class TestContents:
    """File content access."""

    def test_resolve(self, image):
        with image.resolve("/b/nested") as reader:
            assert reader.read() == b"nested"

    def test_resolve_link(self, image):
        reference = image.file("/link").reference
        direct = image.file("/real/target", mode=ResolutionMode.NONE)
        assert reference == direct.reference

        with image.file_contents(reference) as reader:
            assert reader.read() == b"X"
        with image.resolve("/link") as reader:
            assert reader.read() == b"X"

    def test_resolve_at_layer(self, image):
        with image.resolve_at_layer(0, "/a") as reader:
            assert reader.read() == b"A"
        with image.resolve_at_layer(1, "/b") as reader:
            assert reader.read() == b"B"

    def test_resolve_at_layer_out_of_range(self, image):
        with pytest.raises(LayerIndexError):
            image.resolve_at_layer(3, "/a")

    def test_resolve_whited_out(self, image):
        with pytest.raises(PathNotFound) as raised:
            image.resolve("/a")
        assert raised.value.path == "/a"

    @pytest.mark.parametrize("path", ["/missing", "/dangling", "/b/nested/x"])
    def test_resolve_not_found(self, image, path):
        with pytest.raises(PathNotFound):
            image.resolve(path)

    @pytest.mark.parametrize("path", ["/", "/real", "/b"])
    def test_resolve_directory(self, image, path):
        with pytest.raises(NotAFileError) as raised:
            image.resolve(path)
        assert raised.value.path == path

    def test_resolve_link_loop(self, image):
        with pytest.raises(SymlinkDepthExceeded):
            image.resolve("/loop-1")

    def test_multiple_file_contents_from_squash(self, image):
        readers = image.multiple_file_contents_from_squash(
            "/b/nested", "/link", "/real/target"
        )

        target = FileReference("sha256:l2", "/real/target")
        nested = FileReference("sha256:l2", "/b/nested")
        assert set(readers) == {target, nested}
        assert readers[target].read() == b"X"
        assert readers[nested].read() == b"nested"

    def test_multiple_file_contents_from_squash_fails_batch(self, image, mocker):
        spy = mocker.spy(image.catalog, "multiple_file_contents")

        with pytest.raises(PathNotFound) as raised:
            image.multiple_file_contents_from_squash("/b/nested", "/a", "/missing")

        assert raised.value.path == "/a"
        spy.assert_not_called()

    def test_readers_do_not_share_position(self, image):
        first = image.resolve("/b/nested")
        second = image.resolve("/b/nested")

        assert first.read(3) == b"nes"
        assert second.read(2) == b"ne"
        assert first.read() == b"ted"
        assert second.read() == b"sted"


class TestCleanup:
    """Resource release."""

    def test_cleanup(self, entries):
        image = Image.from_layer_entries(ImageMetadata(), entries)
        image.cleanup()

        assert len(image.catalog) == 0
        with pytest.raises(UnregisteredReference):
            image.resolve("/b/nested")

    def test_context_manager(self, entries):
        with Image.from_layer_entries(ImageMetadata(), entries) as image:
            assert len(image.catalog) > 0
        assert len(image.catalog) == 0

    def test_cleanup_keeps_open_readers(self, entries):
        image = Image.from_layer_entries(ImageMetadata(), entries)
        reader = image.resolve("/real/target")
        image.cleanup()

        assert reader.read() == b"X"
