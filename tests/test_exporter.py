"""Tests for the file exporter."""

import pytest
from PIL import Image

from roundtrip.errors import ExportFailure
from roundtrip.exporter import FileExporter
from roundtrip.models import Item


@pytest.fixture
def export_dir(tmp_path):
    return tmp_path / "export"


@pytest.fixture
def exporter(export_dir):
    return FileExporter(export_dir=export_dir, jpeg_quality=80)


@pytest.fixture
def photo(tmp_path):
    """A small RGBA PNG in a photos folder."""
    folder = tmp_path / "photos"
    folder.mkdir()
    path = folder / "IMG_0001.png"
    Image.new("RGBA", (8, 6), (200, 10, 10, 128)).save(path)
    return Item(id=1, path=path)


class TestFileExporter:
    """Tests for FileExporter.export."""

    def test_original_is_byte_copy(self, exporter, photo, export_dir):
        exported = exporter.export(photo, "original", 8)

        assert exported.path == export_dir / "IMG_0001.png"
        assert exported.path.read_bytes() == photo.path.read_bytes()
        assert exported.format == "original"

    def test_original_allows_16_bit(self, exporter, photo):
        exported = exporter.export(photo, "original", 16)
        assert exported.bit_depth == 16

    def test_tiff_keeps_alpha(self, exporter, photo, export_dir):
        exported = exporter.export(photo, "tiff", 8)

        assert exported.path == export_dir / "IMG_0001.tif"
        with Image.open(exported.path) as img:
            assert img.format == "TIFF"
            assert img.mode == "RGBA"
            assert img.size == (8, 6)

    def test_jpeg_drops_alpha(self, exporter, photo):
        exported = exporter.export(photo, "jpeg", 8)

        assert exported.path.suffix == ".jpg"
        with Image.open(exported.path) as img:
            assert img.format == "JPEG"
            assert img.mode == "RGB"

    def test_same_name_twice_is_deduplicated(self, exporter, photo, export_dir):
        first = exporter.export(photo, "png", 8)
        second = exporter.export(photo, "png", 8)

        assert first.path == export_dir / "IMG_0001.png"
        assert second.path == export_dir / "IMG_0001_01.png"

    def test_missing_source(self, exporter, tmp_path):
        item = Item(id=9, path=tmp_path / "gone.jpg")

        with pytest.raises(ExportFailure) as excinfo:
            exporter.export(item, "tiff", 8)

        assert excinfo.value.item == item
        assert "not found" in excinfo.value.reason

    def test_unsupported_format(self, exporter, photo):
        with pytest.raises(ExportFailure):
            exporter.export(photo, "webp", 8)

    def test_unsupported_bit_depth(self, exporter, photo):
        with pytest.raises(ExportFailure):
            exporter.export(photo, "original", 12)

    def test_16_bit_needs_original(self, exporter, photo):
        with pytest.raises(ExportFailure):
            exporter.export(photo, "tiff", 16)

    def test_unreadable_image_leaves_nothing_behind(self, exporter, tmp_path, export_dir):
        path = tmp_path / "broken.jpg"
        path.write_bytes(b"not really a jpeg")

        with pytest.raises(ExportFailure):
            exporter.export(Item(id=2, path=path), "tiff", 8)

        assert list(export_dir.iterdir()) == []

    def test_default_export_dir_is_created(self, photo):
        exporter = FileExporter()

        exported = exporter.export(photo, "original", 8)

        assert exporter.export_dir.is_dir()
        assert exported.path.parent == exporter.export_dir
