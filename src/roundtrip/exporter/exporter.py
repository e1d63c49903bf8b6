"""Writes temporary copies of catalog items for the editor."""

import shutil
import tempfile
from pathlib import Path

from PIL import Image, ImageOps

from ..errors import ExportFailure
from ..interfaces import Exporter
from ..models import ExportedFile, Item
from ..paths import PathResolver
from ..utils.logging import get_logger

logger = get_logger(__name__)

# format name -> (Pillow format, file extension, modes kept as-is)
EXPORT_FORMATS = {
    "jpeg": ("JPEG", ".jpg", {"RGB", "L", "CMYK"}),
    "png": ("PNG", ".png", {"RGB", "RGBA", "L", "LA"}),
    "tiff": ("TIFF", ".tif", {"RGB", "RGBA", "L", "CMYK"}),
}

ORIGINAL_FORMAT = "original"


class FileExporter(Exporter):
    """
    Exports items into a scratch directory.

    ``original`` copies the file byte for byte; the other formats re-encode
    it with Pillow. Names are de-duplicated inside the export directory so
    two items called ``IMG_0001.jpg`` from different folders never clash.
    """

    def __init__(
        self,
        export_dir: Path | None = None,
        jpeg_quality: int = 95,
        resolver: PathResolver | None = None,
    ):
        """
        Initialize the exporter.

        Args:
            export_dir: Directory for temporary copies; a fresh temp dir if None
            jpeg_quality: Quality used for JPEG exports
            resolver: Name de-duplication (defaults to PathResolver())
        """
        if export_dir is None:
            export_dir = Path(tempfile.mkdtemp(prefix="roundtrip_"))
        self.export_dir = Path(export_dir)
        self.jpeg_quality = jpeg_quality
        self.resolver = resolver or PathResolver()

    def export(self, item: Item, format: str, bit_depth: int = 8) -> ExportedFile:
        source = Path(item.path)
        if not source.is_file():
            raise ExportFailure(item, f"source file not found: {source}")

        if format != ORIGINAL_FORMAT and format not in EXPORT_FORMATS:
            raise ExportFailure(item, f"unsupported export format '{format}'")
        if bit_depth not in (8, 16):
            raise ExportFailure(item, f"unsupported bit depth {bit_depth}")
        if format != ORIGINAL_FORMAT and bit_depth != 8:
            raise ExportFailure(item, f"{bit_depth}-bit export is only available with format 'original'")

        try:
            self.export_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExportFailure(item, f"cannot create export directory: {e}") from e

        if format == ORIGINAL_FORMAT:
            name = source.name
        else:
            name = source.stem + EXPORT_FORMATS[format][1]

        resolved = self.resolver.resolve(self.export_dir, name)
        if resolved.exhausted:
            raise ExportFailure(item, f"no free export name for {name} in {self.export_dir}")
        destination = resolved.path

        try:
            if format == ORIGINAL_FORMAT:
                shutil.copy2(source, destination)
            else:
                self._encode(source, destination, format)
        except (OSError, ValueError) as e:
            if destination.exists():
                destination.unlink()
            raise ExportFailure(item, f"export failed: {e}") from e

        logger.debug(f"Exported {source.name} -> {destination} ({format}, {bit_depth}-bit)")
        return ExportedFile(path=destination, format=format, bit_depth=bit_depth)

    def _encode(self, source: Path, destination: Path, format: str):
        pil_format, _, kept_modes = EXPORT_FORMATS[format]

        with Image.open(source) as img:
            img = ImageOps.exif_transpose(img)
            if img.mode not in kept_modes:
                target = "RGBA" if "RGBA" in kept_modes and "A" in img.getbands() else "RGB"
                img = img.convert(target)

            options = {}
            if pil_format == "JPEG":
                options["quality"] = self.jpeg_quality

            img.save(destination, format=pil_format, **options)
