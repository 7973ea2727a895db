from __future__ import annotations

from pathlib import Path

from .base import BaseToolConverter
from ..scanner import MediaKind


class ImageConverter(BaseToolConverter):
    """Rasterizes any supported image to the canonical raster format.

    Only the first frame of multi-frame inputs (animated GIF/WebP, multi-page
    TIFF) is kept.
    """

    kind = MediaKind.IMAGE
    temp_prefix = "img-"

    @property
    def canonical_extension(self) -> str:
        return self._config.formats.image_extension

    def build_command(self, source: Path, output: Path) -> list[str]:
        return [self._binary, f"{source}[0]", str(output)]
