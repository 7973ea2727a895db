from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path

from .config import ScanConfig
from .utils import extension_of

# Vector images are never rasterized, whatever the configured image extensions say.
VECTOR_EXTENSIONS = frozenset({"svg"})


class MediaKind(str, Enum):
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True, slots=True)
class MediaFile:
    path: Path
    extension: str
    kind: MediaKind

    @classmethod
    def from_path(cls, path: Path, kind: MediaKind = MediaKind.UNCLASSIFIED) -> MediaFile:
        return cls(path=path, extension=extension_of(path), kind=kind)

    def with_kind(self, kind: MediaKind) -> MediaFile:
        return replace(self, kind=kind)


@dataclass(slots=True)
class ScanResult:
    root: Path
    images: list[MediaFile] = field(default_factory=list)
    media: list[MediaFile] = field(default_factory=list)
    html: list[Path] = field(default_factory=list)

    def census(self) -> str:
        return f"Found images={len(self.images)}, media={len(self.media)}, html={len(self.html)} under: {self.root}"


class RootNotFound(RuntimeError):
    """Raised when the scan root is not a directory."""


def scan_tree(root: Path, config: ScanConfig) -> ScanResult:
    if not root.is_dir():
        raise RootNotFound(f"root is not a directory: {root}")
    root = root.absolute()
    skip = set(config.skip_dirs)
    image_ext = set(config.image_extensions) - VECTOR_EXTENSIONS
    media_ext = set(config.media_extensions)
    html_ext = set(config.html_extensions)

    result = ScanResult(root=root)
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in skip)
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if not path.is_file():
                continue
            extension = extension_of(path)
            if not extension:
                continue
            if extension in html_ext:
                result.html.append(path)
            elif extension in VECTOR_EXTENSIONS:
                continue
            elif extension in image_ext:
                result.images.append(MediaFile(path=path, extension=extension, kind=MediaKind.IMAGE))
            elif extension in media_ext:
                result.media.append(MediaFile(path=path, extension=extension, kind=MediaKind.UNCLASSIFIED))
    return result


__all__ = [
    "MediaFile",
    "MediaKind",
    "RootNotFound",
    "ScanResult",
    "VECTOR_EXTENSIONS",
    "scan_tree",
]
