from __future__ import annotations

from typing import Dict, Type

from .audio import AudioConverter
from .base import (
    BaseToolConverter,
    ConversionFailure,
    Converter,
    ConverterResponse,
    TargetWriteError,
)
from .image import ImageConverter
from .video import VideoConverter
from ..config import AppConfig
from ..probe import MediaProber
from ..scanner import MediaKind
from ..tools import ToolRunner

_CONVERTER_CLASSES: Dict[MediaKind, Type[BaseToolConverter]] = {
    MediaKind.IMAGE: ImageConverter,
    MediaKind.AUDIO: AudioConverter,
    MediaKind.VIDEO: VideoConverter,
}


def get_converter(
    kind: MediaKind,
    *,
    config: AppConfig,
    runner: ToolRunner,
    prober: MediaProber,
    binary: str,
) -> Converter:
    converter_cls = _CONVERTER_CLASSES.get(kind)
    if not converter_cls:
        raise KeyError(f"No converter registered for {kind}")
    return converter_cls(config, runner, prober, binary)


__all__ = [
    "AudioConverter",
    "BaseToolConverter",
    "ConversionFailure",
    "Converter",
    "ConverterResponse",
    "ImageConverter",
    "TargetWriteError",
    "VideoConverter",
    "get_converter",
]
