from __future__ import annotations

from pathlib import Path

from .base import BaseToolConverter
from ..scanner import MediaFile, MediaKind


class AudioConverter(BaseToolConverter):
    kind = MediaKind.AUDIO
    temp_prefix = "aud-"

    @property
    def canonical_extension(self) -> str:
        return self._config.formats.audio_extension

    @property
    def label(self) -> str:
        return f"Audio -> {self._config.formats.audio_codec}/.{self.canonical_extension}"

    def is_canonical(self, media: MediaFile) -> bool:
        if media.extension != self.canonical_extension:
            return False
        # An audio container may still carry a video stream.
        if self._prober.has_video_stream(media.path):
            return False
        return self._prober.audio_codec(media.path) == self._config.formats.audio_codec

    def build_command(self, source: Path, output: Path) -> list[str]:
        formats = self._config.formats
        return [
            self._binary,
            "-y",
            "-i",
            str(source),
            "-vn",
            "-c:a",
            formats.audio_encoder,
            "-q:a",
            str(formats.audio_quality),
            str(output),
        ]
