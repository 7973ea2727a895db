from __future__ import annotations

from pathlib import Path

from .base import BaseToolConverter
from ..scanner import MediaFile, MediaKind


class VideoConverter(BaseToolConverter):
    kind = MediaKind.VIDEO
    temp_prefix = "vid-"

    @property
    def canonical_extension(self) -> str:
        return self._config.formats.video_extension

    @property
    def label(self) -> str:
        formats = self._config.formats
        return f"Video -> {formats.video_codec}+{formats.audio_codec}/.{self.canonical_extension}"

    def is_canonical(self, media: MediaFile) -> bool:
        formats = self._config.formats
        if media.extension != self.canonical_extension:
            return False
        if not self._prober.has_video_stream(media.path):
            return False
        if self._prober.video_codec(media.path) != formats.video_codec:
            return False
        if self._prober.has_audio_stream(media.path):
            return self._prober.audio_codec(media.path) == formats.audio_codec
        return True

    def build_command(self, source: Path, output: Path) -> list[str]:
        formats = self._config.formats
        cmd = [
            self._binary,
            "-y",
            "-i",
            str(source),
            "-c:v",
            formats.video_encoder,
            "-q:v",
            str(formats.video_quality),
        ]
        if self._prober.has_audio_stream(source):
            cmd.extend(["-c:a", formats.audio_encoder, "-q:a", str(formats.audio_quality)])
        else:
            cmd.append("-an")
        cmd.append(str(output))
        return cmd
