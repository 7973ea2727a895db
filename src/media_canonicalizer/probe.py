from __future__ import annotations

from pathlib import Path
from typing import Protocol

from .tools import ToolRunner

VIDEO_STREAM = "v:0"
AUDIO_STREAM = "a:0"


class MediaProber(Protocol):
    def has_video_stream(self, path: Path) -> bool:  # pragma: no cover - interface
        ...

    def has_audio_stream(self, path: Path) -> bool:  # pragma: no cover - interface
        ...

    def video_codec(self, path: Path) -> str:  # pragma: no cover - interface
        ...

    def audio_codec(self, path: Path) -> str:  # pragma: no cover - interface
        ...


class FFprobeProber:
    """Stream inspection through ``ffprobe``; a failed probe reads as "no such stream"."""

    def __init__(self, runner: ToolRunner, binary: str = "ffprobe") -> None:
        self._runner = runner
        self._binary = binary
        self._cache: dict[tuple[str, str], str] = {}

    def build_command(self, path: Path, selector: str) -> list[str]:
        return [
            self._binary,
            "-v",
            "error",
            "-select_streams",
            selector,
            "-show_entries",
            "stream=codec_name",
            "-of",
            "default=nk=1:nw=1",
            str(path),
        ]

    def stream_codec(self, path: Path, selector: str) -> str:
        key = (str(path), selector)
        if key not in self._cache:
            result = self._runner.run(self.build_command(path, selector))
            self._cache[key] = _first_line(result.stdout) if result.ok else ""
        return self._cache[key]

    def has_video_stream(self, path: Path) -> bool:
        return bool(self.stream_codec(path, VIDEO_STREAM))

    def has_audio_stream(self, path: Path) -> bool:
        return bool(self.stream_codec(path, AUDIO_STREAM))

    def video_codec(self, path: Path) -> str:
        return self.stream_codec(path, VIDEO_STREAM)

    def audio_codec(self, path: Path) -> str:
        return self.stream_codec(path, AUDIO_STREAM)


def _first_line(output: str) -> str:
    for line in output.splitlines():
        stripped = line.strip()
        if stripped:
            return stripped
    return ""


__all__ = ["AUDIO_STREAM", "FFprobeProber", "MediaProber", "VIDEO_STREAM"]
