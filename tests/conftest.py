from __future__ import annotations

import io
from pathlib import Path
from typing import Sequence

import pytest

from media_canonicalizer.config import AppConfig
from media_canonicalizer.core import CanonicalizationService
from media_canonicalizer.logging import RunConsole
from media_canonicalizer.tools import ToolResult


def media_bytes(video: str | None = None, audio: str | None = None) -> bytes:
    """Fake media payload: the stream layout is spelled out in the file itself."""

    parts = []
    if video:
        parts.append(f"video={video}")
    if audio:
        parts.append(f"audio={audio}")
    return ";".join(parts).encode("utf-8")


class FakeProber:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    def _streams(self, path: Path) -> dict[str, str]:
        try:
            raw = path.read_bytes().decode("utf-8", errors="ignore")
        except OSError:
            return {}
        streams: dict[str, str] = {}
        for part in raw.split(";"):
            key, _, value = part.partition("=")
            if key in {"video", "audio"} and value:
                streams[key] = value
        return streams

    def has_video_stream(self, path: Path) -> bool:
        self.calls.append(("video?", path.name))
        return "video" in self._streams(path)

    def has_audio_stream(self, path: Path) -> bool:
        self.calls.append(("audio?", path.name))
        return "audio" in self._streams(path)

    def video_codec(self, path: Path) -> str:
        self.calls.append(("video", path.name))
        return self._streams(path).get("video", "")

    def audio_codec(self, path: Path) -> str:
        self.calls.append(("audio", path.name))
        return self._streams(path).get("audio", "")


class FakeRunner:
    """Stands in for magick/ffmpeg by writing deterministic output bytes."""

    def __init__(self, fail: Sequence[str] = ()) -> None:
        self.fail = set(fail)
        self.commands: list[list[str]] = []

    def run(self, command: Sequence[str]) -> ToolResult:
        cmd = [str(part) for part in command]
        self.commands.append(cmd)
        output = Path(cmd[-1])
        if "-i" in cmd:
            source = Path(cmd[cmd.index("-i") + 1])
            payload = self._transcode(cmd, source)
        else:
            source = Path(cmd[1].removesuffix("[0]"))
            payload = b"PNG\n" + source.read_bytes()
        if source.name in self.fail:
            return ToolResult(returncode=1, stderr="simulated encoder failure\n")
        output.write_bytes(payload)
        return ToolResult(returncode=0)

    @staticmethod
    def _transcode(cmd: list[str], source: Path) -> bytes:
        video = None
        audio = None
        if "-c:v" in cmd and "-vn" not in cmd:
            video = cmd[cmd.index("-c:v") + 1].removeprefix("lib")
        if "-c:a" in cmd and "-an" not in cmd:
            audio = cmd[cmd.index("-c:a") + 1].removeprefix("lib")
        return media_bytes(video, audio)


@pytest.fixture
def prober() -> FakeProber:
    return FakeProber()


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def console() -> RunConsole:
    return RunConsole(color=False, stdout=io.StringIO(), stderr=io.StringIO())


@pytest.fixture
def make_service(prober: FakeProber, runner: FakeRunner, console: RunConsole):
    def _factory(config: AppConfig | None = None, **kwargs) -> CanonicalizationService:
        kwargs.setdefault("runner", runner)
        kwargs.setdefault("prober", prober)
        kwargs.setdefault("console", console)
        kwargs.setdefault("tool_locator", lambda names: names[0])
        return CanonicalizationService(config or AppConfig(), **kwargs)

    return _factory


def console_text(console: RunConsole) -> str:
    return console._out.file.getvalue() + console._err.file.getvalue()


def snapshot(root: Path) -> dict[str, tuple[bytes, int]]:
    return {
        str(path.relative_to(root)): (path.read_bytes(), path.stat().st_mtime_ns)
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }
