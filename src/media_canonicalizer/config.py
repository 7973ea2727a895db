from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from .settings import DEFAULT_CONFIG_PATH


class ConfigError(ValueError):
    """Raised when the configuration file cannot be used."""

    code = "CONFIG"


@dataclass(slots=True)
class PathsConfig:
    root: Path | None = None


@dataclass(slots=True)
class ScanConfig:
    skip_dirs: tuple[str, ...] = (".git", "node_modules", "dist", "build", ".cache")
    image_extensions: tuple[str, ...] = (
        "png",
        "jpg",
        "jpeg",
        "jpe",
        "gif",
        "bmp",
        "tiff",
        "tif",
        "webp",
        "heic",
        "heif",
        "avif",
    )
    media_extensions: tuple[str, ...] = (
        "ogg",
        "oga",
        "ogv",
        "mp3",
        "wav",
        "flac",
        "aac",
        "m4a",
        "mp4",
        "m4v",
        "mov",
        "mkv",
        "webm",
        "avi",
        "mpg",
        "mpeg",
    )
    html_extensions: tuple[str, ...] = ("html", "htm")


@dataclass(slots=True)
class FormatConfig:
    image_extension: str = "png"
    audio_extension: str = "ogg"
    video_extension: str = "ogv"
    audio_codec: str = "vorbis"
    video_codec: str = "theora"
    audio_encoder: str = "libvorbis"
    video_encoder: str = "libtheora"
    audio_quality: int = 5
    video_quality: int = 7


@dataclass(slots=True)
class ToolConfig:
    raster: tuple[str, ...] = ("magick", "convert")
    ffmpeg: str = "ffmpeg"
    ffprobe: str = "ffprobe"


@dataclass(slots=True)
class RuntimeConfig:
    tool_timeout_s: float | None = None
    summary_limit: int = 200
    log_file: Path | None = None


@dataclass(slots=True)
class AppConfig:
    paths: PathsConfig = field(default_factory=PathsConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    formats: FormatConfig = field(default_factory=FormatConfig)
    tools: ToolConfig = field(default_factory=ToolConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)


def _read_toml(path: Path) -> Mapping[str, object]:
    if not path.exists():
        return {}
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"TOML parse error in {path}: {exc}") from exc


def _section(raw: Mapping[str, object], name: str) -> Mapping[str, object] | None:
    value = raw.get(name)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ConfigError(f"Expected table for [{name}], got: {type(value).__name__}")
    return value


def _tuple_of_strings(value: object | None, default: Iterable[str]) -> tuple[str, ...]:
    if value is None:
        return tuple(default)
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Iterable):
        return tuple(str(item) for item in value)
    raise ConfigError(f"Expected a list of strings, got: {value!r}")


def _extensions(value: object | None, default: Iterable[str]) -> tuple[str, ...]:
    return tuple(item.strip().lstrip(".").lower() for item in _tuple_of_strings(value, default) if item.strip())


def _extension(value: object | None, default: str) -> str:
    if value is None:
        return default
    normalized = str(value).strip().lstrip(".").lower()
    if not normalized:
        raise ConfigError("Canonical extensions must not be empty")
    return normalized


def _int(data: Mapping[str, object], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"Expected integer for '{key}', got: {value!r}")
    return value


def _build_paths(data: Mapping[str, object] | None) -> PathsConfig:
    if not data or not data.get("root"):
        return PathsConfig()
    return PathsConfig(root=Path(str(data["root"])))


def _build_scan(data: Mapping[str, object] | None) -> ScanConfig:
    defaults = ScanConfig()
    if not data:
        return defaults
    return ScanConfig(
        skip_dirs=_tuple_of_strings(data.get("skip_dirs"), defaults.skip_dirs),
        image_extensions=_extensions(data.get("image_extensions"), defaults.image_extensions),
        media_extensions=_extensions(data.get("media_extensions"), defaults.media_extensions),
        html_extensions=_extensions(data.get("html_extensions"), defaults.html_extensions),
    )


def _build_formats(data: Mapping[str, object] | None) -> FormatConfig:
    defaults = FormatConfig()
    if not data:
        return defaults
    return FormatConfig(
        image_extension=_extension(data.get("image_extension"), defaults.image_extension),
        audio_extension=_extension(data.get("audio_extension"), defaults.audio_extension),
        video_extension=_extension(data.get("video_extension"), defaults.video_extension),
        audio_codec=str(data.get("audio_codec", defaults.audio_codec)),
        video_codec=str(data.get("video_codec", defaults.video_codec)),
        audio_encoder=str(data.get("audio_encoder", defaults.audio_encoder)),
        video_encoder=str(data.get("video_encoder", defaults.video_encoder)),
        audio_quality=_int(data, "audio_quality", defaults.audio_quality),
        video_quality=_int(data, "video_quality", defaults.video_quality),
    )


def _build_tools(data: Mapping[str, object] | None) -> ToolConfig:
    defaults = ToolConfig()
    if not data:
        return defaults
    return ToolConfig(
        raster=_tuple_of_strings(data.get("raster"), defaults.raster),
        ffmpeg=str(data.get("ffmpeg", defaults.ffmpeg)),
        ffprobe=str(data.get("ffprobe", defaults.ffprobe)),
    )


def _build_runtime(data: Mapping[str, object] | None) -> RuntimeConfig:
    if not data:
        return RuntimeConfig()
    timeout = data.get("tool_timeout_s")
    if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float))):
        raise ConfigError(f"Expected number for 'tool_timeout_s', got: {timeout!r}")
    log_file = data.get("log_file")
    return RuntimeConfig(
        tool_timeout_s=float(timeout) if timeout else None,
        summary_limit=max(0, _int(data, "summary_limit", 200)),
        log_file=Path(str(log_file)) if log_file else None,
    )


def load_config(path: Path | None = None) -> AppConfig:
    path = path or DEFAULT_CONFIG_PATH
    raw = _read_toml(path)
    return AppConfig(
        paths=_build_paths(_section(raw, "paths")),
        scan=_build_scan(_section(raw, "scan")),
        formats=_build_formats(_section(raw, "formats")),
        tools=_build_tools(_section(raw, "tools")),
        runtime=_build_runtime(_section(raw, "runtime")),
    )


def dump_config(config: AppConfig) -> str:
    payload = {
        "paths": {
            "root": str(config.paths.root) if config.paths.root else None,
        },
        "scan": {
            "skip_dirs": list(config.scan.skip_dirs),
            "image_extensions": list(config.scan.image_extensions),
            "media_extensions": list(config.scan.media_extensions),
            "html_extensions": list(config.scan.html_extensions),
        },
        "formats": {
            "image_extension": config.formats.image_extension,
            "audio_extension": config.formats.audio_extension,
            "video_extension": config.formats.video_extension,
            "audio_codec": config.formats.audio_codec,
            "video_codec": config.formats.video_codec,
            "audio_encoder": config.formats.audio_encoder,
            "video_encoder": config.formats.video_encoder,
            "audio_quality": config.formats.audio_quality,
            "video_quality": config.formats.video_quality,
        },
        "tools": {
            "raster": list(config.tools.raster),
            "ffmpeg": config.tools.ffmpeg,
            "ffprobe": config.tools.ffprobe,
        },
        "runtime": {
            "tool_timeout_s": config.runtime.tool_timeout_s,
            "summary_limit": config.runtime.summary_limit,
            "log_file": str(config.runtime.log_file) if config.runtime.log_file else None,
        },
    }
    return json.dumps(payload, indent=2)
