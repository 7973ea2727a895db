from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from ..config import AppConfig
from ..probe import MediaProber
from ..scanner import MediaFile, MediaKind
from ..tools import ToolRunner
from ..utils import atomic_replace, sibling_tempfile, swap_extension


class ConversionFailure(RuntimeError):
    def __init__(self, source: Path, reason: str) -> None:
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class TargetWriteError(ConversionFailure):
    def __init__(self, source: Path, target: Path, reason: str) -> None:
        super().__init__(source, reason)
        self.target = target


@dataclass(slots=True)
class ConverterResponse:
    target: Path
    changed: bool


class Converter(Protocol):
    kind: MediaKind
    label: str

    def is_canonical(self, media: MediaFile) -> bool:  # pragma: no cover - interface
        ...

    def target_for(self, media: MediaFile) -> Path:  # pragma: no cover - interface
        ...

    def convert(self, source: Path, target: Path) -> ConverterResponse:  # pragma: no cover - interface
        ...


class BaseToolConverter:
    """Runs one external tool into a sibling temp file, then commits it onto the target."""

    kind: MediaKind
    temp_prefix: str = "tmp-"

    def __init__(self, config: AppConfig, runner: ToolRunner, prober: MediaProber, binary: str) -> None:
        self._config = config
        self._runner = runner
        self._prober = prober
        self._binary = binary

    @property
    def canonical_extension(self) -> str:  # pragma: no cover - overridden
        raise NotImplementedError

    @property
    def label(self) -> str:
        return f"{self.kind.value.title()} -> .{self.canonical_extension}"

    def is_canonical(self, media: MediaFile) -> bool:
        return media.extension == self.canonical_extension

    def target_for(self, media: MediaFile) -> Path:
        if media.extension == self.canonical_extension:
            return media.path
        return swap_extension(media.path, self.canonical_extension)

    def build_command(self, source: Path, output: Path) -> list[str]:  # pragma: no cover - overridden
        raise NotImplementedError

    def convert(self, source: Path, target: Path) -> ConverterResponse:
        try:
            with sibling_tempfile(target.parent, prefix=self.temp_prefix, suffix=f".{self.canonical_extension}") as tmp:
                result = self._runner.run(self.build_command(source, tmp))
                if not result.ok:
                    raise ConversionFailure(source, result.describe())
                written = atomic_replace(tmp, target, mode_source=source)
        except OSError as exc:
            raise TargetWriteError(source, target, str(exc)) from exc
        if not written.ok:
            raise TargetWriteError(source, target, "could not replace target")
        return ConverterResponse(target=target, changed=written.changed)
