from __future__ import annotations

import json
import shlex
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import IO, Any, Iterable, Sequence

from rich.console import Console
from rich.text import Text

from .models import ConversionOutcome


@dataclass(slots=True)
class RunLogEntry:
    run_id: str
    mode: str
    source: str
    kind: str
    status: str
    target: str | None
    changed: bool
    error: str | None

    @classmethod
    def from_outcome(cls, run_id: str, mode: str, outcome: ConversionOutcome) -> RunLogEntry:
        return cls(
            run_id=run_id,
            mode=mode,
            source=str(outcome.source),
            kind=outcome.kind.value,
            status=outcome.status.value,
            target=str(outcome.target) if outcome.target is not None else None,
            changed=outcome.changed,
            error=outcome.reason,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class RunLogger:
    """Appends one JSON line per file outcome; a logger without a file is a no-op."""

    def __init__(self, log_file: Path | None) -> None:
        self._log_file = log_file

    def append(self, entry: RunLogEntry) -> None:
        if self._log_file is None:
            return
        self._log_file.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(entry.to_dict(), ensure_ascii=False)
        with self._log_file.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")

    def extend(self, entries: Iterable[RunLogEntry]) -> None:
        for entry in entries:
            self.append(entry)


class RunConsole:
    """Human-facing output: info on stdout, warnings and errors on stderr."""

    def __init__(
        self,
        *,
        color: bool = True,
        verbose: bool = False,
        stdout: IO[str] | None = None,
        stderr: IO[str] | None = None,
    ) -> None:
        color_system = "auto" if color else None
        self.verbose = verbose
        self._out = Console(file=stdout, color_system=color_system, highlight=False, soft_wrap=True)
        self._err = Console(
            file=stderr,
            stderr=stderr is None,
            color_system=color_system,
            highlight=False,
            soft_wrap=True,
        )

    def info(self, message: str) -> None:
        self._out.print(Text.assemble(("✅ [INFO]", "green"), " ", message))

    def warn(self, message: str) -> None:
        self._err.print(Text.assemble(("⚠️ [WARN]", "yellow"), " ", message))

    def error(self, message: str) -> None:
        self._err.print(Text.assemble(("❌ [ERROR]", "red"), " ", message))

    def item(self, value: object) -> None:
        self._err.print(Text(f"  - {value}"))

    def items(self, values: Sequence[object], limit: int) -> None:
        for value in values[:limit]:
            self.item(value)
        if len(values) > limit:
            self._err.print(Text(f"  ... and {len(values) - limit} more"))

    def command(self, cmd: Sequence[str]) -> None:
        if self.verbose:
            self._out.print(Text(f"[cmd] {shlex.join(cmd)}"))

    def detail(self, message: str) -> None:
        if self.verbose:
            self._out.print(Text(message))


__all__ = ["RunConsole", "RunLogEntry", "RunLogger"]
