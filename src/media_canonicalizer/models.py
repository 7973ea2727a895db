"""Per-run domain models for media canonicalization."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator, Literal

from .scanner import MediaKind
from .utils import same_path

RunMode = Literal["apply", "check"]


class OutcomeStatus(str, Enum):
    CONVERTED = "converted"
    INPLACE_REENCODED = "inplace_reencoded"
    ALREADY_CANONICAL = "already_canonical"
    ERROR = "error"


@dataclass(slots=True)
class ConversionOutcome:
    """Result of considering one source file."""

    source: Path
    kind: MediaKind
    status: OutcomeStatus
    target: Path | None = None
    changed: bool = False
    reason: str | None = None


@dataclass(slots=True)
class ReferenceMap:
    """Realized old -> new paths whose names actually differ."""

    pairs: list[tuple[Path, Path]] = field(default_factory=list)

    @classmethod
    def from_converted(cls, converted: dict[Path, Path]) -> ReferenceMap:
        pairs = [
            (source, target)
            for source, target in sorted(converted.items(), key=lambda item: str(item[0]))
            if not same_path(source, target)
        ]
        return cls(pairs=pairs)

    def __iter__(self) -> Iterator[tuple[Path, Path]]:
        return iter(self.pairs)

    def __len__(self) -> int:
        return len(self.pairs)


@dataclass(slots=True)
class RunState:
    """Accumulated state of one pipeline run, handed explicitly to each phase."""

    needs_conversion: set[Path] = field(default_factory=set)
    errors: dict[Path, str] = field(default_factory=dict)
    changed_outputs: set[Path] = field(default_factory=set)
    converted: dict[Path, Path] = field(default_factory=dict)
    inplace: set[Path] = field(default_factory=set)
    outcomes: list[ConversionOutcome] = field(default_factory=list)
    html_changed: int = 0

    def mark_need(self, path: Path) -> None:
        self.needs_conversion.add(path)

    def mark_error(self, path: Path, reason: str) -> None:
        self.errors.setdefault(path, reason)

    def record(self, outcome: ConversionOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.status is OutcomeStatus.ERROR:
            self.mark_error(outcome.source, outcome.reason or "error")
            return
        if outcome.target is None:
            return
        if outcome.changed:
            self.changed_outputs.add(outcome.target)
        if outcome.status is OutcomeStatus.CONVERTED:
            self.converted[outcome.source] = outcome.target
        elif outcome.status is OutcomeStatus.INPLACE_REENCODED:
            self.inplace.add(outcome.source)

    def reference_map(self) -> ReferenceMap:
        return ReferenceMap.from_converted(self.converted)


@dataclass(slots=True)
class RunResult:
    run_id: str
    mode: RunMode
    exit_code: int
    state: RunState
    summary: str


__all__ = [
    "ConversionOutcome",
    "OutcomeStatus",
    "ReferenceMap",
    "RunMode",
    "RunResult",
    "RunState",
]
