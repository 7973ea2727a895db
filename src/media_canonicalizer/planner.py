from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Iterator, Mapping

from .converters import Converter
from .models import ConversionOutcome, OutcomeStatus, RunState
from .scanner import MediaFile, MediaKind

TargetOverride = Callable[[MediaFile], "Path | None"]


@dataclass(frozen=True, slots=True)
class PlanEntry:
    source: MediaFile
    target: Path

    @property
    def kind(self) -> MediaKind:
        return self.source.kind

    @property
    def in_place(self) -> bool:
        return self.source.path == self.target


@dataclass(slots=True)
class Plan:
    entries: list[PlanEntry] = field(default_factory=list)

    def add(self, entry: PlanEntry) -> None:
        self.entries.append(entry)

    def __iter__(self) -> Iterator[PlanEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def by_target(self) -> dict[Path, list[PlanEntry]]:
        grouped: dict[Path, list[PlanEntry]] = defaultdict(list)
        for entry in self.entries:
            grouped[entry.target].append(entry)
        return dict(grouped)

    def _blocker(self, entry: PlanEntry, by_source: Mapping[Path, PlanEntry]) -> PlanEntry | None:
        """The pending entry whose source would be overwritten by ``entry``'s output."""

        blocker = by_source.get(entry.target)
        if blocker is None or blocker.source.path == entry.source.path or blocker.in_place:
            return None
        return blocker

    def _cycle_from(self, entry: PlanEntry, by_source: Mapping[Path, PlanEntry]) -> list[PlanEntry]:
        chain = [entry]
        current = self._blocker(entry, by_source)
        while current is not None:
            if current.source.path == entry.source.path:
                return chain
            if current in chain:
                return []
            chain.append(current)
            current = self._blocker(current, by_source)
        return []

    def collisions(self) -> dict[Path, list[Path]]:
        """Targets that cannot be written safely, with their sorted sources.

        A target collides when several distinct sources claim it, or when the
        entries form a cycle of outputs that overwrite each other's sources.
        """

        found: dict[Path, set[Path]] = {}
        grouped = self.by_target()
        for target, entries in grouped.items():
            sources = {entry.source.path for entry in entries}
            if len(sources) > 1:
                found[target] = sources

        by_source = {entry.source.path: entry for entry in self.entries}
        for entry in self.entries:
            cycle = self._cycle_from(entry, by_source)
            if cycle:
                found.setdefault(entry.target, set()).update(item.source.path for item in cycle)
        return {target: sorted(found[target], key=str) for target in sorted(found, key=str)}

    def ordered(self) -> list[PlanEntry]:
        """Entries in plan order, except that a file is converted before anything overwrites it."""

        by_source = {entry.source.path: entry for entry in self.entries}
        done: set[Path] = set()
        order: list[PlanEntry] = []
        for entry in self.entries:
            pending: list[PlanEntry] = []
            current: PlanEntry | None = entry
            while current is not None and current.source.path not in done and current not in pending:
                pending.append(current)
                current = self._blocker(current, by_source)
            for item in reversed(pending):
                done.add(item.source.path)
                order.append(item)
        return order


class PlanCollisionError(RuntimeError):
    def __init__(self, collisions: Mapping[Path, list[Path]]) -> None:
        super().__init__("Refusing to convert due to output name collisions. Rename files to avoid collisions.")
        self.collisions = dict(collisions)


def build_plan(
    files: Iterable[MediaFile],
    converters: Mapping[MediaKind, Converter],
    state: RunState,
    *,
    target_override: TargetOverride | None = None,
) -> Plan:
    plan = Plan()
    for media in files:
        converter = converters[media.kind]
        if converter.is_canonical(media):
            state.record(
                ConversionOutcome(
                    source=media.path,
                    kind=media.kind,
                    status=OutcomeStatus.ALREADY_CANONICAL,
                    target=media.path,
                )
            )
            continue
        state.mark_need(media.path)
        target = target_override(media) if target_override else None
        plan.add(PlanEntry(source=media, target=target or converter.target_for(media)))
    return plan


__all__ = ["Plan", "PlanCollisionError", "PlanEntry", "TargetOverride", "build_plan"]
