from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .classifier import classify_media
from .config import AppConfig
from .converters import ConversionFailure, Converter, TargetWriteError, get_converter
from .logging import RunConsole, RunLogEntry, RunLogger
from .models import ConversionOutcome, OutcomeStatus, RunMode, RunResult, RunState
from .planner import Plan, PlanCollisionError, PlanEntry, TargetOverride, build_plan
from .probe import FFprobeProber, MediaProber
from .rewriter import rewrite_references
from .scanner import MediaKind, RootNotFound, ScanResult, scan_tree
from .tools import ToolLocator, ToolNotFound, ToolRunner, require_tool, resolve_tool
from .utils import generate_run_id, same_path

EXIT_OK = 0
EXIT_TOOLING = 1
EXIT_PENDING = 2


class CanonicalizationError(RuntimeError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


@dataclass(slots=True)
class _Toolchain:
    raster: str
    ffmpeg: str
    ffprobe: str


@dataclass(slots=True)
class _RunContext:
    run_id: str
    mode: RunMode
    state: RunState
    scan: ScanResult
    converters: dict[MediaKind, Converter]


class CanonicalizationService:
    def __init__(
        self,
        config: AppConfig,
        *,
        console: RunConsole | None = None,
        runner: ToolRunner | None = None,
        prober: MediaProber | None = None,
        tool_locator: ToolLocator = resolve_tool,
        target_override: TargetOverride | None = None,
    ) -> None:
        self._config = config
        self._console = console or RunConsole()
        self._runner = runner or ToolRunner(timeout_s=config.runtime.tool_timeout_s, echo=self._console.command)
        self._prober = prober
        self._tool_locator = tool_locator
        self._target_override = target_override

    def run(self, root: Path, *, apply: bool = True) -> RunResult:
        mode: RunMode = "apply" if apply else "check"
        scan = self._scan(root)
        self._console.info(scan.census())
        tools = self._resolve_tools(scan)
        prober = self._prober or FFprobeProber(self._runner, tools.ffprobe)
        context = _RunContext(
            run_id=generate_run_id("canon"),
            mode=mode,
            state=RunState(),
            scan=scan,
            converters=self._build_converters(tools, prober),
        )

        plan = self._plan(context, prober)
        collided = self._report_collisions(plan, context.state)
        if collided and apply:
            self._write_log(context)
            raise CanonicalizationError("COLLISION", str(PlanCollisionError(collided)))

        if not apply:
            result = self._summarize_check(context)
        else:
            self._apply(plan, context)
            result = self._summarize_apply(context)
        self._write_log(context)
        return result

    def _scan(self, root: Path) -> ScanResult:
        try:
            return scan_tree(root, self._config.scan)
        except RootNotFound as exc:
            raise CanonicalizationError("ROOT_NOT_FOUND", str(exc)) from exc

    def _resolve_tools(self, scan: ScanResult) -> _Toolchain:
        tools = self._config.tools
        toolchain = _Toolchain(raster=tools.raster[0] if tools.raster else "", ffmpeg=tools.ffmpeg, ffprobe=tools.ffprobe)
        try:
            if scan.images:
                toolchain.raster = require_tool(tools.raster, "image conversion", self._tool_locator)
            if scan.media:
                toolchain.ffmpeg = require_tool([tools.ffmpeg], "audio/video conversion", self._tool_locator)
                toolchain.ffprobe = require_tool([tools.ffprobe], "audio/video classification", self._tool_locator)
        except ToolNotFound as exc:
            raise CanonicalizationError("TOOL_MISSING", str(exc)) from exc
        return toolchain

    def _build_converters(self, tools: _Toolchain, prober: MediaProber) -> dict[MediaKind, Converter]:
        binaries = {
            MediaKind.IMAGE: tools.raster,
            MediaKind.AUDIO: tools.ffmpeg,
            MediaKind.VIDEO: tools.ffmpeg,
        }
        return {
            kind: get_converter(kind, config=self._config, runner=self._runner, prober=prober, binary=binary)
            for kind, binary in binaries.items()
        }

    def _plan(self, context: _RunContext, prober: MediaProber) -> Plan:
        classified = classify_media(context.scan.media, prober, context.state, self._console)
        candidates = [*context.scan.images, *classified.audio, *classified.video]
        return build_plan(
            candidates,
            context.converters,
            context.state,
            target_override=self._target_override,
        )

    def _report_collisions(self, plan: Plan, state: RunState) -> dict[Path, list[Path]]:
        collisions = plan.collisions()
        for target, sources in collisions.items():
            self._console.error(f"Target collision: multiple sources want to write the same output: {target}")
            for source in sources:
                self._console.item(source)
                state.mark_error(source, f"target collision on {target}")
        return collisions

    def _apply(self, plan: Plan, context: _RunContext) -> None:
        self._console.info("Applying conversions...")
        for entry in plan.ordered():
            converter = context.converters[entry.kind]
            self._console.info(f"{converter.label}: {entry.source.path} -> {entry.target}")
            context.state.record(self._convert_entry(entry, converter))
        context.state.html_changed = rewrite_references(
            context.scan.html,
            context.state.reference_map(),
            self._console,
        )

    def _convert_entry(self, entry: PlanEntry, converter: Converter) -> ConversionOutcome:
        source, target, kind = entry.source.path, entry.target, entry.kind
        try:
            response = converter.convert(source, target)
        except TargetWriteError as exc:
            self._console.error(f"Failed to write target {kind.value}: {exc.target}")
            self._console.detail(f"  reason: {exc.reason}")
            return ConversionOutcome(source=source, kind=kind, status=OutcomeStatus.ERROR, target=target, reason=exc.reason)
        except ConversionFailure as exc:
            self._console.error(f"{kind.value.title()} conversion failed: {source}")
            self._console.detail(f"  reason: {exc.reason}")
            return ConversionOutcome(source=source, kind=kind, status=OutcomeStatus.ERROR, target=target, reason=exc.reason)

        if same_path(source, target):
            status = OutcomeStatus.INPLACE_REENCODED
        else:
            status = OutcomeStatus.CONVERTED
            self._remove_original(source)
        return ConversionOutcome(source=source, kind=kind, status=status, target=target, changed=response.changed)

    def _remove_original(self, source: Path) -> None:
        # The canonical output is already committed; a stale original is tolerated.
        try:
            source.unlink()
        except OSError:
            self._console.warn(f"Could not remove original (continuing): {source}")

    def _summarize_check(self, context: _RunContext) -> RunResult:
        state = context.state
        limit = self._config.runtime.summary_limit
        need = sorted(state.needs_conversion, key=str)
        bad = sorted(state.errors, key=str)
        if need:
            self._console.error(f"Conversion is required (--check): {len(need)} file(s) need conversion.")
            self._console.items(need, limit)
        if bad:
            self._console.error(f"Errors detected while classifying media: {len(bad)} file(s).")
            self._console.items(bad, limit)
        if not need and not bad:
            summary = "No conversion needed."
            self._console.info(summary)
        else:
            summary = f"{len(need)} file(s) need conversion, {len(bad)} error(s)."
        exit_code = EXIT_PENDING if need or bad else EXIT_OK
        return RunResult(run_id=context.run_id, mode=context.mode, exit_code=exit_code, state=state, summary=summary)

    def _summarize_apply(self, context: _RunContext) -> RunResult:
        state = context.state
        bad = sorted(state.errors, key=str)
        if bad:
            summary = f"Completed with errors: {len(bad)} file(s)."
            self._console.error(summary)
            self._console.items(bad, self._config.runtime.summary_limit)
            return RunResult(run_id=context.run_id, mode=context.mode, exit_code=EXIT_PENDING, state=state, summary=summary)
        summary = f"Done. Outputs changed/created: {len(state.changed_outputs)} file(s)."
        self._console.info(summary)
        return RunResult(run_id=context.run_id, mode=context.mode, exit_code=EXIT_OK, state=state, summary=summary)

    def _write_log(self, context: _RunContext) -> None:
        logger = RunLogger(self._config.runtime.log_file)
        logger.extend(RunLogEntry.from_outcome(context.run_id, context.mode, outcome) for outcome in context.state.outcomes)


__all__ = [
    "CanonicalizationError",
    "CanonicalizationService",
    "EXIT_OK",
    "EXIT_PENDING",
    "EXIT_TOOLING",
]
