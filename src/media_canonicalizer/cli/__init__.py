from __future__ import annotations

import sys
from pathlib import Path

import click
import typer
from rich.console import Console
from rich.markup import escape

from ..config import AppConfig, ConfigError, dump_config, load_config
from ..core import EXIT_TOOLING, CanonicalizationError, CanonicalizationService
from ..logging import RunConsole
from ..settings import get_settings

console = Console(stderr=True, highlight=False)

app = typer.Typer(
    help=(
        "Convert a website's media to canonical formats: images (non-SVG) to PNG, "
        "audio to Vorbis in .ogg, video to Theora+Vorbis in .ogv, and update HTML references."
    ),
    add_completion=False,
)


def default_root() -> Path:
    """Parent of the directory holding the invoked script.

    An entry point installed into the interpreter's environment (``bin/`` or
    ``Scripts/`` under ``sys.prefix``) says nothing about the site, so the
    current directory is used instead.
    """

    script = Path(sys.argv[0]).resolve()
    if script.is_relative_to(Path(sys.prefix).resolve()):
        return Path.cwd()
    return script.parent.parent


def _load_config(path: Path | None) -> AppConfig:
    return load_config(path or get_settings().config_path)


@app.command()
def main(
    root: Path | None = typer.Option(
        None,
        "--root",
        help="Root directory to scan (default: ../ relative to the invoked script)",
    ),
    apply: bool = typer.Option(
        True,
        "--apply/--check",
        help="Convert in place (default) or only report whether conversion is needed",
    ),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
    verbose: bool = typer.Option(False, "--verbose", help="Print commands and extra info"),
    config: Path | None = typer.Option(None, "--config", help="Path to media-canon.toml"),
    log_file: Path | None = typer.Option(None, "--log-file", help="Append a JSON line per file outcome"),
    print_config: bool = typer.Option(False, "--print-config", help="Print the effective configuration and exit"),
) -> None:
    """Exit codes: 0 OK, 1 tooling/usage error, 2 conversion needed (--check) and/or conversion errors."""

    settings = get_settings()
    try:
        cfg = _load_config(config)
    except ConfigError as exc:
        console.print(f"[red]Configuration error[/red]: {escape(str(exc))}")
        raise typer.Exit(EXIT_TOOLING) from exc
    if log_file is not None:
        cfg.runtime.log_file = log_file
    if print_config:
        typer.echo(dump_config(cfg))
        raise typer.Exit()

    run_console = RunConsole(color=not (no_color or settings.no_color), verbose=verbose)
    target_root = root or settings.root or cfg.paths.root or default_root()
    service = CanonicalizationService(cfg, console=run_console)
    try:
        result = service.run(target_root, apply=apply)
    except CanonicalizationError as exc:
        run_console.error(str(exc))
        raise typer.Exit(EXIT_TOOLING) from exc
    raise typer.Exit(result.exit_code)


def run() -> None:
    """Console entry point; usage errors exit with the tooling code rather than click's 2."""

    try:
        code = app(standalone_mode=False)
    except click.UsageError as exc:
        exc.show()
        raise SystemExit(EXIT_TOOLING) from exc
    except click.Abort:
        console.print("Aborted.")
        raise SystemExit(EXIT_TOOLING)
    raise SystemExit(code or 0)


if __name__ == "__main__":
    run()
