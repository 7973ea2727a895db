from __future__ import annotations

import shlex
import shutil
import subprocess
from dataclasses import dataclass
from typing import Callable, Sequence

CommandEcho = Callable[[Sequence[str]], None]
ToolLocator = Callable[[Sequence[str]], "str | None"]


class ToolNotFound(RuntimeError):
    def __init__(self, candidates: Sequence[str], purpose: str) -> None:
        names = " or ".join(f"'{name}'" for name in candidates)
        super().__init__(f"Required tool not found: {names} for {purpose}.")
        self.candidates = tuple(candidates)
        self.purpose = purpose


@dataclass(slots=True)
class ToolResult:
    returncode: int | None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.returncode == 0

    def describe(self) -> str:
        if self.error:
            return self.error
        if self.returncode is not None and self.returncode < 0:
            return f"terminated by signal {-self.returncode}"
        detail = self.stderr.strip().splitlines()
        suffix = f": {detail[-1]}" if detail else ""
        return f"exited {self.returncode}{suffix}"


def resolve_tool(candidates: Sequence[str]) -> str | None:
    for name in candidates:
        if name and shutil.which(name):
            return name
    return None


def require_tool(candidates: Sequence[str], purpose: str, locator: ToolLocator = resolve_tool) -> str:
    found = locator(candidates)
    if not found:
        raise ToolNotFound(candidates, purpose)
    return found


class ToolRunner:
    """Blocking subprocess execution for external tools; never raises for tool failures."""

    def __init__(self, *, timeout_s: float | None = None, echo: CommandEcho | None = None) -> None:
        self._timeout_s = timeout_s
        self._echo = echo

    def run(self, command: Sequence[str]) -> ToolResult:
        cmd = [str(part) for part in command]
        if self._echo is not None:
            self._echo(cmd)
        try:
            proc = subprocess.run(
                cmd,
                check=False,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self._timeout_s,
            )
        except subprocess.TimeoutExpired:
            return ToolResult(returncode=None, error=f"timed out after {self._timeout_s}s: {shlex.join(cmd)}")
        except FileNotFoundError:
            return ToolResult(returncode=None, error=f"tool not found: {cmd[0]}")
        except OSError as exc:
            return ToolResult(returncode=None, error=f"exec error: {exc}")
        return ToolResult(returncode=proc.returncode, stdout=proc.stdout or "", stderr=proc.stderr or "")


__all__ = [
    "CommandEcho",
    "ToolLocator",
    "ToolNotFound",
    "ToolResult",
    "ToolRunner",
    "require_tool",
    "resolve_tool",
]
