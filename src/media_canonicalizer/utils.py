from __future__ import annotations

import filecmp
import hashlib
import os
import shutil
import tempfile
import time
from contextlib import contextmanager, suppress
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator


@dataclass(slots=True)
class WriteResult:
    ok: bool
    changed: bool


def generate_run_id(prefix: str = "run") -> str:
    epoch_ms = int(time.time() * 1000)
    random_bits = hashlib.sha256(os.urandom(16)).hexdigest()[:8]
    return f"{prefix}-{epoch_ms}-{random_bits}"


def extension_of(path: Path) -> str:
    """Lowercase extension without the dot, or "" when the name has none."""

    name = path.name
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


def swap_extension(path: Path, extension: str) -> Path:
    name = path.name
    stem = name.rsplit(".", 1)[0] if "." in name else name
    return path.with_name(f"{stem}.{extension}")


def same_path(first: Path, second: Path) -> bool:
    return str(first).lower() == str(second).lower()


def html_path(value: str) -> str:
    return value.replace("\\", "/")


def files_identical(first: Path, second: Path) -> bool:
    return filecmp.cmp(first, second, shallow=False)


@contextmanager
def sibling_tempfile(directory: Path, *, prefix: str, suffix: str) -> Iterator[Path]:
    """Yield a fresh temp file inside ``directory``; it is removed on exit unless renamed away."""

    fd, name = tempfile.mkstemp(prefix=prefix, suffix=suffix, dir=directory)
    os.close(fd)
    path = Path(name)
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)


def _copy_mode(reference: Path | None, destination: Path) -> None:
    if reference is None or not reference.exists():
        return
    with suppress(OSError):
        shutil.copymode(reference, destination)


def atomic_replace(tmp_path: Path, target: Path, *, mode_source: Path | None = None) -> WriteResult:
    """Move ``tmp_path`` onto ``target``.

    Identical content leaves the target alone and reports ``changed=False``.
    When the platform refuses to rename over an existing file the target is
    removed and the rename retried once.
    """

    existed = target.exists()
    if existed and files_identical(tmp_path, target):
        tmp_path.unlink(missing_ok=True)
        return WriteResult(ok=True, changed=False)

    _copy_mode(target if existed else mode_source, tmp_path)
    try:
        os.replace(tmp_path, target)
    except OSError:
        if not target.exists():
            tmp_path.unlink(missing_ok=True)
            return WriteResult(ok=False, changed=False)
        try:
            target.unlink()
            os.replace(tmp_path, target)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            return WriteResult(ok=False, changed=False)
    return WriteResult(ok=True, changed=True)


def atomic_write_bytes(target: Path, data: bytes, *, prefix: str = "tmp-", suffix: str = ".tmp") -> WriteResult:
    with sibling_tempfile(target.parent, prefix=prefix, suffix=suffix) as tmp:
        with tmp.open("wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        return atomic_replace(tmp, target)
