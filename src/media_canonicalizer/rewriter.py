from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterable

from .logging import RunConsole
from .models import ReferenceMap
from .utils import atomic_write_bytes, html_path


def reference_forms(source: Path, target: Path, directory: Path) -> list[tuple[bytes, bytes]]:
    """Old/new byte strings to substitute, most specific (relative path) first."""

    forms: list[tuple[bytes, bytes]] = []
    rel_source = html_path(os.path.relpath(source, directory))
    rel_target = html_path(os.path.relpath(target, directory))
    if rel_source:
        forms.append((os.fsencode(rel_source), os.fsencode(rel_target)))
    if source.name:
        forms.append((os.fsencode(source.name), os.fsencode(target.name)))
    return forms


def rewrite_content(content: bytes, directory: Path, reference_map: ReferenceMap) -> bytes:
    """Substitute every reference in one pass so a new name is never renamed again."""

    replacements: dict[bytes, bytes] = {}
    for source, target in reference_map:
        for old, new in reference_forms(source, target, directory):
            replacements.setdefault(old, new)
    if not replacements:
        return content
    # Longest first: at any position the most specific form wins.
    alternatives = sorted(replacements, key=len, reverse=True)
    pattern = re.compile(b"|".join(re.escape(old) for old in alternatives))
    return pattern.sub(lambda match: replacements[match.group(0)], content)


def rewrite_references(html_files: Iterable[Path], reference_map: ReferenceMap, console: RunConsole) -> int:
    if not reference_map:
        return 0

    changed = 0
    for document in html_files:
        if not document.is_file():
            continue
        try:
            original = document.read_bytes()
        except OSError:
            console.warn(f"Could not read HTML (skipping): {document}")
            continue

        updated = rewrite_content(original, document.parent, reference_map)
        if updated == original:
            continue

        try:
            result = atomic_write_bytes(document, updated, prefix="html-", suffix=".tmp")
        except OSError:
            console.warn(f"Could not create temp file for HTML (skipping): {document}")
            continue
        if not result.ok:
            console.warn(f"Failed to write updated HTML (skipping): {document}")
            continue
        if result.changed:
            changed += 1
            console.info(f"Updated HTML references: {document}")

    if changed:
        console.info(f"HTML updated: {changed} file(s).")
    return changed


__all__ = ["reference_forms", "rewrite_content", "rewrite_references"]
