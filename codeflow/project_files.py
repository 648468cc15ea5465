"""Reading a project directory into an ordered list of :class:`ProjectFile`."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from . import config
from .models import ProjectFile

logger = logging.getLogger(__name__)


def is_ignored(name: str, ignore_patterns: Sequence[str]) -> bool:
    return name in ignore_patterns


def load_project_files(
    root: Path,
    ignore_patterns: Optional[Sequence[str]] = None,
    max_file_size: Optional[int] = None,
) -> List[ProjectFile]:
    """Recursively read *root*, depth first, entries in name order.

    Ignored names prune whole directories. Lock files, images, files over
    the size limit and files that are not valid UTF-8 are skipped.
    """
    patterns = config.IGNORE_PATTERNS if ignore_patterns is None else list(ignore_patterns)
    limit = config.MAX_FILE_SIZE if max_file_size is None else max_file_size
    files: List[ProjectFile] = []
    _collect(root, "", patterns, limit, files)
    return files


def _collect(directory: Path, prefix: str, patterns: Sequence[str], limit: int, out: List[ProjectFile]) -> None:
    for entry in sorted(directory.iterdir(), key=lambda p: p.name):
        if is_ignored(entry.name, patterns):
            continue
        rel = f"{prefix}/{entry.name}" if prefix else entry.name
        if entry.is_dir():
            _collect(entry, rel, patterns, limit, out)
            continue
        if entry.name.endswith(config.SKIPPED_SUFFIXES):
            continue
        if entry.stat().st_size > limit:
            logger.debug("Skipping %s: larger than %d bytes", rel, limit)
            continue
        try:
            content = entry.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            logger.debug("Skipping %s: not UTF-8 text", rel)
            continue
        out.append(ProjectFile(path=rel, content=content))


def build_file_tree(paths: Iterable[str], ignore_patterns: Optional[Sequence[str]] = None) -> str:
    """Draw *paths* as an ASCII tree rooted at ``.``.

    Paths containing any ignore pattern are left out.
    """
    patterns = config.IGNORE_PATTERNS if ignore_patterns is None else list(ignore_patterns)
    kept = sorted(p for p in paths if not any(pattern in p for pattern in patterns))

    tree: Dict[str, dict] = {}
    for path in kept:
        level = tree
        for part in path.split("/"):
            level = level.setdefault(part, {})

    return ".\n" + _draw(tree, "")


def _draw(level: Dict[str, dict], prefix: str) -> str:
    out = ""
    entries = list(level.items())
    for index, (name, sub) in enumerate(entries):
        last = index == len(entries) - 1
        out += prefix + ("└── " if last else "├── ") + name + "\n"
        if sub:
            out += _draw(sub, prefix + ("    " if last else "│   "))
    return out
