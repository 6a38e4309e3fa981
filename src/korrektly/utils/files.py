"""Utility helpers for working with files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Sequence

from korrektly.ingestion.gitignore import IgnorePattern, is_ignored, load_gitignore

LOGGER = logging.getLogger(__name__)

MARKDOWN_SUFFIXES = (".md", ".mdx")
DEPENDENCY_DIR = "node_modules"


class DiscoveryError(Exception):
    """Raised when the documentation root itself cannot be read."""


def iter_markdown_paths(
    root: Path,
    *,
    respect_gitignore: bool = True,
    patterns: Sequence[IgnorePattern] | None = None,
) -> Iterator[Path]:
    """Yield markdown/MDX paths under ``root``, descending into directories."""
    root = Path(root)
    if not root.is_dir():
        raise DiscoveryError(f"Not a directory: {root}")
    try:
        entries = sorted(root.iterdir())
    except OSError as exc:
        raise DiscoveryError(f"Cannot read directory {root}: {exc}") from exc

    if patterns is None:
        patterns = load_gitignore(root) if respect_gitignore else []
    yield from _walk(root, entries, patterns)


def _walk(
    root: Path, entries: Sequence[Path], patterns: Sequence[IgnorePattern]
) -> Iterator[Path]:
    for entry in entries:
        relative = entry.relative_to(root).as_posix()
        if entry.name == DEPENDENCY_DIR or is_ignored(relative, patterns):
            LOGGER.debug("Skipping ignored path %s", relative)
            continue
        if entry.is_symlink() and entry.is_dir():
            LOGGER.debug("Skipping symlinked directory %s", relative)
            continue
        if entry.is_dir():
            try:
                children = sorted(entry.iterdir())
            except OSError as exc:
                LOGGER.error("Error reading directory %s: %s", entry, exc)
                continue
            yield from _walk(root, children, patterns)
        elif entry.is_file() and entry.name.endswith(MARKDOWN_SUFFIXES):
            yield entry
