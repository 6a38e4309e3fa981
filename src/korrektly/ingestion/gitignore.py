"""Minimal ``.gitignore`` emulation used while discovering documentation files.

Only the subset of the gitignore syntax that documentation trees tend to use is
supported: exact names, directory prefixes and ``*``/``**`` wildcards.
Negated patterns (``!pattern``) are parsed but never re-include a path.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Sequence

LOGGER = logging.getLogger(__name__)

GITIGNORE_FILENAME = ".gitignore"


@dataclass(frozen=True, slots=True)
class IgnorePattern:
    """A single ignore rule as written in ``.gitignore``."""

    pattern: str
    negated: bool = False

    @classmethod
    def parse(cls, line: str) -> IgnorePattern | None:
        line = line.strip()
        if not line or line.startswith("#"):
            return None
        if line.endswith("/"):
            line = line[:-1]
        if line.startswith("!"):
            return cls(pattern=line[1:], negated=True)
        return cls(pattern=line) if line else None

    @property
    def cleaned(self) -> str:
        """Pattern with the anchoring slash removed."""
        return self.pattern[1:] if self.pattern.startswith("/") else self.pattern


def parse_gitignore(content: str) -> list[IgnorePattern]:
    patterns: list[IgnorePattern] = []
    for line in content.splitlines():
        parsed = IgnorePattern.parse(line)
        if parsed is not None:
            patterns.append(parsed)
    return patterns


def load_gitignore(root: Path) -> list[IgnorePattern]:
    """Load the ignore rules of ``root/.gitignore``; missing files yield no rules."""
    gitignore = Path(root) / GITIGNORE_FILENAME
    try:
        content = gitignore.read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    except OSError as exc:
        LOGGER.warning("Could not read %s: %s", gitignore, exc)
        return []
    patterns = parse_gitignore(content)
    LOGGER.debug("Loaded %d ignore patterns from %s", len(patterns), gitignore)
    return patterns


_WILDCARD_SPLIT_RE = re.compile(r"(\*\*|\*)")


@lru_cache(maxsize=512)
def _compile_wildcard(pattern: str) -> tuple[re.Pattern[str], re.Pattern[str]]:
    # Everything but "*" and "**" is literal, including regex metacharacters.
    pieces = []
    for piece in _WILDCARD_SPLIT_RE.split(pattern):
        if piece == "**":
            pieces.append(".*")
        elif piece == "*":
            pieces.append("[^/]*")
        else:
            pieces.append(re.escape(piece))
    translated = "".join(pieces)
    return re.compile(f"^{translated}$"), re.compile(f"^{translated}/.*$")


def _matches(relative_path: str, pattern: str) -> bool:
    if relative_path == pattern or relative_path.startswith(f"{pattern}/"):
        return True

    if "*" in pattern:
        exact, as_directory = _compile_wildcard(pattern)
        if exact.match(relative_path) or as_directory.match(relative_path):
            return True

    parts = relative_path.split("/")
    for index, part in enumerate(parts):
        if part == pattern or "/".join(parts[: index + 1]) == pattern:
            return True
    return False


def is_ignored(relative_path: str, patterns: Sequence[IgnorePattern]) -> bool:
    """Return ``True`` when ``relative_path`` matches any non-negated pattern."""
    relative_path = relative_path.replace("\\", "/")
    for pattern in patterns:
        if pattern.negated:
            continue
        cleaned = pattern.cleaned
        if cleaned and _matches(relative_path, cleaned):
            return True
    return False
