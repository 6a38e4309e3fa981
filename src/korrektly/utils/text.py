"""Text helpers shared by the markdown and OpenAPI extractors."""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")
_TRACKING_ID_INVALID_RE = re.compile(r"[^a-zA-Z0-9\-_/]")
_MARKDOWN_SUFFIX_RE = re.compile(r"\.mdx?$")


def clean_text(text: str) -> str:
    """Collapse any run of whitespace (newlines included) into one space."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def extract_hierarchy(path: str) -> list[str]:
    """Split a docs-relative path into its segments, without the extension.

    >>> extract_hierarchy("docs/guide/intro.md")
    ['docs', 'guide', 'intro']
    """
    stem = _MARKDOWN_SUFFIX_RE.sub("", path)
    return [part for part in stem.split("/") if part and part != "."]


def generate_tracking_id(*parts: str) -> str:
    """Build a URL-safe tracking id from the non-empty ``parts``."""
    joined = "-".join(part for part in parts if part)
    joined = _WHITESPACE_RE.sub("-", joined)
    return _TRACKING_ID_INVALID_RE.sub("", joined).lower()


def truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit]
