"""YAML frontmatter parsing for markdown documents."""

from __future__ import annotations

import logging
import math
from typing import Any

import yaml

from korrektly.models import Frontmatter

LOGGER = logging.getLogger(__name__)

DELIMITER = "---"
_STRING_FIELDS = ("title", "subtitle", "description", "slug")


def _as_text(key: str, value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (str, int, float, bool)):
        return str(value)
    LOGGER.warning("Ignoring frontmatter %r: expected a scalar, got %s", key, type(value).__name__)
    return None


def _as_weight(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        weight = None
    else:
        try:
            weight = float(value)
        except (TypeError, ValueError):
            weight = None
    if weight is None or math.isnan(weight) or not 0.0 <= weight <= 2.0:
        LOGGER.warning("Ignoring frontmatter weight %r: expected a number in [0, 2]", value)
        return None
    return weight


def frontmatter_from_mapping(data: dict[str, Any]) -> Frontmatter:
    """Validate known keys and keep everything else in ``extra``."""
    known = {key: _as_text(key, data.get(key)) for key in _STRING_FIELDS}
    extra = {
        str(key): value
        for key, value in data.items()
        if key not in _STRING_FIELDS and key != "weight"
    }
    return Frontmatter(weight=_as_weight(data.get("weight")), extra=extra, **known)


def parse_frontmatter(text: str) -> tuple[Frontmatter, str]:
    """Split ``text`` into its frontmatter and markdown body.

    Documents without a ``---`` delimited header, or whose header is not a
    YAML mapping, come back unchanged with empty frontmatter.
    """
    parts = text.split(DELIMITER)
    if len(parts) < 3:
        return Frontmatter(), text

    header = parts[1].strip()
    body = DELIMITER.join(parts[2:]).strip()
    try:
        data = yaml.safe_load(header)
    except yaml.YAMLError as exc:
        LOGGER.warning("Failed to parse frontmatter: %s", exc)
        return Frontmatter(), text

    if data is None:
        return Frontmatter(), body
    if not isinstance(data, dict):
        LOGGER.warning("Failed to parse frontmatter: expected a mapping, got %s", type(data).__name__)
        return Frontmatter(), text
    return frontmatter_from_mapping(data), body
