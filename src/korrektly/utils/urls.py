"""Source URL checks applied before chunks leave the process."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

_WHITESPACE_RE = re.compile(r"\s")
_ALLOWED_SCHEMES = ("http", "https")


def is_well_formed_url(url: str) -> bool:
    """Absolute URL with a scheme and a host."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc) and not _WHITESPACE_RE.search(url)


def is_valid_url(url: str) -> bool:
    """Stricter check used right before upload.

    Absolute ``http(s)`` URLs must have a host and no empty path segment
    (``//``) after the scheme separator; root-relative paths such as
    ``/guide/intro`` are accepted when no site root was configured.
    """
    if not url or _WHITESPACE_RE.search(url):
        return False
    if url.startswith("/"):
        return "//" not in url
    if not is_well_formed_url(url):
        return False
    scheme, _, rest = url.partition("://")
    if scheme.lower() not in _ALLOWED_SCHEMES:
        return False
    return "//" not in rest
