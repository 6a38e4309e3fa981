"""Split rendered HTML into heading-delimited sections."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

from korrektly.models import Section
from korrektly.utils.text import clean_text

_HEADING_RE = re.compile(r"^h([1-6])$", re.IGNORECASE)
_DOCUMENT_SHELL = "<!DOCTYPE html><html><body>{}</body></html>"


def split_into_sections(html: str) -> list[Section]:
    """Group the body's top-level elements under the heading that precedes them.

    Content appearing before the first heading has no title to index under
    and is dropped.
    """
    # Bare fragments do not reliably expose headings as direct body children.
    soup = BeautifulSoup(_DOCUMENT_SHELL.format(html), "html.parser")
    body = soup.body
    if body is None:
        return []

    sections: list[Section] = []
    heading, level = "", 0
    texts: list[str] = []

    def flush() -> None:
        if heading:
            sections.append(Section(heading=heading, body=clean_text("\n".join(texts)), level=level))

    for element in body.find_all(True, recursive=False):
        if not isinstance(element, Tag):
            continue
        match = _HEADING_RE.match(element.name)
        if match:
            flush()
            heading = clean_text(element.get_text())
            level = int(match.group(1))
            texts = []
        else:
            texts.append(element.get_text())

    flush()
    return sections
