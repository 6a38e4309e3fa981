"""Markdown loading and chunking utilities.

Uses Python-Markdown to render the document body to HTML before it is split
into heading-delimited sections.
"""

from __future__ import annotations

import html
import logging
import os
import re
from pathlib import Path

import markdown

from korrektly.ingestion.frontmatter import parse_frontmatter
from korrektly.ingestion.sections import split_into_sections
from korrektly.models import ChunkRecord, Frontmatter, MetadataValue, Section
from korrektly.utils.text import extract_hierarchy, generate_tracking_id
from korrektly.utils.urls import is_well_formed_url

LOGGER = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = ("fenced_code", "tables")
LEVEL_ONE_WEIGHT = 1.2
DEFAULT_WEIGHT = 1.0

_COMPONENT_MARKERS = ("<script setup", "<OAOperation")
# Vue-style component bindings such as <Component :prop="value">
_COMPONENT_BINDING_RE = re.compile(r"<[A-Z]\w+\s+:")
_LEADING_PARENT_RE = re.compile(r"^(\.\.[/\\])+")
_MARKDOWN_SUFFIX_RE = re.compile(r"\.mdx?$")


def has_component_syntax(text: str) -> bool:
    """Return ``True`` for pages driven by embedded components rather than prose."""
    return any(marker in text for marker in _COMPONENT_MARKERS) or bool(
        _COMPONENT_BINDING_RE.search(text)
    )


def render_markdown(body: str, frontmatter: Frontmatter) -> str:
    """Render ``body`` and put the title/subtitle headings in front of it."""
    rendered = markdown.markdown(body, extensions=list(MARKDOWN_EXTENSIONS))
    parts: list[str] = []
    if frontmatter.title:
        parts.append(f"<h1>{html.escape(frontmatter.title)}</h1>")
    if frontmatter.subtitle:
        parts.append(f"<h2>{html.escape(frontmatter.subtitle)}</h2>")
    if not parts:
        return rendered
    parts.append(rendered)
    return "\n".join(parts)


def relative_doc_path(path: Path, base_path: Path | None = None) -> str:
    """Path of ``path`` relative to ``base_path`` with forward slashes."""
    resolved = Path(path).resolve()
    if base_path is not None:
        relative = os.path.relpath(resolved, Path(base_path).resolve())
    else:
        relative = str(resolved)
    relative = os.path.normpath(relative).replace("\\", "/")
    relative = _LEADING_PARENT_RE.sub("", relative)
    if relative.startswith("./"):
        relative = relative[2:]
    return relative


def build_source_url(slug: str, root_url: str | None = None) -> str:
    path = "/" + slug.lstrip("/")
    return f"{root_url.rstrip('/')}{path}" if root_url else path


def _semantic_content(section: Section, frontmatter: Frontmatter) -> str:
    parts = [frontmatter.subtitle, frontmatter.title, section.heading, section.body]
    return " ".join(part for part in parts if part)


def _section_metadata(
    section: Section, frontmatter: Frontmatter, source_url: str, hierarchy: list[str]
) -> dict[str, MetadataValue]:
    metadata: dict[str, MetadataValue] = {
        "heading": section.heading,
        "url": source_url,
        "hierarchy": list(hierarchy),
    }
    for key in ("title", "subtitle", "description"):
        value = getattr(frontmatter, key)
        if value:
            metadata[key] = value
    return metadata


def _section_weight(section: Section, frontmatter: Frontmatter) -> float:
    if frontmatter.weight is not None:
        return frontmatter.weight
    return LEVEL_ONE_WEIGHT if section.level == 1 else DEFAULT_WEIGHT


def build_chunks(
    path: Path,
    *,
    root_url: str | None = None,
    base_path: Path | None = None,
) -> list[ChunkRecord]:
    """Produce one chunk record per heading section of a markdown file.

    Any failure while reading or converting the file is logged and yields no
    records.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        LOGGER.error("Error reading markdown file %s: %s", path, exc)
        return []

    if has_component_syntax(text):
        LOGGER.debug("Skipping component page %s", path)
        return []

    try:
        return _chunks_from_text(path, text, root_url=root_url, base_path=base_path)
    except Exception as exc:
        LOGGER.error("Error processing markdown file %s: %s", path, exc)
        return []


def _chunks_from_text(
    path: Path,
    text: str,
    *,
    root_url: str | None,
    base_path: Path | None,
) -> list[ChunkRecord]:
    frontmatter, body = parse_frontmatter(text)
    sections = split_into_sections(render_markdown(body, frontmatter))

    relative = relative_doc_path(path, base_path)
    hierarchy = extract_hierarchy(relative)
    slug = frontmatter.slug if frontmatter.slug is not None else _MARKDOWN_SUFFIX_RE.sub("", relative)
    source_url = build_source_url(slug, root_url)

    if root_url and not is_well_formed_url(source_url):
        LOGGER.warning("Skipping file %s: Invalid source URL generated: %s", path, source_url)
        return []

    chunks: list[ChunkRecord] = []
    for section in sections:
        tracking_id = generate_tracking_id(slug, section.heading)
        if not tracking_id:
            LOGGER.warning("Skipping section %r in %s: empty tracking id", section.heading, path)
            continue
        tag = f"h{section.level}"
        chunks.append(
            ChunkRecord(
                chunk_html=(
                    f"<{tag}>{html.escape(section.heading)}</{tag}>\n<p>{html.escape(section.body)}</p>"
                ),
                tracking_id=tracking_id,
                source_url=source_url,
                tag_set=list(hierarchy),
                metadata=_section_metadata(section, frontmatter, source_url, hierarchy),
                semantic_content=_semantic_content(section, frontmatter),
                fulltext_content=f"{section.heading} {section.body}",
                weight=_section_weight(section, frontmatter),
                refresh_on_duplicate=True,
                group_tracking_ids=[str(path)],
            )
        )
    LOGGER.debug("Extracted %d sections from %s", len(chunks), path)
    return chunks
