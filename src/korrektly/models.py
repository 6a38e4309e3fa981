"""Core Korrektly data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from korrektly.api.types import ChunkInput, MetadataValue


@dataclass(frozen=True, slots=True)
class Section:
    """Heading-delimited slice of a rendered document."""

    heading: str
    body: str
    level: int


@dataclass(slots=True)
class Frontmatter:
    """Known frontmatter fields plus passthrough keys the pipeline ignores."""

    title: str | None = None
    subtitle: str | None = None
    description: str | None = None
    slug: str | None = None
    weight: float | None = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ChunkRecord:
    """One searchable unit ready to be uploaded."""

    chunk_html: str
    tracking_id: str
    source_url: str
    tag_set: list[str]
    metadata: dict[str, MetadataValue]
    semantic_content: str
    fulltext_content: str
    weight: float = 1.0
    refresh_on_duplicate: bool = True
    group_tracking_ids: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.tracking_id:
            raise ValueError("ChunkRecord requires a non-empty tracking_id")
        if not 0.0 <= self.weight <= 2.0:
            raise ValueError(f"weight must be within [0, 2], got {self.weight}")

    def to_chunk_input(self) -> ChunkInput:
        return ChunkInput(
            chunk_html=self.chunk_html,
            tracking_id=self.tracking_id,
            source_url=self.source_url,
            tag_set=list(self.tag_set),
            metadata=dict(self.metadata),
            semantic_content=self.semantic_content,
            fulltext_content=self.fulltext_content,
            weight=self.weight,
            refresh_on_duplicate=self.refresh_on_duplicate,
            group_tracking_ids=list(self.group_tracking_ids),
        )
