"""Shared fixtures for the test-suite."""

from __future__ import annotations

from typing import Callable

import pytest

from korrektly.models import ChunkRecord


@pytest.fixture
def make_record() -> Callable[..., ChunkRecord]:
    def factory(tracking_id: str = "doc-heading", **overrides) -> ChunkRecord:
        values = {
            "chunk_html": f"<h2>{tracking_id}</h2>\n<p>body</p>",
            "tracking_id": tracking_id,
            "source_url": f"https://docs.example.com/{tracking_id}",
            "tag_set": ["docs"],
            "metadata": {"heading": tracking_id},
            "semantic_content": f"{tracking_id} body",
            "fulltext_content": f"{tracking_id} body",
        }
        values.update(overrides)
        return ChunkRecord(**values)

    return factory
