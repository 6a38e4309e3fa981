"""Tests for markdown chunk extraction."""

from __future__ import annotations

from pathlib import Path

import pytest

from korrektly.ingestion.markdown_loader import (
    build_chunks,
    build_source_url,
    has_component_syntax,
    relative_doc_path,
    render_markdown,
)
from korrektly.models import Frontmatter


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def docs(tmp_path: Path) -> Path:
    root = tmp_path / "docs"
    root.mkdir()
    return root


class TestBuildChunks:
    """Test build_chunks function."""

    def test_one_chunk_per_heading(self, docs: Path) -> None:
        path = _write(
            docs / "guide" / "intro.md",
            "# Introduction\n\nWelcome to the docs.\n\n## Install\n\nRun the installer.\n",
        )

        chunks = build_chunks(path, root_url="https://docs.example.com", base_path=docs)

        assert [c.metadata["heading"] for c in chunks] == ["Introduction", "Install"]
        first, second = chunks
        assert first.tracking_id == "guide/intro-introduction"
        assert second.tracking_id == "guide/intro-install"
        assert first.source_url == "https://docs.example.com/guide/intro"
        assert first.tag_set == ["guide", "intro"]
        assert first.metadata["hierarchy"] == ["guide", "intro"]
        assert first.metadata["url"] == "https://docs.example.com/guide/intro"
        assert first.chunk_html == "<h1>Introduction</h1>\n<p>Welcome to the docs.</p>"
        assert first.fulltext_content == "Introduction Welcome to the docs."
        assert first.semantic_content == "Introduction Welcome to the docs."
        assert first.group_tracking_ids == [str(path)]
        assert first.refresh_on_duplicate is True

    def test_default_weights(self, docs: Path) -> None:
        """Level-one headings are boosted, the rest keep the default weight."""
        path = _write(docs / "page.md", "# Top\n\ntext\n\n## Sub\n\nmore\n")

        chunks = build_chunks(path, base_path=docs)

        assert [c.weight for c in chunks] == [1.2, 1.0]

    def test_frontmatter_weight_overrides_level_one(self, docs: Path) -> None:
        path = _write(docs / "page.md", "---\nweight: 1.5\n---\n# Heading\n\nBody\n")

        chunks = build_chunks(path, base_path=docs)

        assert len(chunks) == 1
        assert chunks[0].weight == 1.5

    def test_title_becomes_its_own_section(self, docs: Path) -> None:
        """The frontmatter title is rendered as a leading level-one heading."""
        path = _write(docs / "page.md", '---\ntitle: "T"\nweight: 1.5\n---\n# Heading\n')

        chunks = build_chunks(path, base_path=docs)

        heading_chunks = [c for c in chunks if c.metadata["heading"] == "Heading"]
        assert len(heading_chunks) == 1
        assert heading_chunks[0].weight == 1.5
        assert {c.metadata["heading"] for c in chunks} == {"T", "Heading"}
        assert all(c.weight == 1.5 for c in chunks)

    def test_frontmatter_metadata_and_semantic_order(self, docs: Path) -> None:
        path = _write(
            docs / "page.md",
            "---\ntitle: Guide\nsubtitle: Basics\ndescription: Learn things\n---\n## Step\n\nDo it\n",
        )

        chunks = build_chunks(path, base_path=docs)
        step = next(c for c in chunks if c.metadata["heading"] == "Step")

        assert step.semantic_content == "Basics Guide Step Do it"
        assert step.metadata["title"] == "Guide"
        assert step.metadata["subtitle"] == "Basics"
        assert step.metadata["description"] == "Learn things"

    def test_slug_override(self, docs: Path) -> None:
        path = _write(docs / "nested" / "page.md", "---\nslug: /custom/place\n---\n# Hello\n")

        chunks = build_chunks(path, root_url="https://docs.example.com", base_path=docs)

        assert chunks[0].source_url == "https://docs.example.com/custom/place"
        assert chunks[0].tracking_id == "/custom/place-hello"
        assert chunks[0].tag_set == ["nested", "page"]

    def test_relative_url_without_root(self, docs: Path) -> None:
        path = _write(docs / "page.mdx", "# Hello\n")

        chunks = build_chunks(path, base_path=docs)

        assert chunks[0].source_url == "/page"

    def test_invalid_root_url_skips_file(self, docs: Path) -> None:
        path = _write(docs / "page.md", "# Hello\n")

        assert build_chunks(path, root_url="not a url", base_path=docs) == []

    def test_component_pages_skipped(self, docs: Path) -> None:
        path = _write(docs / "op.md", '# API\n\n<OAOperation operationId="x" />\n')

        assert build_chunks(path, base_path=docs) == []

    def test_unreadable_file(self, docs: Path) -> None:
        assert build_chunks(docs / "missing.md", base_path=docs) == []

    def test_preamble_not_indexed(self, docs: Path) -> None:
        path = _write(docs / "page.md", "Intro text without heading.\n\n# First\n\nBody\n")

        chunks = build_chunks(path, base_path=docs)

        assert len(chunks) == 1
        assert "Intro text" not in chunks[0].fulltext_content


class TestHelpers:
    """Test the smaller markdown helpers."""

    @pytest.mark.parametrize(
        "text",
        ['<script setup>\nconst x = 1\n</script>', '<Badge :type="tip" />', "<OAOperation />"],
    )
    def test_component_syntax_detected(self, text: str) -> None:
        assert has_component_syntax(text)

    def test_plain_html_is_not_component(self) -> None:
        assert not has_component_syntax('<div class="note">Hi</div>\n<Badge type="tip" />')

    def test_render_prepends_title_and_subtitle(self) -> None:
        html = render_markdown("Body text", Frontmatter(title="T", subtitle="S"))
        assert html.startswith("<h1>T</h1>\n<h2>S</h2>\n")
        assert "<p>Body text</p>" in html

    def test_relative_doc_path(self, tmp_path: Path) -> None:
        assert relative_doc_path(tmp_path / "a" / "b.md", tmp_path) == "a/b.md"

    def test_relative_doc_path_outside_base(self, tmp_path: Path) -> None:
        """Leading parent references are stripped."""
        base = tmp_path / "docs"
        assert relative_doc_path(tmp_path / "other" / "x.md", base) == "other/x.md"

    @pytest.mark.parametrize(
        ("slug", "root", "expected"),
        [
            ("guide/intro", None, "/guide/intro"),
            ("//guide", None, "/guide"),
            ("guide", "https://docs.example.com", "https://docs.example.com/guide"),
            ("guide", "https://docs.example.com/", "https://docs.example.com/guide"),
        ],
    )
    def test_build_source_url(self, slug: str, root: str, expected: str) -> None:
        assert build_source_url(slug, root) == expected
