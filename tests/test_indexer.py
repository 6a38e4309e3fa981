"""Tests for the indexing pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import List
from unittest.mock import MagicMock, patch

import pytest

from korrektly.config import AppConfig
from korrektly.index.indexer import Indexer, IndexStats, find_markdown
from korrektly.index.uploader import UploadStats
from korrektly.utils.files import DiscoveryError


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def docs(tmp_path: Path) -> Path:
    root = tmp_path / "docs"
    _write(root / "guide" / "intro.md", "# Intro\n\nHello.\n\n## Setup\n\nInstall.\n")
    _write(root / "faq.md", "## Question\n\nAnswer.\n")
    return root


class TestIndexStats:
    """Test IndexStats defaults."""

    def test_init_defaults(self) -> None:
        stats = IndexStats()
        assert stats.markdown_files == 0
        assert stats.unique_chunks == 0
        assert stats.upload == UploadStats()


class TestFindMarkdown:
    """Test find_markdown helper."""

    def test_lists_files(self, docs: Path) -> None:
        assert [p.name for p in find_markdown(docs)] == ["faq.md", "intro.md"]


class TestIndexer:
    """Test Indexer pipeline."""

    def _indexer(self, config: AppConfig, messages: List[str]) -> tuple[Indexer, MagicMock]:
        uploader = MagicMock()
        uploader.upload.return_value = UploadStats(batches_sent=1, chunks_uploaded=3)
        return Indexer(uploader, config, report=messages.append), uploader

    def test_markdown_only(self, docs: Path) -> None:
        messages: List[str] = []
        indexer, uploader = self._indexer(AppConfig(root_url="https://docs.example.com"), messages)

        stats = indexer.index(docs)

        records = uploader.upload.call_args.args[0]
        assert [r.tracking_id for r in records] == [
            "faq-question",
            "guide/intro-intro",
            "guide/intro-setup",
        ]
        assert records[0].source_url == "https://docs.example.com/faq"
        assert stats.markdown_files == 2
        assert stats.markdown_chunks == 3
        assert stats.unique_chunks == 3
        assert stats.upload.chunks_uploaded == 3
        assert "Found 2 markdown files" in messages

    @patch("korrektly.index.indexer.build_openapi_chunks")
    def test_openapi_first_and_deduplicated(
        self, mock_openapi: MagicMock, docs: Path, make_record
    ) -> None:
        mock_openapi.return_value = [
            make_record("faq-question", source_url="https://docs.example.com/api/x"),
            make_record("listUsers", source_url="https://docs.example.com/api/listUsers"),
        ]
        messages: List[str] = []
        config = AppConfig(
            root_url="https://docs.example.com",
            openapi_spec="https://api.example.com/openapi.json",
            api_ref_path="reference",
        )
        indexer, uploader = self._indexer(config, messages)

        stats = indexer.index(docs)

        mock_openapi.assert_called_once_with(
            "https://api.example.com/openapi.json",
            site_url="https://docs.example.com",
            api_ref_path="reference",
        )
        records = uploader.upload.call_args.args[0]
        ids = [r.tracking_id for r in records]
        assert ids == ["faq-question", "listUsers", "guide/intro-intro", "guide/intro-setup"]
        # the markdown record seen later replaces the OpenAPI one
        assert records[0].source_url == "https://docs.example.com/faq"
        assert stats.openapi_chunks == 2
        assert stats.duplicates == 1
        assert "Removed 1 duplicate chunks" in messages

    def test_invalid_urls_dropped(self, docs: Path, make_record) -> None:
        messages: List[str] = []
        indexer, uploader = self._indexer(AppConfig(), messages)
        records = [make_record("ok"), make_record("bad", source_url="https://x.com//y")]

        kept = indexer.prepare(records, IndexStats())

        assert [r.tracking_id for r in kept] == ["ok"]

    def test_url_validation_disabled(self, make_record) -> None:
        indexer, _ = self._indexer(AppConfig(validate_urls=False), [])
        records = [make_record("bad", source_url="https://x.com//y")]

        assert indexer.prepare(records, IndexStats()) == records

    def test_nothing_to_upload(self, tmp_path: Path) -> None:
        indexer, uploader = self._indexer(AppConfig(), [])

        stats = indexer.index(tmp_path)

        uploader.upload.assert_not_called()
        assert stats.unique_chunks == 0

    def test_missing_directory(self, tmp_path: Path) -> None:
        indexer, _ = self._indexer(AppConfig(), [])
        with pytest.raises(DiscoveryError):
            indexer.index(tmp_path / "missing")
