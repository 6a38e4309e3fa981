"""Documentation indexing pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from korrektly.config import AppConfig
from korrektly.index.uploader import BatchUploader, UploadStats, deduplicate, filter_valid_urls
from korrektly.ingestion.markdown_loader import build_chunks
from korrektly.ingestion.openapi_loader import build_openapi_chunks
from korrektly.models import ChunkRecord
from korrektly.utils.files import iter_markdown_paths

LOGGER = logging.getLogger(__name__)

Reporter = Callable[[str], None]


def find_markdown(path: Path, *, respect_gitignore: bool = True) -> list[Path]:
    """Find all markdown files under ``path``."""
    return list(iter_markdown_paths(path, respect_gitignore=respect_gitignore))


@dataclass(slots=True)
class IndexStats:
    openapi_chunks: int = 0
    markdown_files: int = 0
    markdown_chunks: int = 0
    duplicates: int = 0
    invalid_urls: int = 0
    unique_chunks: int = 0
    upload: UploadStats = field(default_factory=UploadStats)


class Indexer:
    """Runs discovery, extraction, dedup, validation and upload in order."""

    def __init__(
        self,
        uploader: BatchUploader,
        config: AppConfig,
        *,
        report: Reporter | None = None,
    ) -> None:
        self.uploader = uploader
        self.config = config
        self.report = report or LOGGER.info

    def collect(self, docs_path: Path, stats: IndexStats) -> list[ChunkRecord]:
        """Gather records from the OpenAPI spec (if any) and the markdown tree.

        Raises :class:`korrektly.utils.files.DiscoveryError` when ``docs_path``
        cannot be read.
        """
        records: list[ChunkRecord] = []

        if self.config.openapi_spec:
            self.report("Processing OpenAPI spec...")
            openapi = build_openapi_chunks(
                self.config.openapi_spec,
                site_url=self.config.root_url,
                api_ref_path=self.config.api_ref_path,
            )
            stats.openapi_chunks = len(openapi)
            records.extend(openapi)
            self.report(f"Found {len(openapi)} API endpoints")

        self.report("Processing markdown files...")
        paths = find_markdown(docs_path, respect_gitignore=self.config.respect_gitignore)
        stats.markdown_files = len(paths)
        self.report(f"Found {len(paths)} markdown files")

        for path in paths:
            chunks = build_chunks(path, root_url=self.config.root_url, base_path=docs_path)
            stats.markdown_chunks += len(chunks)
            records.extend(chunks)
        self.report(f"Generated {stats.markdown_chunks} chunks from markdown")
        return records

    def prepare(self, records: list[ChunkRecord], stats: IndexStats) -> list[ChunkRecord]:
        unique = deduplicate(records)
        stats.duplicates = len(records) - len(unique)
        if stats.duplicates:
            self.report(f"Removed {stats.duplicates} duplicate chunks")

        if self.config.validate_urls:
            valid = filter_valid_urls(unique)
            stats.invalid_urls = len(unique) - len(valid)
            if stats.invalid_urls:
                self.report(f"Dropped {stats.invalid_urls} chunks with invalid source URLs")
            unique = valid

        stats.unique_chunks = len(unique)
        self.report(f"Total unique chunks: {stats.unique_chunks}")
        return unique

    def index(self, docs_path: Path) -> IndexStats:
        """Index the documentation tree at ``docs_path``."""
        stats = IndexStats()
        records = self.prepare(self.collect(Path(docs_path), stats), stats)
        if not records:
            LOGGER.warning("No chunks to upload")
            return stats
        stats.upload = self.uploader.upload(records)
        return stats
