"""Batch upload of chunk records with retry and exponential backoff."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Sequence

from pydantic import ValidationError

from korrektly.api.client import ApiError, Korrektly
from korrektly.api.types import ChunkBatchRequest
from korrektly.models import ChunkRecord
from korrektly.utils.urls import is_valid_url

LOGGER = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 80
DEFAULT_MAX_RETRIES = 3
BACKOFF_BASE_SECONDS = 1.0
BACKOFF_CAP_SECONDS = 10.0

# Validation errors name the offending record as e.g. "chunks.12.source_url".
_RECORD_INDEX_RE = re.compile(r"chunks\.(\d+)")


def deduplicate(records: Iterable[ChunkRecord]) -> list[ChunkRecord]:
    """Keep one record per tracking id; a later record replaces an earlier one."""
    unique: dict[str, ChunkRecord] = {}
    for record in records:
        unique[record.tracking_id] = record
    return list(unique.values())


def filter_valid_urls(records: Iterable[ChunkRecord]) -> list[ChunkRecord]:
    valid: list[ChunkRecord] = []
    for record in records:
        if is_valid_url(record.source_url):
            valid.append(record)
        else:
            LOGGER.warning(
                "Dropping chunk %s: invalid source URL %r", record.tracking_id, record.source_url
            )
    return valid


def iter_batches(records: Sequence[ChunkRecord], batch_size: int) -> Iterator[list[ChunkRecord]]:
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")
    for start in range(0, len(records), batch_size):
        yield list(records[start : start + batch_size])


def backoff_delay(attempt: int) -> float:
    """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
    return min(BACKOFF_BASE_SECONDS * 2 ** (attempt - 1), BACKOFF_CAP_SECONDS)


def failing_record(error: ApiError, batch: Sequence[ChunkRecord]) -> ChunkRecord | None:
    """Return the batch record an error body points at, if any."""
    if error.body is not None and error.body.errors:
        haystack = " ".join(error.body.errors)
    else:
        haystack = str(error.detail if error.detail is not None else error)
    match = _RECORD_INDEX_RE.search(haystack)
    if not match:
        return None
    index = int(match.group(1))
    return batch[index] if index < len(batch) else None


@dataclass(slots=True)
class UploadStats:
    batches_sent: int = 0
    batches_failed: int = 0
    chunks_uploaded: int = 0
    chunks_failed: int = 0


class BatchUploader:
    """Sends chunk records to a dataset in sequential, fixed-size batches.

    A batch that still fails after ``max_retries`` retries is skipped and the
    upload carries on with the next one; nothing already sent is rolled back.
    """

    def __init__(
        self,
        client: Korrektly,
        dataset_id: str,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_retries: int = DEFAULT_MAX_RETRIES,
        upsert: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self.client = client
        self.dataset_id = dataset_id
        self.batch_size = batch_size
        self.max_retries = max_retries
        self.upsert = upsert
        self.sleep = sleep

    def upload(self, records: Sequence[ChunkRecord]) -> UploadStats:
        stats = UploadStats()
        total = (len(records) + self.batch_size - 1) // self.batch_size
        LOGGER.info("Uploading %d chunks in batches of %d", len(records), self.batch_size)

        for number, batch in enumerate(iter_batches(records, self.batch_size), start=1):
            LOGGER.info("Batch %d/%d (%d chunks)", number, total, len(batch))
            if self._send_with_retry(batch):
                stats.batches_sent += 1
                stats.chunks_uploaded += len(batch)
            else:
                LOGGER.error(
                    "Batch %d failed after %d retries. Skipping...", number, self.max_retries
                )
                stats.batches_failed += 1
                stats.chunks_failed += len(batch)
        return stats

    def _request_for(self, batch: Sequence[ChunkRecord]) -> ChunkBatchRequest:
        return ChunkBatchRequest(
            chunks=[record.to_chunk_input() for record in batch],
            upsert_by_tracking_id=True if self.upsert else None,
        )

    def _send_with_retry(self, batch: Sequence[ChunkRecord]) -> bool:
        try:
            request = self._request_for(batch)
        except ValidationError as exc:
            LOGGER.error("Batch rejected before sending: %s", exc)
            return False

        attempt = 0
        while attempt <= self.max_retries:
            attempt += 1
            try:
                self.client.create_chunks(self.dataset_id, request)
            except ApiError as exc:
                LOGGER.error(
                    "Batch upload failed (attempt %d/%d): %s", attempt, self.max_retries + 1, exc
                )
                record = failing_record(exc, batch)
                if record is not None:
                    LOGGER.error(
                        "Failing chunk: tracking_id=%s source_url=%s",
                        record.tracking_id,
                        record.source_url,
                    )
                if attempt <= self.max_retries:
                    delay = backoff_delay(attempt)
                    LOGGER.info("Retrying in %.0fms...", delay * 1000)
                    self.sleep(delay)
                continue
            LOGGER.info("Batch uploaded successfully")
            return True
        return False
