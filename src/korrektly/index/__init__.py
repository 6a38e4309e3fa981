"""Chunk deduplication, batching and upload."""
