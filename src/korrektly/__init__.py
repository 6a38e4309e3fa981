"""Korrektly search API client and documentation indexer."""

__version__ = "0.1.0"
