"""Markdown and OpenAPI chunk extraction."""
