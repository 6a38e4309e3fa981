"""Typed client for the Korrektly HTTP API."""
