"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, Mapping, Sequence

from korrektly.api.client import DEFAULT_BASE_URL

TOKEN_ENV = "KORREKTLY_API_TOKEN"
DATASET_ENV = "KORREKTLY_DATASET_ID"
BASE_URL_ENV = "KORREKTLY_BASE_URL"

MAX_BATCH_SIZE = 120


class ConfigError(Exception):
    """Raised when required settings are missing or out of range.

    ``missing`` names the unset settings; it is empty for range errors.
    """

    def __init__(self, message: str, missing: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.missing = tuple(missing)


@dataclass(slots=True)
class AppConfig:
    api_token: str | None = None
    dataset_id: str | None = None
    base_url: str = DEFAULT_BASE_URL
    root_url: str | None = None
    openapi_spec: str | None = None
    api_ref_path: str = "api"
    batch_size: int = 80
    max_retries: int = 3
    upsert: bool = False
    respect_gitignore: bool = True
    validate_urls: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> "AppConfig":
        """Build a config from environment variables; non-``None`` overrides win."""
        environ = os.environ if environ is None else environ
        values: dict[str, Any] = {
            "api_token": environ.get(TOKEN_ENV) or None,
            "dataset_id": environ.get(DATASET_ENV) or None,
        }
        base_url = environ.get(BASE_URL_ENV)
        if base_url:
            values["base_url"] = base_url

        known = {item.name for item in fields(cls)}
        for key, value in overrides.items():
            if key not in known:
                raise TypeError(f"Unknown configuration option: {key}")
            if value is not None:
                values[key] = value
        return cls(**values)

    def validate(self) -> None:
        missing = []
        if not self.api_token:
            missing.append(TOKEN_ENV)
        if not self.dataset_id:
            missing.append(f"{DATASET_ENV} (or --dataset)")
        if missing:
            raise ConfigError("Missing required configuration: " + ", ".join(missing), missing)
        if not 1 <= self.batch_size <= MAX_BATCH_SIZE:
            raise ConfigError(
                f"Batch size must be between 1 and {MAX_BATCH_SIZE}, got {self.batch_size}"
            )
        if self.max_retries < 0:
            raise ConfigError(f"Max retries cannot be negative, got {self.max_retries}")
