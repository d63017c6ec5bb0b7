"""Runtime configuration for sha256tree."""

from __future__ import annotations

import os

DEFAULT_CHUNK_SIZE = 1024 * 1024
DEFAULT_LOG_LEVEL = "WARNING"
MANIFEST_VERSION = 1


class ConfigError(ValueError):
    """Raised when an environment setting is invalid."""


def default_chunk_size() -> int:
    raw = os.getenv("SHA256TREE_CHUNK_SIZE")
    if raw is None or not raw.strip():
        return DEFAULT_CHUNK_SIZE
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"SHA256TREE_CHUNK_SIZE must be an integer: {raw!r}") from exc
    return validate_chunk_size(value)


def validate_chunk_size(value: int) -> int:
    if value <= 0:
        raise ConfigError(f"chunk size must be > 0, got {value}")
    return value


def default_log_level() -> str:
    return os.getenv("SHA256TREE_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
