"""Hashing helpers for files and binary streams."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO

from sha256tree.config import default_chunk_size, validate_chunk_size
from sha256tree.core.sha256 import Sha256


def hash_stream(
    stream: BinaryIO,
    *,
    chunk_size: int | None = None,
    engine: Sha256 | None = None,
) -> Sha256:
    """Read ``stream`` to EOF into ``engine`` and return it finalized.

    A passed-in engine is reset first, so one instance can be reused across
    many streams. Read errors propagate unchanged.
    """

    size = validate_chunk_size(chunk_size) if chunk_size is not None else default_chunk_size()
    digest = engine.reset() if engine is not None else Sha256()
    for chunk in iter(lambda: stream.read(size), b""):
        digest.update(chunk)
    digest.finalize()
    return digest


def sha256_file(path: Path, *, chunk_size: int | None = None) -> str:
    with path.open("rb") as fh:
        return hash_stream(fh, chunk_size=chunk_size).hexdigest()


def sha256_bytes(data: bytes) -> str:
    return Sha256().update(data).hexdigest()
