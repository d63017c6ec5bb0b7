"""Streaming SHA-256 engine and file-tree hashing tools."""

from sha256tree.core import Sha256, sha256

__version__ = "0.2.0"

__all__ = ["Sha256", "__version__", "sha256"]
