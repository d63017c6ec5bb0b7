"""Byte sources that feed the hashing core: files, streams and directory trees."""

from .files import hash_stream, sha256_bytes, sha256_file
from .tree import EntryKind, TreeEntry, format_entry, walk_tree

__all__ = [
    "EntryKind",
    "TreeEntry",
    "format_entry",
    "hash_stream",
    "sha256_bytes",
    "sha256_file",
    "walk_tree",
]
