"""Directory tree walker that hashes every regular file it meets."""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterator

from sha256tree.config import default_chunk_size, validate_chunk_size
from sha256tree.core.sha256 import Sha256
from sha256tree.sources.files import hash_stream

logger = logging.getLogger(__name__)

BLANK_DIGEST = " " * 64
DONE_MARKER = "*DONE*"


class EntryKind(str, Enum):
    FIFO = "FIFO"
    LNK = "LNK"
    CHR = "CHR"
    DIR = "DIR"
    BLK = "BLK"
    FILE = "FILE"
    SOCK = "SOCK"
    UNKNOWN = "???"

    @property
    def label(self) -> str:
        return self.value.ljust(4)


_KIND_TESTS = (
    (stat.S_ISDIR, EntryKind.DIR),
    (stat.S_ISLNK, EntryKind.LNK),
    (stat.S_ISREG, EntryKind.FILE),
    (stat.S_ISFIFO, EntryKind.FIFO),
    (stat.S_ISCHR, EntryKind.CHR),
    (stat.S_ISBLK, EntryKind.BLK),
    (stat.S_ISSOCK, EntryKind.SOCK),
)


def classify(st_mode: int) -> EntryKind:
    for test, kind in _KIND_TESTS:
        if test(st_mode):
            return kind
    return EntryKind.UNKNOWN


@dataclass(frozen=True)
class TreeEntry:
    kind: EntryKind
    mode: int | None
    size: int
    sha256: str | None
    parent: str
    name: str
    error: int | None = None

    @property
    def path(self) -> Path:
        return Path(self.parent) / self.name if self.name else Path(self.parent)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "mode": None if self.mode is None else f"{self.mode:04o}",
            "size_bytes": self.size,
            "sha256": self.sha256,
            "path": str(self.path),
            "error": self.error,
        }


def _hash_regular_file(path: Path, engine: Sha256, chunk_size: int) -> tuple[int, str]:
    with path.open("rb") as fh:
        hash_stream(fh, chunk_size=chunk_size, engine=engine)
    return engine.payload_length(), engine.hexdigest()


def _visit(parent: Path, name: str, engine: Sha256, chunk_size: int) -> Iterator[TreeEntry]:
    path = parent / name if name else parent
    try:
        st = path.lstat()
    except OSError as exc:
        logger.warning("cannot stat %s: %s", path, exc)
        yield TreeEntry(EntryKind.UNKNOWN, None, 0, None, str(parent), name, exc.errno or 0)
        return

    kind = classify(st.st_mode)
    mode = stat.S_IMODE(st.st_mode)

    if kind is EntryKind.FILE:
        try:
            size, digest = _hash_regular_file(path, engine, chunk_size)
        except OSError as exc:
            logger.warning("cannot read %s: %s", path, exc)
            yield TreeEntry(kind, mode, 0, None, str(parent), name, exc.errno or 0)
        else:
            yield TreeEntry(kind, mode, size, digest, str(parent), name)
        return

    yield TreeEntry(kind, mode, 0, None, str(parent), name)
    if kind is not EntryKind.DIR:
        return

    try:
        children = sorted(os.listdir(path))
    except OSError as exc:
        logger.warning("cannot list %s: %s", path, exc)
        return
    for child in children:
        yield from _visit(path, child, engine, chunk_size)


def walk_tree(root: Path, *, chunk_size: int | None = None) -> Iterator[TreeEntry]:
    """Yield ``root`` and everything below it, depth-first, sorted by name.

    Symbolic links are reported but never followed. One engine is reused for
    every regular file.
    """

    size = validate_chunk_size(chunk_size) if chunk_size is not None else default_chunk_size()
    yield from _visit(Path(root), "", Sha256(), size)


def format_entry(entry: TreeEntry) -> str:
    """Render one listing line: ``KIND|mode|size|digest|parent/|name``.

    ``mode`` is the full permission set from ``stat.S_IMODE`` (setuid,
    setgid, sticky and rwx bits) as four octal digits, not the low byte of
    ``st_mode``, which would drop the owner read bit.
    """

    mode = "    " if entry.mode is None else f"{entry.mode:04o}"
    if entry.error is not None:
        size_column = f"#{entry.error:05d} error"
        digest = BLANK_DIGEST
    else:
        size_column = f"{entry.size:>12}"
        # empty files get no digest column, matching the listing format
        digest = entry.sha256 if entry.sha256 and entry.size > 0 else BLANK_DIGEST
    return f"{entry.kind.label}|{mode}|{size_column}|{digest}|{entry.parent}/|{entry.name}"
