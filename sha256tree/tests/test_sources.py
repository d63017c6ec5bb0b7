from __future__ import annotations

import hashlib
import io
import os
import stat
import sys
from pathlib import Path

import pytest

from sha256tree.config import ConfigError
from sha256tree.core.sha256 import EngineState, Sha256
from sha256tree.sources.files import hash_stream, sha256_bytes, sha256_file
from sha256tree.sources.tree import (
    BLANK_DIGEST,
    EntryKind,
    TreeEntry,
    classify,
    format_entry,
    walk_tree,
)


class _ShortReads(io.RawIOBase):
    """Stream that returns at most 7 bytes per read."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._offset = 0

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        chunk = self._data[self._offset:self._offset + min(size, 7)]
        self._offset += len(chunk)
        return chunk


def _make_tree(root: Path) -> None:
    (root / "b").mkdir()
    (root / "a.txt").write_bytes(b"abc")
    (root / "b" / "empty.bin").write_bytes(b"")
    (root / "b" / "data.bin").write_bytes(bytes(range(256)) * 3)


def test_hash_stream_independent_of_chunk_size() -> None:
    data = os.urandom(5000)
    expected = hashlib.sha256(data).hexdigest()

    for chunk_size in (1, 63, 64, 65, 4096):
        engine = hash_stream(io.BytesIO(data), chunk_size=chunk_size)
        assert engine.hexdigest() == expected
        assert engine.payload_length() == len(data)


def test_hash_stream_handles_short_reads() -> None:
    data = b"0123456789" * 30

    engine = hash_stream(_ShortReads(data), chunk_size=64)

    assert engine.hexdigest() == hashlib.sha256(data).hexdigest()


def test_hash_stream_resets_reused_engine() -> None:
    engine = Sha256()
    engine.update(b"stale bytes")

    hash_stream(io.BytesIO(b"abc"), engine=engine)

    assert engine.state is EngineState.FINALIZED
    assert engine.hexdigest() == hashlib.sha256(b"abc").hexdigest()


def test_hash_stream_rejects_bad_chunk_size() -> None:
    with pytest.raises(ConfigError):
        hash_stream(io.BytesIO(b""), chunk_size=0)


def test_sha256_file_and_bytes(tmp_path: Path) -> None:
    target = tmp_path / "payload.bin"
    target.write_bytes(b"payload" * 100)

    assert sha256_file(target) == hashlib.sha256(b"payload" * 100).hexdigest()
    assert sha256_bytes(b"") == hashlib.sha256(b"").hexdigest()


def test_sha256_file_missing_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        sha256_file(tmp_path / "missing")


def test_chunk_size_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SHA256TREE_CHUNK_SIZE", "nope")

    with pytest.raises(ConfigError):
        hash_stream(io.BytesIO(b"abc"))

    monkeypatch.setenv("SHA256TREE_CHUNK_SIZE", "5")
    assert hash_stream(io.BytesIO(b"abc")).hexdigest() == hashlib.sha256(b"abc").hexdigest()


def test_classify_modes() -> None:
    assert classify(stat.S_IFDIR | 0o755) is EntryKind.DIR
    assert classify(stat.S_IFREG | 0o644) is EntryKind.FILE
    assert classify(stat.S_IFLNK | 0o777) is EntryKind.LNK
    assert classify(stat.S_IFIFO) is EntryKind.FIFO
    assert classify(0) is EntryKind.UNKNOWN


def test_walk_tree_order_and_digests(tmp_path: Path) -> None:
    _make_tree(tmp_path)

    entries = list(walk_tree(tmp_path, chunk_size=50))

    assert [(entry.kind, entry.name) for entry in entries] == [
        (EntryKind.DIR, ""),
        (EntryKind.FILE, "a.txt"),
        (EntryKind.DIR, "b"),
        (EntryKind.FILE, "data.bin"),
        (EntryKind.FILE, "empty.bin"),
    ]
    by_name = {entry.name: entry for entry in entries}
    assert by_name["a.txt"].sha256 == hashlib.sha256(b"abc").hexdigest()
    assert by_name["a.txt"].size == 3
    assert by_name["data.bin"].sha256 == hashlib.sha256(bytes(range(256)) * 3).hexdigest()
    assert by_name["empty.bin"].sha256 == hashlib.sha256(b"").hexdigest()
    assert by_name["empty.bin"].size == 0
    assert by_name["data.bin"].parent == str(tmp_path / "b")
    assert by_name["data.bin"].path == tmp_path / "b" / "data.bin"


@pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
def test_walk_tree_does_not_follow_symlinks(tmp_path: Path) -> None:
    _make_tree(tmp_path)
    (tmp_path / "link").symlink_to(tmp_path / "b", target_is_directory=True)

    entries = list(walk_tree(tmp_path))
    link = next(entry for entry in entries if entry.name == "link")

    assert link.kind is EntryKind.LNK
    assert link.sha256 is None
    assert sum(1 for entry in entries if entry.name == "data.bin") == 1


def test_walk_tree_reports_missing_root(tmp_path: Path) -> None:
    entries = list(walk_tree(tmp_path / "gone"))

    assert len(entries) == 1
    assert entries[0].kind is EntryKind.UNKNOWN
    assert entries[0].error is not None


def test_format_entry_regular_file() -> None:
    entry = TreeEntry(EntryKind.FILE, 0o644, 3, "ab" * 32, "/data", "a.txt")

    assert format_entry(entry) == f"FILE|0644|           3|{'ab' * 32}|/data/|a.txt"


def test_format_entry_blanks_digest_for_empty_and_dirs() -> None:
    empty = TreeEntry(EntryKind.FILE, 0o600, 0, "cd" * 32, "/data", "empty")
    directory = TreeEntry(EntryKind.DIR, 0o755, 0, None, "/data", "sub")

    assert format_entry(empty) == f"FILE|0600|           0|{BLANK_DIGEST}|/data/|empty"
    assert format_entry(directory) == f"DIR |0755|           0|{BLANK_DIGEST}|/data/|sub"


def test_format_entry_error() -> None:
    entry = TreeEntry(EntryKind.FILE, 0o000, 0, None, "/data", "secret", error=13)

    assert format_entry(entry) == f"FILE|0000|#00013 error|{BLANK_DIGEST}|/data/|secret"


def test_tree_entry_to_dict() -> None:
    entry = TreeEntry(EntryKind.LNK, 0o777, 0, None, "/data", "link")

    assert entry.to_dict() == {
        "kind": "LNK",
        "mode": "0777",
        "size_bytes": 0,
        "sha256": None,
        "path": str(Path("/data") / "link"),
        "error": None,
    }


def test_format_entry_keeps_special_permission_bits() -> None:
    entry = TreeEntry(EntryKind.FILE, stat.S_IMODE(stat.S_IFREG | 0o4755), 1, "ef" * 32, "/bin", "tool")

    assert format_entry(entry).split("|")[1] == "4755"
