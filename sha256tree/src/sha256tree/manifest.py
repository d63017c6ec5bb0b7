"""Checksum manifest creation, parsing and verification."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sha256tree.config import MANIFEST_VERSION
from sha256tree.sources.files import sha256_file
from sha256tree.sources.tree import EntryKind, walk_tree


class ManifestError(ValueError):
    """Raised when a manifest file is invalid."""


SHA256_RE = re.compile(r"^[0-9a-fA-F]{64}$")

STATUS_OK = "ok"
STATUS_MISMATCH = "mismatch"
STATUS_MISSING = "missing"
STATUS_ERROR = "error"


@dataclass(frozen=True)
class ManifestFile:
    path: str
    sha256: str
    size_bytes: int


@dataclass(frozen=True)
class ChecksumManifest:
    root: Path
    files: tuple[ManifestFile, ...]

    def to_payload(self) -> dict[str, Any]:
        return {
            "manifest_version": MANIFEST_VERSION,
            "files": [
                {"path": item.path, "sha256": item.sha256, "size_bytes": item.size_bytes}
                for item in self.files
            ],
        }


@dataclass(frozen=True)
class FileCheck:
    path: str
    status: str
    expected_sha256: str
    actual_sha256: str | None
    detail: str | None = None


@dataclass(frozen=True)
class VerifyResult:
    status: str
    checks: tuple[FileCheck, ...]

    @property
    def failed(self) -> tuple[FileCheck, ...]:
        return tuple(check for check in self.checks if check.status != STATUS_OK)


def _load_json(path: Path) -> dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Invalid JSON manifest: {path}") from exc
    if not isinstance(payload, dict):
        raise ManifestError(f"Manifest root must be an object: {path}")
    return payload


def _require_string(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ManifestError(f"Manifest field '{key}' must be a non-empty string")
    return value.strip()


def _parse_file_entry(entry: Any) -> ManifestFile:
    if not isinstance(entry, dict):
        raise ManifestError("Each files[] entry must be an object")

    path = _require_string(entry, "path")
    if Path(path).is_absolute():
        raise ManifestError(f"files[].path must be relative: {path}")

    sha256 = _require_string(entry, "sha256")
    if SHA256_RE.match(sha256) is None:
        raise ManifestError("files[].sha256 must be 64 hex chars")

    size_bytes = entry.get("size_bytes")
    if not isinstance(size_bytes, int) or isinstance(size_bytes, bool) or size_bytes < 0:
        raise ManifestError("files[].size_bytes must be an integer >= 0")

    return ManifestFile(path=path, sha256=sha256.lower(), size_bytes=size_bytes)


def load_checksum_manifest(path: Path) -> ChecksumManifest:
    payload = _load_json(path)

    version = payload.get("manifest_version")
    if version != MANIFEST_VERSION:
        raise ManifestError(f"Unsupported manifest_version: {version!r}")

    files_raw = payload.get("files")
    if not isinstance(files_raw, list):
        raise ManifestError("Manifest files must be an array")

    files = tuple(_parse_file_entry(entry) for entry in files_raw)
    seen: set[str] = set()
    for item in files:
        if item.path in seen:
            raise ManifestError(f"Duplicate manifest path: {item.path}")
        seen.add(item.path)

    return ChecksumManifest(root=path.resolve().parent, files=files)


def build_manifest(
    root: Path,
    *,
    output: Path | None = None,
    chunk_size: int | None = None,
) -> ChecksumManifest:
    """Hash every regular file below ``root``.

    Paths are stored relative to the directory the manifest will be written
    to (``output.parent``), or to ``root`` when no output is given. The
    output file itself is never listed.
    """

    root = Path(root)
    if not root.is_dir():
        raise ManifestError(f"Manifest root must be a directory: {root}")
    base = Path(output).resolve().parent if output is not None else root.resolve()
    skip = Path(output).resolve() if output is not None else None
    files: list[ManifestFile] = []
    for entry in walk_tree(root, chunk_size=chunk_size):
        if entry.kind is not EntryKind.FILE:
            continue
        resolved = entry.path.resolve()
        if resolved == skip:
            continue
        if entry.error is not None or entry.sha256 is None:
            raise ManifestError(f"Cannot read file for manifest: {entry.path}")
        files.append(
            ManifestFile(
                path=Path(os.path.relpath(resolved, base)).as_posix(),
                sha256=entry.sha256,
                size_bytes=entry.size,
            )
        )
    return ChecksumManifest(root=base, files=tuple(files))


def write_manifest(manifest: ChecksumManifest, path: Path) -> None:
    text = json.dumps(manifest.to_payload(), indent=2, sort_keys=True)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text + "\n", encoding="utf-8")


def _check_file(root: Path, item: ManifestFile, chunk_size: int | None) -> FileCheck:
    target = root / item.path
    if not target.is_file():
        return FileCheck(item.path, STATUS_MISSING, item.sha256, None)
    try:
        actual = sha256_file(target, chunk_size=chunk_size)
    except OSError as exc:
        return FileCheck(item.path, STATUS_ERROR, item.sha256, None, str(exc))
    status = STATUS_OK if actual == item.sha256 else STATUS_MISMATCH
    return FileCheck(item.path, status, item.sha256, actual)


def verify_manifest(manifest: ChecksumManifest, *, chunk_size: int | None = None) -> VerifyResult:
    checks = tuple(_check_file(manifest.root, item, chunk_size) for item in manifest.files)
    status = "ok" if all(check.status == STATUS_OK for check in checks) else "failed"
    return VerifyResult(status=status, checks=checks)
