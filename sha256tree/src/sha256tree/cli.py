"""CLI entrypoint for sha256tree commands."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from sha256tree.config import ConfigError, default_chunk_size, default_log_level, validate_chunk_size
from sha256tree.manifest import (
    ManifestError,
    build_manifest,
    load_checksum_manifest,
    verify_manifest,
    write_manifest,
)
from sha256tree.sources.files import hash_stream
from sha256tree.sources.tree import DONE_MARKER, format_entry, walk_tree

logger = logging.getLogger(__name__)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sha256tree",
        description="Compute the SHA-256 hash of files and of each file in a path tree",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default from SHA256TREE_LOG_LEVEL)")
    parser.add_argument("--chunk-size", type=int, default=None, help="Read size in bytes")

    subparsers = parser.add_subparsers(dest="command", required=True)

    hash_parser = subparsers.add_parser("hash", help="Hash files or stdin")
    hash_parser.add_argument("paths", nargs="+", help="Files to hash, '-' for stdin")

    tree_parser = subparsers.add_parser("tree", help="Hash every file below a path")
    tree_parser.add_argument("path", type=Path)
    tree_parser.add_argument("--format", choices=("table", "json"), default="table")

    manifest_parser = subparsers.add_parser("manifest", help="Checksum manifests")
    manifest_subparsers = manifest_parser.add_subparsers(dest="manifest_command", required=True)
    create_parser = manifest_subparsers.add_parser("create", help="Create a manifest for a directory")
    create_parser.add_argument("path", type=Path)
    create_parser.add_argument("--output", required=True, type=Path)
    verify_parser = manifest_subparsers.add_parser("verify", help="Verify files against a manifest")
    verify_parser.add_argument("--manifest", required=True, type=Path)

    return parser


def _configure_logging(level: str | None) -> None:
    name = (level or default_log_level()).upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _hash_paths(paths: list[str], chunk_size: int) -> list[dict[str, object]]:
    results: list[dict[str, object]] = []
    for raw in paths:
        if raw == "-":
            engine = hash_stream(sys.stdin.buffer, chunk_size=chunk_size)
        else:
            with Path(raw).open("rb") as fh:
                engine = hash_stream(fh, chunk_size=chunk_size)
        results.append(
            {"path": raw, "sha256": engine.hexdigest(), "size_bytes": engine.payload_length()}
        )
    return results


def main(argv: list[str] | None = None) -> int:
    parser = _parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    try:
        chunk_size = (
            validate_chunk_size(args.chunk_size) if args.chunk_size is not None else default_chunk_size()
        )

        if args.command == "hash":
            files = _hash_paths(args.paths, chunk_size)
            print(json.dumps({"status": "ok", "files": files}))
            return 0

        if args.command == "tree":
            for entry in walk_tree(args.path, chunk_size=chunk_size):
                if args.format == "json":
                    print(json.dumps(entry.to_dict()))
                else:
                    print(format_entry(entry))
            if args.format == "table":
                print(DONE_MARKER)
            return 0

        if args.command == "manifest" and args.manifest_command == "create":
            manifest = build_manifest(args.path, output=args.output, chunk_size=chunk_size)
            write_manifest(manifest, args.output)
            print(
                json.dumps(
                    {
                        "status": "ok",
                        "manifest": str(args.output),
                        "files": len(manifest.files),
                    }
                )
            )
            return 0

        if args.command == "manifest" and args.manifest_command == "verify":
            manifest = load_checksum_manifest(args.manifest)
            result = verify_manifest(manifest, chunk_size=chunk_size)
            print(
                json.dumps(
                    {
                        "status": result.status,
                        "files_checked": len(result.checks),
                        "failures": [
                            {
                                "path": check.path,
                                "status": check.status,
                                "expected_sha256": check.expected_sha256,
                                "actual_sha256": check.actual_sha256,
                            }
                            for check in result.failed
                        ],
                    }
                )
            )
            return 0 if result.status == "ok" else 1

        parser.print_help(sys.stderr)
        return 2
    except (ManifestError, ConfigError, OSError) as exc:
        logger.debug("command failed", exc_info=True)
        print(json.dumps({"status": "error", "error": str(exc)}), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
