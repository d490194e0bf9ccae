#!/usr/bin/env python3
"""Command line access to the configured storage bucket.

Usage:
  .venv/bin/python scripts/storage_cli.py ls photos/
  .venv/bin/python scripts/storage_cli.py get photos/cat.png --expires 60
  .venv/bin/python scripts/storage_cli.py get photos/cat.png --download -o cat.png
  .venv/bin/python scripts/storage_cli.py put photos/cat.png ./cat.png --content-type image/png
  .venv/bin/python scripts/storage_cli.py rm photos/cat.png --level private

Bucket, region and credentials come from the environment (see Settings).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Any, Sequence

from storage_provider.common.config import Settings
from storage_provider.common.logging import setup_logging
from storage_provider.services.storage_service import StorageService

logger = logging.getLogger("storage.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Access-scoped object storage CLI")
    parser.add_argument(
        "--level",
        choices=["public", "protected", "private"],
        default=None,
        help="Access level used to prefix keys (default: STORAGE_LEVEL)",
    )
    parser.add_argument("--bucket", default=None, help="Override STORAGE_BUCKET")
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    get_cmd = sub.add_parser("get", help="Print a presigned URL or download an object")
    get_cmd.add_argument("key")
    get_cmd.add_argument("--download", action="store_true")
    get_cmd.add_argument("--expires", type=int, default=None)
    get_cmd.add_argument("-o", "--output", type=Path, default=None)

    put_cmd = sub.add_parser("put", help="Upload a local file")
    put_cmd.add_argument("key")
    put_cmd.add_argument("source", type=Path)
    put_cmd.add_argument("--content-type", default=None)

    rm_cmd = sub.add_parser("rm", help="Remove an object")
    rm_cmd.add_argument("key")

    ls_cmd = sub.add_parser("ls", help="List objects under a path")
    ls_cmd.add_argument("path", nargs="?", default="")
    ls_cmd.add_argument("--max-keys", type=int, default=None)
    return parser


def _common_options(args: argparse.Namespace) -> dict[str, Any]:
    options: dict[str, Any] = {}
    if args.level:
        options["level"] = args.level
    if args.bucket:
        options["bucket"] = args.bucket
    return options


async def run(args: argparse.Namespace, service: StorageService) -> int:
    options = _common_options(args)

    if args.command == "get":
        if args.expires:
            options["expires"] = args.expires
        if args.download:
            response = await service.get(args.key, options, download=True)
            data = response["Body"].read()
            if args.output:
                args.output.write_bytes(data)
                print(f"Wrote {len(data)} bytes to {args.output}")
            else:
                print(data.decode("utf-8", errors="replace"))
        else:
            print(await service.get(args.key, options))
        return 0

    if args.command == "put":
        if args.content_type:
            options["content_type"] = args.content_type

        def report(progress: dict[str, Any]) -> None:
            logger.info("uploaded %s/%s bytes", progress["loaded"], progress["total"])

        with args.source.open("rb") as fh:
            result = await service.put(
                args.key, fh, options, progress_callback=report
            )
        print(f"Uploaded {result.key}")
        return 0

    if args.command == "rm":
        await service.remove(args.key, options)
        print(f"Removed {args.key}")
        return 0

    if args.max_keys:
        options["max_keys"] = args.max_keys
    for item in await service.list(args.path, options):
        modified = item.last_modified.isoformat() if item.last_modified else "-"
        print(f"{item.size or 0:>12}  {modified}  {item.key}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else "INFO")
    service = StorageService.from_settings(Settings.from_environment())
    return asyncio.run(run(args, service))


if __name__ == "__main__":
    raise SystemExit(main())
