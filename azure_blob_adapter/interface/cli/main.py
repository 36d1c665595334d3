"""CLI for ad-hoc blob operations.

Example:
    azure-blob list docs --page-size 50 --metadata
    azure-blob move inbox a.xml archive a.xml --meta processed=true
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from pathlib import Path

from azure_blob_adapter.config.compose import Container, build_container
from azure_blob_adapter.config.logging import setup_logging
from azure_blob_adapter.config.settings import AppSettings
from azure_blob_adapter.domain.errors import DomainError
from azure_blob_adapter.domain.models import MoveRequest
from azure_blob_adapter.domain.types import Result


def _parse_meta(pairs: Sequence[str] | None) -> dict[str, str]:
    meta: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"metadata must be key=value, got {pair!r}")
        meta[key] = value
    return meta


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser("azure-blob", description="Azure Blob Storage adapter CLI")
    ap.add_argument(
        "--connection",
        default=None,
        help="Connection string or account alias (default: AZURE_BLOB_STORAGE_CONNECTION_STRING)",
    )
    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("containers", help="List containers")

    p_list = sub.add_parser("list", help="List blobs in a container")
    p_list.add_argument("container")
    p_list.add_argument("--page-size", type=int, default=None)
    p_list.add_argument("--metadata", action="store_true", help="Fetch per-blob metadata")
    p_list.add_argument("--names-only", action="store_true")

    p_move = sub.add_parser("move", help="Move a blob (copy, then delete source)")
    p_move.add_argument("source_container")
    p_move.add_argument("source_blob")
    p_move.add_argument("destination_container")
    p_move.add_argument("destination_blob")
    p_move.add_argument("--meta", action="append", metavar="KEY=VALUE")
    p_move.add_argument("--source-connection", default=None)
    p_move.add_argument("--destination-connection", default=None)

    p_up = sub.add_parser("upload", help="Upload a local file")
    p_up.add_argument("file")
    p_up.add_argument("container")
    p_up.add_argument("blob", nargs="?")

    p_down = sub.add_parser("download", help="Download a blob into a directory")
    p_down.add_argument("container")
    p_down.add_argument("blob")
    p_down.add_argument("--dest", default=".")
    p_down.add_argument("--stream", action="store_true", help="Stream in chunks")

    p_meta = sub.add_parser("set-metadata", help="Merge metadata into a blob")
    p_meta.add_argument("container")
    p_meta.add_argument("blob")
    p_meta.add_argument("--meta", action="append", metavar="KEY=VALUE", required=True)

    return ap


def _report(result: Result) -> int:
    if result.ok:
        return 0
    err = result.error
    print(f"[ERROR] {type(err).__name__}: {err}")
    return 1


async def run(args: argparse.Namespace, container: Container) -> int:
    service = container.get_blob_storage_service()
    conn = args.connection

    try:
        if args.command == "containers":
            r_names = await service.list_containers(conn)
            for name in r_names.value or []:
                print(name)
            return _report(r_names)

        if args.command == "list":
            if args.names_only:
                r_list = await service.list_blob_names(args.container, conn)
                for name in r_list.value or []:
                    print(name)
                return _report(r_list)
            r_entries = await service.list_blobs_paginated(
                args.container,
                include_metadata=args.metadata,
                page_size=args.page_size or container.settings.list_page_size,
                connection=conn,
            )
            if r_entries.ok:
                print(json.dumps([e.to_dict() for e in r_entries.value or []], indent=2))
            return _report(r_entries)

        if args.command == "move":
            r_move = await service.move_blob(
                MoveRequest(
                    source_container=args.source_container,
                    source_blob=args.source_blob,
                    destination_container=args.destination_container,
                    destination_blob=args.destination_blob,
                    metadata=_parse_meta(args.meta) or None,
                    source_connection=args.source_connection or conn,
                    destination_connection=args.destination_connection or conn,
                )
            )
            if r_move.ok:
                print(
                    f"✓ {args.source_container}/{args.source_blob} → "
                    f"{args.destination_container}/{args.destination_blob}"
                )
            return _report(r_move)

        if args.command == "upload":
            path = Path(args.file)
            r_up = await service.upload_blob(
                path.read_bytes(), args.container, args.blob or path.name, conn
            )
            if r_up.ok and r_up.value is not None:
                print(r_up.value.url)
            return _report(r_up)

        if args.command == "download":
            if args.stream:
                r_stream = await service.download_stream_to_file(
                    args.container, args.blob, args.dest, conn
                )
                if r_stream.ok and not r_stream.value:
                    print(f"Blob {args.container}/{args.blob} not found")
                    return 1
                return _report(r_stream)
            r_file = await service.download_to_file(args.container, args.blob, args.dest, conn)
            if r_file.ok:
                if r_file.value is None:
                    print(f"Blob {args.container}/{args.blob} not found")
                    return 1
                print(r_file.value)
            return _report(r_file)

        if args.command == "set-metadata":
            r_meta = await service.add_metadata(
                args.container, args.blob, _parse_meta(args.meta), conn
            )
            if r_meta.ok:
                print(json.dumps(r_meta.value, indent=2, sort_keys=True))
            return _report(r_meta)

        return 2
    finally:
        await container.aclose()


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = AppSettings()
    setup_logging(settings)

    try:
        container = build_container(settings)
    except DomainError as ex:
        print(f"[ERROR] {type(ex).__name__}: {ex}")
        return 1

    try:
        return asyncio.run(run(args, container))
    except argparse.ArgumentTypeError as ex:
        print(f"[ERROR] {ex}")
        return 2
    except OSError as ex:
        print(f"[ERROR] {type(ex).__name__}: {ex}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
