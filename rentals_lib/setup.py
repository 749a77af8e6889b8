"""Command-line helpers for the rentals store.

Provides argument parsing and the non-server commands (seeding, storage
statistics and cleanup, clearing and printing a config template). The
server command itself lives in the `rentals.py` entry script.
"""
from __future__ import annotations
import argparse
import asyncio
import json
import sys
from dataclasses import asdict, fields
from pathlib import Path
from typing import Iterable, Optional

import yaml

from rentals_lib.config import Config, DEFAULT_CONFIG_PATH, load_config, write_template


def get_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="rentals", description="Rentals store server and maintenance commands")
    p.add_argument("--config", type=Path, default=None, help=f"Path to the YAML config (default {DEFAULT_CONFIG_PATH})")
    sub = p.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)

    seed = sub.add_parser("seed", help="Seed default owners with approved applications and listings")
    seed.add_argument("--barangay", action="append", dest="barangays", help="Barangay to seed (repeatable)")
    seed.add_argument("--owners-per-barangay", type=int, default=None)

    sub.add_parser("stats", help="Print storage statistics as JSON")
    sub.add_parser("integrity", help="Check owner applications against user records")
    cleanup = sub.add_parser("cleanup", help="Trim old listings and drop orphaned photos")
    cleanup.add_argument("--published-keep", type=int, default=None)
    cleanup.add_argument("--draft-keep", type=int, default=None)
    sub.add_parser("clear", help="Delete every collection (requires allow_data_clear)")
    sub.add_parser("print-template", help="Print the default YAML config to stdout")
    sub.add_parser("write-template", help="Write the default YAML config to --config")
    return p


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = get_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.command is None:
        args.command = "serve"
        args.host, args.port = "0.0.0.0", 8000
    return args


def print_template(out=None) -> None:
    out = out or sys.stdout
    defaults = {f.name: getattr(Config(), f.name) for f in fields(Config)}
    yaml.safe_dump(defaults, out, sort_keys=False)


async def _seed(config: Config, args: argparse.Namespace) -> int:
    from rentals_lib.main import build_container
    from rentals_lib.owners.seeding import BARANGAYS, OWNER_NAMES
    container = build_container(config)
    seeder = container.get("owner_seeder")
    report = await seeder.seed(
        args.barangays or BARANGAYS,
        args.owners_per_barangay or len(OWNER_NAMES),
    )
    result = asdict(report)
    for owner in result["owners"]:
        owner.pop("password", None)
    print(json.dumps(result, indent=2))
    return 0 if report.success else 1


async def _stats(config: Config) -> int:
    from rentals_lib.main import build_container
    from rentals_lib.admin.maintenance import storage_stats
    store = build_container(config).get("collection_store")
    print(json.dumps(await storage_stats(store), indent=2))
    return 0


async def _integrity(config: Config) -> int:
    from rentals_lib.main import build_container
    from rentals_lib.admin.maintenance import verify_integrity
    store = build_container(config).get("collection_store")
    result = await verify_integrity(store)
    print(json.dumps(result, indent=2))
    return 0 if result["success"] else 1


async def _cleanup(config: Config, args: argparse.Namespace) -> int:
    from rentals_lib.main import build_container
    from rentals_lib.admin import maintenance
    store = build_container(config).get("collection_store")
    result = await maintenance.cleanup_storage(
        store,
        published_keep=maintenance.PUBLISHED_KEEP if args.published_keep is None else args.published_keep,
        draft_keep=maintenance.DRAFT_KEEP if args.draft_keep is None else args.draft_keep,
    )
    print(json.dumps(result, indent=2))
    return 0


async def _clear(config: Config) -> int:
    from rentals_lib.main import build_container
    container = build_container(config)
    if not await container.get("collection_store").clear_all():
        print("Data clearing is disabled; set allow_data_clear or RENTALS_ALLOW_DATA_CLEAR=1", file=sys.stderr)
        return 2
    await container.get("auth_service").clear_all_users()
    return 0


def run_command(args: argparse.Namespace, config: Optional[Config] = None) -> int:
    """Run a non-server command and return the process exit code."""
    if args.command == "print-template":
        print_template()
        return 0
    if args.command == "write-template":
        path = write_template(args.config)
        print(f"Wrote config template to {path}")
        return 0

    config = config or load_config(args.config)
    if args.command == "seed":
        return asyncio.run(_seed(config, args))
    if args.command == "stats":
        return asyncio.run(_stats(config))
    if args.command == "integrity":
        return asyncio.run(_integrity(config))
    if args.command == "cleanup":
        return asyncio.run(_cleanup(config, args))
    if args.command == "clear":
        return asyncio.run(_clear(config))
    raise ValueError(f"Unknown command: {args.command}")
