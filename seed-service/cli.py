#!/usr/bin/env python3
"""
Command line entry point.

Usage:
    python cli.py seed                      # all regions, one after another
    python cli.py seed --region us-west-1
    python cli.py count
    python cli.py serve --port 8001
"""

import argparse
import asyncio
import logging
import sys

from config import configure_logging, seed_settings_from_config, server_port
from regions import RegionRegistry, UnknownRegionError
from seeder import SeedingOrchestrator
from storage import StorageError

logger = logging.getLogger(__name__)


def cmd_seed(registry: RegionRegistry, args) -> int:
    orchestrator = SeedingOrchestrator(registry, seed_settings_from_config())
    codes = args.region or None
    summaries = asyncio.run(orchestrator.seed_all(codes))

    for s in summaries:
        phases = ", ".join(f"{p.kind}={p.records:,} ({p.elapsed_s:.1f}s)" for p in s.phases)
        print(f"{s.region}: {s.total_records:,} records in {s.elapsed_s:.1f}s [{phases}]")
    return 0


def cmd_count(registry: RegionRegistry, args) -> int:
    orchestrator = SeedingOrchestrator(registry, seed_settings_from_config())
    for code in args.region or registry.codes:
        print(f"{code}: {orchestrator.record_count(code):,} users")
    return 0


def cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run("app:app", host=args.host, port=args.port or server_port(), log_level="info")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Regional database seeding demo")
    sub = parser.add_subparsers(dest="command", required=True)

    seed = sub.add_parser("seed", help="Seed regions with synthetic data")
    seed.add_argument("--region", action="append", help="Region code (repeatable, default: all)")

    count = sub.add_parser("count", help="Show users row count per region")
    count.add_argument("--region", action="append", help="Region code (repeatable, default: all)")

    serve = sub.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=None)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    if args.command == "serve":
        return cmd_serve(args)

    registry = RegionRegistry.from_config()
    try:
        if args.command == "seed":
            return cmd_seed(registry, args)
        return cmd_count(registry, args)
    except (UnknownRegionError, StorageError) as e:
        logger.error(str(e))
        return 1
    finally:
        registry.close()


if __name__ == "__main__":
    sys.exit(main())
