"""Main CLI entry point."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from govcon_ingest.config import AppConfig, load_config
from govcon_ingest.errors import ConfigError, OrchestrationFault
from govcon_ingest.ingest import RunCoordinator
from govcon_ingest.logging_config import setup_logging
from govcon_ingest.scheduler import IngestionScheduler
from govcon_ingest.sources import AdapterRegistry, SourceAdapter
from govcon_ingest.store import OpportunityStore

logger = logging.getLogger(__name__)

ALL_SOURCES = "all"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="govcon-ingest",
        description="Ingest and reconcile federal contracting opportunities and awards",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("govcon_ingest.yaml"),
        help="Path to config YAML (default: govcon_ingest.yaml; missing file uses defaults)",
    )
    parser.add_argument("--log-level", help="Override config log level (e.g. INFO, DEBUG)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # ingest
    ingest_parser = subparsers.add_parser("ingest", help="Run ingestion for one source or all")
    ingest_parser.add_argument(
        "--source",
        default=ALL_SOURCES,
        choices=AdapterRegistry.available_sources() + [ALL_SOURCES],
        help="Source to ingest from (default: all enabled sources)",
    )
    ingest_parser.add_argument(
        "--kind",
        default=None,
        help="Only partitions of this kind (e.g. sources-sought, keyword for sam; solicitations for sbir)",
    )
    ingest_parser.add_argument("--db", type=Path, default=None, help="Override SQLite database path")

    # store
    store_parser = subparsers.add_parser("store", help="Query the canonical opportunity store")
    store_parser.add_argument("action", choices=["count", "list", "get"], help="What to show")
    store_parser.add_argument("--db", type=Path, default=None, help="Override SQLite database path")
    store_parser.add_argument("--source", default=None, help="Only records last observed from this source")
    store_parser.add_argument("--key", default=None, help="Natural key (for get)")

    # sources
    subparsers.add_parser("sources", help="List adapters and their partitions")

    # schedule
    schedule_parser = subparsers.add_parser("schedule", help="Run ingestion on an interval in the foreground")
    schedule_parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Seconds between runs (default: schedule_interval_seconds from config)",
    )
    schedule_parser.add_argument(
        "--no-startup",
        action="store_true",
        help="Skip the startup run of startup_sources",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Parse args and dispatch to subcommands."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 2

    setup_logging(args.log_level or config.log_level)

    if args.command == "ingest":
        return _run_ingest(args, config)
    if args.command == "store":
        return _run_store(args, config)
    if args.command == "sources":
        return _run_sources(config)
    if args.command == "schedule":
        return _run_schedule(args, config)
    parser.print_help()
    return 2


def _build_adapters(config: AppConfig, source: str = ALL_SOURCES) -> dict[str, SourceAdapter]:
    """Enabled adapters for `all`; a named source is built even when disabled."""
    if source == ALL_SOURCES:
        return AdapterRegistry.build_enabled(config)
    return {source: AdapterRegistry.get(source, config)}


def _open_store(args: argparse.Namespace, config: AppConfig) -> OpportunityStore:
    return OpportunityStore(args.db or config.db_path)


def _run_ingest(args: argparse.Namespace, config: AppConfig) -> int:
    """Run ingest command."""
    if args.kind and args.source == ALL_SOURCES:
        print("--kind requires --source", file=sys.stderr)
        return 2
    store = _open_store(args, config)
    coordinator = RunCoordinator(_build_adapters(config, args.source), store, config.ingestion)
    try:
        if args.source == ALL_SOURCES:
            result = coordinator.run_all()
        else:
            result = coordinator.run_for_adapter(args.source, kind=args.kind)
    except OrchestrationFault as e:
        logger.error("Ingestion aborted: %s", e)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    print(json.dumps(result.model_dump(mode="json"), indent=2))
    return 0 if result.failed_partitions == 0 else 1


def _run_store(args: argparse.Namespace, config: AppConfig) -> int:
    """Run store command."""
    store = _open_store(args, config)
    if args.action == "count":
        print(store.count(args.source))
        return 0
    if args.action == "get":
        if not args.key:
            print("store get requires --key", file=sys.stderr)
            return 2
        record = store.find_by_natural_key(args.key)
        if record is None:
            print(f"No record for {args.key}", file=sys.stderr)
            return 1
        print(json.dumps(record.model_dump(mode="json"), indent=2, default=str))
        return 0
    records = store.get_by_source(args.source) if args.source else store.get_all()
    print(json.dumps([r.model_dump(mode="json") for r in records], indent=2, default=str))
    return 0


def _run_sources(config: AppConfig) -> int:
    """List every registered adapter, whether it is enabled, and its partitions."""
    enabled = AdapterRegistry.build_enabled(config)
    for source_id in AdapterRegistry.available_sources():
        adapter = enabled.get(source_id) or AdapterRegistry.get(source_id, config)
        state = "enabled" if source_id in enabled else "disabled"
        partitions = ", ".join(adapter.list_partitions()) or "-"
        print(f"{source_id} ({state}): {partitions}")
    return 0


def _run_schedule(args: argparse.Namespace, config: AppConfig) -> int:
    """Run the scheduler until interrupted."""
    store = OpportunityStore(config.db_path)
    coordinator = RunCoordinator(_build_adapters(config), store, config.ingestion)
    scheduler = IngestionScheduler(
        coordinator,
        interval_seconds=args.interval or config.schedule_interval_seconds,
        startup_sources=config.startup_sources,
    )
    if not args.no_startup:
        scheduler.run_startup()
    scheduler.start()
    try:
        scheduler.wait()
    except KeyboardInterrupt:
        logger.info("Interrupted; stopping scheduler")
    finally:
        scheduler.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
