# =============================================================================
# careerintel/cli/scheduler.py - One-shot scheduler runs
# =============================================================================
#
# Subcommands:
#
#   list   - print the configured periodic job table (config/config.yaml)
#   run    - run one tick of a named job, optionally with another batch size
#   stats  - print the stale-age breakdown of a record collection
#
# Usage examples:
#   python -m careerintel.cli.scheduler list
#   python -m careerintel.cli.scheduler run jobs:process-unprocessed
#   python -m careerintel.cli.scheduler run profiles:refresh-stale --batch-size 10
#   python -m careerintel.cli.scheduler stats profiles
#
# A run opens the record store configured by STORE_BACKEND / STORE_DB_PATH,
# so it works on the same SQLite file as a running server.  Claims are made
# with compare-and-swap, so overlapping with the server's own timer is safe.
# =============================================================================

"""Standalone CLI for the record enrichment scheduler."""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import timedelta
from typing import Any

from careerintel.config.loader import load_config
from careerintel.config.settings import Settings

# Record collection -> build_all() component key.
_SCHEDULER_KEYS = {"jobs": "job_scheduler", "profiles": "profile_scheduler"}


def _print_job_table(app_config: dict[str, Any]) -> int:
    jobs = app_config["scheduler"]["jobs"]
    print(f"{'job':<32} {'interval':>10} {'batch':>6}")
    for name, spec in jobs.items():
        print(f"{name:<32} {spec['interval_seconds']:>9}s {spec['batch_size']:>6}")
    return 0


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_run(args: argparse.Namespace, app_settings: Settings, app_config: dict[str, Any]) -> int:
    from careerintel.main import build_all, close_all

    components = build_all(app_settings, app_config)
    await components["store"].initialize()
    try:
        if args.batch_size is None:
            summary = await components["periodic_runner"].run_now(args.job)
        else:
            collection, _, operation = args.job.partition(":")
            scheduler = components.get(_SCHEDULER_KEYS.get(collection, ""))
            if scheduler is None or operation not in ("process-unprocessed", "refresh-stale"):
                print(f"Error: unknown job {args.job}", file=sys.stderr)
                return 1
            if operation == "process-unprocessed":
                summary = await scheduler.run_batch(args.batch_size)
            else:
                max_age = timedelta(days=app_settings.record_stale_after_days)
                summary = await scheduler.refresh_stale(args.batch_size, max_age)
    finally:
        await close_all(components)

    print(summary.message)
    print(f"  Selected:  {summary.selected}")
    print(f"  Claimed:   {summary.claimed}")
    print(f"  Processed: {summary.processed}")
    print(f"  Failed:    {summary.failed}")
    print(f"  Skipped:   {summary.skipped}")
    return 1 if summary.failed else 0


async def _handle_stats(args: argparse.Namespace, app_settings: Settings, app_config: dict[str, Any]) -> int:
    from careerintel.main import build_all, close_all

    components = build_all(app_settings, app_config)
    scheduler = components[_SCHEDULER_KEYS[args.collection]]
    await components["store"].initialize()
    try:
        stats = await scheduler.stale_stats()
    finally:
        await close_all(components)

    percentages = stats.percentages
    print(f"{args.collection}: {stats.total} records")
    print(f"  Fresh:              {stats.fresh} ({percentages['fresh']}%)")
    print(f"  Older than 3 months: {stats.stale_3_months} ({percentages['stale_3_months']}%)")
    print(f"  Older than 6 months: {stats.stale_6_months} ({percentages['stale_6_months']}%)")
    print(f"  Older than 1 year:   {stats.stale_1_year} ({percentages['stale_1_year']}%)")
    print(f"  Recently refreshed:  {stats.recently_processed}")
    print(f"  With errors:         {stats.with_errors}")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("batch size must be at least 1")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m careerintel.cli.scheduler",
        description="Run career-intel record enrichment jobs from the command line.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Scheduler commands")

    subparsers.add_parser("list", help="Show the configured periodic jobs")

    run_parser = subparsers.add_parser("run", help="Run one tick of a periodic job")
    run_parser.add_argument("job", help="Job name, e.g. jobs:process-unprocessed")
    run_parser.add_argument("--batch-size", type=_positive_int, default=None, help="Override the configured batch size")

    stats_parser = subparsers.add_parser("stats", help="Show record age statistics")
    stats_parser.add_argument("collection", choices=["jobs", "profiles"])

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the scheduler tool."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    app_config = load_config(settings=app_settings)

    if args.command == "list":
        exit_code = _print_job_table(app_config)
    elif args.command == "run":
        exit_code = asyncio.run(_handle_run(args, app_settings, app_config))
    elif args.command == "stats":
        exit_code = asyncio.run(_handle_stats(args, app_settings, app_config))
    else:
        parser.print_help()
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
