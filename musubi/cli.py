"""Command-line interface for the sync manager.

Usage:
    musubi status                       # Status of Todoist, Things and Obsidian
    musubi health                       # Run the health script
    musubi sync                         # Run a three-way sync and wait for it
    musubi sync --background            # Start a three-way sync and return
    musubi dedupe                       # Remove duplicate tasks
    musubi metrics --hours 168          # Worker sync metrics for the last week
    musubi tasks                        # Todoist inbox as seen by the worker
    musubi configure --worker-url URL   # Update the saved configuration

Results are printed to stdout as JSON.
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from typing import Any

import httpx
from dotenv import load_dotenv

from .core.config import ConfigManager, Settings
from .core.orchestrator import SyncOrchestrator
from .utils.errors import MusubiError
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

METRICS_WINDOWS = (1, 24, 168)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        prog="musubi",
        description="Check and drive Todoist / Things / Obsidian task sync.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Also log to stderr",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("status", help="Show platform status")
    commands.add_parser("health", help="Run the health check script")

    sync = commands.add_parser("sync", help="Run the three-way sync script")
    sync.add_argument(
        "--background",
        action="store_true",
        help="Start the sync in the background and return immediately",
    )

    commands.add_parser("dedupe", help="Run the duplicate cleanup script")

    metrics = commands.add_parser("metrics", help="Show worker sync metrics")
    metrics.add_argument(
        "--hours",
        type=int,
        default=24,
        help=f"Time window in hours (the dashboard uses {', '.join(map(str, METRICS_WINDOWS))})",
    )

    commands.add_parser("tasks", help="List the Todoist inbox from the worker")

    configure = commands.add_parser("configure", help="Update the saved configuration")
    configure.add_argument("--worker-url", help="Sync worker URL (empty string disables it)")
    configure.add_argument("--api-token", help="Todoist API token")
    configure.add_argument(
        "--auto-sync",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable or disable auto-sync",
    )
    configure.add_argument("--interval-ms", type=int, help="Auto-sync interval in milliseconds")
    configure.add_argument("--scripts-dir", help="Directory holding the sync scripts")

    return parser


def _configure(manager: ConfigManager, args: argparse.Namespace) -> None:
    manager.update(
        api={"worker_url": args.worker_url, "api_token": args.api_token},
        sync={"auto_sync": args.auto_sync, "interval_ms": args.interval_ms},
        paths={"scripts_dir": args.scripts_dir},
    )
    print(f"Saved configuration to {manager.config_path}")


async def _dispatch(orchestrator: SyncOrchestrator, args: argparse.Namespace) -> int:
    """Run one subcommand against an initialised orchestrator."""
    if args.command == "status":
        status = await orchestrator.get_status()
        _print_json(status.to_dict())

    elif args.command == "health":
        health = await orchestrator.check_health()
        _print_json({"isHealthy": health.is_healthy, "issues": health.issues})

    elif args.command == "sync":
        if args.background:
            orchestrator.trigger_background_sync()
            _print_json({"started": True})
        else:
            result = await orchestrator.perform_three_way_sync()
            _print_json(asdict(result))

    elif args.command == "dedupe":
        cleanup = await orchestrator.clean_duplicates()
        _print_json(asdict(cleanup))

    elif args.command == "metrics":
        metrics = await orchestrator.get_metrics(args.hours)
        if metrics is None:
            print("No worker URL configured; metrics unavailable.")
        else:
            report = metrics.model_dump(mode="json", by_alias=True)
            report["summary"] = {
                "successPercent": metrics.success_percent(),
                "topTypes": [
                    {"type": name, "count": count} for name, count in metrics.top_types()
                ],
            }
            _print_json(report)

    elif args.command == "tasks":
        tasks = await orchestrator.get_inbox_tasks()
        _print_json([task.model_dump(exclude_none=True) for task in tasks])

    return 0


async def main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    """Parse arguments and run the requested command.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    settings = settings or Settings()
    setup_logging(
        level=settings.log_level,
        log_file=settings.get_log_file("musubi"),
        console=args.verbose,
    )

    manager = ConfigManager(settings.config_path, default_worker_url=settings.default_worker_url)
    manager.load()

    try:
        if args.command == "configure":
            _configure(manager, args)
            return 0

        orchestrator = SyncOrchestrator(manager, settings=settings)
        await orchestrator.init()
        try:
            return await _dispatch(orchestrator, args)
        finally:
            await orchestrator.close()

    except (MusubiError, httpx.HTTPError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
