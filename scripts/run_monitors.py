#!/usr/bin/env python3
"""Run the threshold monitors once (for cron) or on an interval.

Usage::

    # Run every enabled monitor once
    python scripts/run_monitors.py

    # Only the credit-limit monitor, custom config
    python scripts/run_monitors.py --monitor credit_limits --config config/settings.yaml

    # Keep running, every 30 minutes
    python scripts/run_monitors.py --every 1800

Each run summary is printed to stdout as one JSON line.  The exit code is 1
when any run reported ``success: false``.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import signal
import sys

import structlog

from src.core.config import load_settings
from src.core.logging import setup_logging
from src.monitor.factory import MONITOR_NAMES, create_run_factories, create_store
from src.monitor.scheduler import MonitorScheduler
from src.monitor.types import RunSummary
from src.store.supabase import SupabaseStore

logger = structlog.get_logger(__name__)


def _print_summary(summary: RunSummary) -> None:
    print(json.dumps(summary.to_payload(), ensure_ascii=False), flush=True)


async def run(args: argparse.Namespace) -> int:
    """Wire the store and monitors, run them, and report."""
    settings = load_settings(args.config)
    setup_logging(level=args.log_level)

    store = create_store(
        settings.store,
        approved_statuses=settings.monitors.credit.approved_statuses,
    )
    if isinstance(store, SupabaseStore):
        await store.connect()

    only = [args.monitor] if args.monitor else None
    factories = create_run_factories(settings, store, only=only)
    if not factories:
        logger.error("no_monitors_enabled", requested=args.monitor)
        print(
            "No monitors enabled. Enable at least one in config/settings.yaml "
            "(monitors.credit.enabled or monitors.documents.enabled).",
            file=sys.stderr,
        )
        await store.close()
        return 1

    scheduler = MonitorScheduler(
        factories=factories,
        interval_secs=args.every or settings.scheduler.interval_secs,
    )
    scheduler.on_summary(_print_summary)

    if not args.every:
        try:
            summaries = await scheduler.run_once()
        finally:
            await store.close()
        return 0 if all(s.success for s in summaries) else 1

    # ── Interval mode: run until signalled ───────────────────────
    await scheduler.start()
    logger.info("monitor_scheduler_running", monitors=list(factories), every=args.every)

    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("shutdown_signal_received")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows: signal handlers not supported on ProactorEventLoop
            pass

    try:
        await stop_event.wait()
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt")

    await scheduler.stop()
    await store.close()
    logger.info("monitor_scheduler_stopped")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Check credit limits and document expirations, notify admins.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--monitor",
        choices=MONITOR_NAMES,
        default=None,
        help="Run a single monitor (default: every enabled monitor)",
    )
    parser.add_argument(
        "--every",
        type=float,
        default=None,
        help="Repeat every N seconds instead of running once",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override: DEBUG, INFO, WARNING, ERROR",
    )
    args = parser.parse_args()

    code = asyncio.run(run(args))
    sys.exit(code)


if __name__ == "__main__":
    main()
