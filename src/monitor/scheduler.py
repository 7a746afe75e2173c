"""Interval scheduler for monitor runs."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from src.monitor.factory import RunFactory
from src.monitor.run import MonitorRun
from src.monitor.types import RunSummary

logger = structlog.stdlib.get_logger()

SummaryCallback = Callable[[RunSummary], Awaitable[None] | None]


class MonitorScheduler:
    """Background task that runs every monitor at a fixed interval.

    Deployments with an external cron call ``run_once()`` instead.

    Usage::

        scheduler = MonitorScheduler(
            factories=create_run_factories(settings, store),
            interval_secs=settings.scheduler.interval_secs,
        )
        scheduler.on_summary(print_summary)
        await scheduler.start()
        # ...
        await scheduler.stop()
    """

    def __init__(
        self,
        factories: dict[str, RunFactory],
        interval_secs: float = 3600.0,
    ) -> None:
        self._factories = factories
        self._interval_secs = interval_secs
        self._callbacks: list[SummaryCallback] = []
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._current: MonitorRun | None = None
        self._stop = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._running

    def on_summary(self, callback: SummaryCallback) -> None:
        """Register a callback invoked with every run summary."""
        self._callbacks.append(callback)

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._stop.clear()
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        """Stop after the current subject and wait for its summary.

        The run in progress is cancelled cooperatively, so an alert already
        being fanned out reaches all of its recipients and the run still
        reports a summary with ``cancelled`` set.  Monitors not yet started
        in this cycle are skipped.
        """
        self._running = False
        self._stop.set()
        if self._current is not None:
            self._current.cancel()
        if self._task is not None:
            await self._task
            self._task = None

    async def run_once(self) -> list[RunSummary]:
        """Run each monitor once, in order, and return their summaries."""
        summaries: list[RunSummary] = []
        for name, factory in self._factories.items():
            if self._stop.is_set():
                break
            run = factory()
            self._current = run
            try:
                summary = await run.execute()
            finally:
                self._current = None
            if not summary.success:
                logger.error("monitor_unhealthy", monitor=name, error=summary.error)
            summaries.append(summary)
            await self._emit(summary)
        return summaries

    async def _emit(self, summary: RunSummary) -> None:
        for cb in self._callbacks:
            try:
                result = cb(summary)
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                logger.exception("summary_callback_error", monitor=summary.monitor)

    # ── Internal loop ───────────────────────────────────────────

    async def _loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
            except Exception:
                logger.exception("monitor_scheduler_loop_error")
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval_secs)
            except TimeoutError:
                continue
