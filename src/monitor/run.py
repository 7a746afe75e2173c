"""MonitorRun — one batch execution of a threshold monitor."""

from __future__ import annotations

import asyncio
import datetime
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar

import structlog

from src.core.types import EntityType
from src.monitor.dedup import DedupGate
from src.monitor.fanout import MessageFieldsFn, NotificationFanout
from src.monitor.recipients import RecipientPolicy, RecipientResolver
from src.monitor.thresholds import classify
from src.monitor.types import (
    Alert,
    Metric,
    ObservationWindow,
    Recipient,
    RunState,
    RunSummary,
    Subject,
    Threshold,
)
from src.monitor.windows import Clock, DedupWindow, zoned_clock
from src.store.base import MonitorStore, with_timeout

logger = structlog.stdlib.get_logger()

T = TypeVar("T")
R = TypeVar("R")

SubjectLoader = Callable[[MonitorStore, ObservationWindow], Awaitable[list[Subject]]]
MetricComputer = Callable[
    [MonitorStore, list[Subject], ObservationWindow], Awaitable[dict[str, Metric]],
]
WindowFn = Callable[[datetime.datetime], ObservationWindow]


@dataclass(frozen=True)
class MonitorDefinition:
    """Everything that distinguishes one monitor from another."""

    name: str
    entity_type: EntityType
    thresholds: tuple[Threshold, ...]
    observation_window: WindowFn
    load_subjects: SubjectLoader
    compute_metrics: MetricComputer
    dedup_window: DedupWindow
    recipient_policy: RecipientPolicy
    message_fields: MessageFieldsFn


class MonitorRun:
    """Drives a single run through its phases and returns a summary.

    Usage::

        run = MonitorRun(credit_monitor(cfg), store)
        summary = await run.execute()
        if not summary.success:
            ...  # scheduler-level alert

    A run instance is single-use.  Subjects are processed concurrently up
    to *max_concurrency*; ``cancel()`` stops the run before the next
    subject, keeping notifications already written.
    """

    def __init__(
        self,
        definition: MonitorDefinition,
        store: MonitorStore,
        *,
        max_concurrency: int = 8,
        timeout_secs: float = 15.0,
        clock: Clock | None = None,
    ) -> None:
        self._definition = definition
        self._store = store
        self._max_concurrency = max(1, max_concurrency)
        self._timeout_secs = timeout_secs
        self._clock = clock or zoned_clock()
        self._state = RunState.PENDING
        self._cancel = asyncio.Event()
        self._log = logger.bind(monitor=definition.name)

    @property
    def name(self) -> str:
        return self._definition.name

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        """Request cooperative cancellation before the next subject."""
        self._cancel.set()

    async def execute(self) -> RunSummary:
        if self._state != RunState.PENDING:
            raise RuntimeError(f"monitor run already {self._state}")

        defn = self._definition
        now = self._clock()
        summary = RunSummary(monitor=defn.name, started_at=now)
        self._log.info("monitor_run_started", at=now.isoformat())

        # ── Load + compute (fatal on failure) ───────────────────
        try:
            self._transition(RunState.LOADING_SUBJECTS)
            window = defn.observation_window(now)
            subjects = await with_timeout(
                defn.load_subjects(self._store, window),
                self._timeout_secs,
                "load_subjects",
            )
            summary.subjects_checked = len(subjects)

            self._transition(RunState.COMPUTING_METRICS)
            metrics = await with_timeout(
                defn.compute_metrics(self._store, subjects, window),
                self._timeout_secs,
                "compute_metrics",
            )
        except Exception as exc:
            return self._fail(summary, exc)

        # ── Classify + dedup ────────────────────────────────────
        self._transition(RunState.CLASSIFYING_AND_FILTERING)
        alerts = self._classify(subjects, metrics)

        gate = DedupGate(self._store, defn.dedup_window, self._timeout_secs)
        window_start = gate.window_start(now)

        async def _check(alert: Alert) -> Alert | None:
            try:
                notified = await gate.already_notified(
                    alert.entity_id, alert.type_tag, window_start,
                )
            except Exception:
                summary.subjects_failed += 1
                self._log.exception(
                    "dedup_check_failed",
                    entity_id=alert.entity_id,
                    type_tag=alert.type_tag,
                )
                return None
            if notified:
                summary.alerts_suppressed += 1
                return None
            return alert

        pending = [a for a in await self._map_bounded(alerts, _check) if a is not None]

        # ── Resolve recipients ──────────────────────────────────
        self._transition(RunState.RESOLVING_RECIPIENTS)
        resolver = RecipientResolver(
            self._store, defn.recipient_policy, self._timeout_secs,
        )

        async def _resolve(alert: Alert) -> tuple[Alert, list[Recipient]] | None:
            try:
                recipients = await resolver.resolve(alert.subject)
            except Exception:
                summary.subjects_failed += 1
                self._log.exception(
                    "recipient_resolution_failed", entity_id=alert.entity_id,
                )
                return None
            if not recipients:
                self._log.warning(
                    "alert_has_no_recipients",
                    entity_id=alert.entity_id,
                    type_tag=alert.type_tag,
                )
                return None
            return alert, recipients

        routed = [r for r in await self._map_bounded(pending, _resolve) if r is not None]

        # ── Fan out ─────────────────────────────────────────────
        self._transition(RunState.FANNING_OUT)
        fanout = NotificationFanout(
            self._store,
            defn.entity_type,
            defn.message_fields,
            created_at=now,
            period_bucket=gate.period_bucket(now),
            timeout_secs=self._timeout_secs,
        )

        async def _emit(item: tuple[Alert, list[Recipient]]) -> None:
            alert, recipients = item
            try:
                result = await fanout.emit(alert, recipients)
            except Exception:
                summary.subjects_failed += 1
                summary.notifications_failed += len(recipients)
                self._log.exception("fanout_failed", entity_id=alert.entity_id)
                return
            summary.notifications_created += result.created
            summary.notifications_failed += result.failed
            summary.duplicates_ignored += result.duplicates

        await self._map_bounded(routed, _emit)

        self._transition(RunState.COMPLETED)
        summary.cancelled = self.cancelled
        summary.finished_at = self._clock()
        self._log.info(
            "monitor_run_completed",
            subjects_checked=summary.subjects_checked,
            alerts=len(alerts),
            suppressed=summary.alerts_suppressed,
            notifications_created=summary.notifications_created,
            notifications_failed=summary.notifications_failed,
            duplicates_ignored=summary.duplicates_ignored,
            subjects_failed=summary.subjects_failed,
            cancelled=summary.cancelled,
        )
        return summary

    # ── Internal ────────────────────────────────────────────────

    def _classify(
        self, subjects: Sequence[Subject], metrics: dict[str, Metric],
    ) -> list[Alert]:
        alerts: list[Alert] = []
        for subject in subjects:
            metric = metrics.get(subject.id)
            if metric is None:
                continue
            threshold = classify(metric.value, self._definition.thresholds)
            if threshold is None:
                continue
            self._log.info(
                "threshold_reached",
                entity_id=subject.id,
                type_tag=threshold.type_tag,
                value=str(metric.value),
            )
            alerts.append(Alert(subject=subject, metric=metric, threshold=threshold))
        return alerts

    async def _map_bounded(
        self,
        items: Sequence[T],
        fn: Callable[[T], Awaitable[R]],
    ) -> list[R | None]:
        """Apply *fn* to every item with bounded concurrency.

        Items reached after ``cancel()`` are skipped and map to None.
        """
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _one(item: T) -> R | None:
            async with semaphore:
                if self._cancel.is_set():
                    return None
                return await fn(item)

        return list(await asyncio.gather(*(_one(item) for item in items)))

    def _transition(self, state: RunState) -> None:
        self._log.debug("monitor_run_state", previous=self._state, state=state)
        self._state = state

    def _fail(self, summary: RunSummary, exc: Exception) -> RunSummary:
        failed_in = self._state
        self._state = RunState.FAILED
        summary.success = False
        summary.error = str(exc) or type(exc).__name__
        summary.finished_at = self._clock()
        self._log.exception(
            "monitor_run_failed",
            phase=failed_in,
            error=summary.error,
        )
        return summary
