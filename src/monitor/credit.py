"""Credit-limit monitor — alerts at 80/90/100% of the monthly limit."""

from __future__ import annotations

import structlog

from src.core.config import CreditMonitorConfig, Settings, get_settings
from src.core.types import CreditSubject, EntityType
from src.monitor.formatters import credit_fields
from src.monitor.metrics import credit_metrics
from src.monitor.recipients import RecipientPolicy
from src.monitor.run import MonitorDefinition, MonitorRun
from src.monitor.thresholds import CREDIT_THRESHOLDS
from src.monitor.types import Metric, ObservationWindow, RunSummary, Subject
from src.monitor.windows import Clock, calendar_month, month_window, zoned_clock
from src.store.base import MonitorStore

logger = structlog.stdlib.get_logger()

CREDIT_MONITOR = "credit_limits"


def credit_monitor(config: CreditMonitorConfig | None = None) -> MonitorDefinition:
    """Build the credit-limit monitor definition."""
    cfg = config or get_settings().monitors.credit
    statuses = tuple(cfg.approved_statuses)

    async def _load(store: MonitorStore, window: ObservationWindow) -> list[Subject]:
        subjects: list[Subject] = list(await store.read_subjects_with_limit())
        logger.info("credit_subjects_loaded", count=len(subjects))
        return subjects

    async def _compute(
        store: MonitorStore,
        subjects: list[Subject],
        window: ObservationWindow,
    ) -> dict[str, Metric]:
        people = [
            s for s in subjects
            if isinstance(s, CreditSubject) and s.limit_amount > 0
        ]
        if not people:
            return {}
        usage = await store.read_approved_usage(
            [p.id for p in people], window.start, window.end,
        )
        return credit_metrics(people, usage, window, statuses)

    return MonitorDefinition(
        name=CREDIT_MONITOR,
        entity_type=EntityType.CREDIT_LIMIT,
        thresholds=CREDIT_THRESHOLDS,
        observation_window=month_window,
        load_subjects=_load,
        compute_metrics=_compute,
        dedup_window=calendar_month(),
        recipient_policy=RecipientPolicy.SUBJECT_AND_ADMINS,
        message_fields=credit_fields,
    )


async def check_credit_limits(
    store: MonitorStore,
    settings: Settings | None = None,
    clock: Clock | None = None,
) -> RunSummary:
    """Run the credit-limit monitor once and return its summary."""
    s = settings or get_settings()
    run = MonitorRun(
        credit_monitor(s.monitors.credit),
        store,
        max_concurrency=s.monitors.max_concurrency,
        timeout_secs=s.monitors.store_timeout_secs,
        clock=clock or zoned_clock(s.monitors.timezone),
    )
    return await run.execute()
