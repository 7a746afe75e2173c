"""Document-expiration monitor — expired, within 7 days, within 30 days."""

from __future__ import annotations

import datetime

import structlog

from src.core.config import DocumentMonitorConfig, Settings, get_settings
from src.core.types import DocumentSubject, EntityType
from src.monitor.formatters import document_fields
from src.monitor.metrics import document_metrics
from src.monitor.recipients import RecipientPolicy
from src.monitor.run import MonitorDefinition, MonitorRun
from src.monitor.thresholds import DOCUMENT_THRESHOLDS
from src.monitor.types import Metric, ObservationWindow, RunSummary, Subject
from src.monitor.windows import Clock, day_range_window, trailing_hours, zoned_clock
from src.store.base import MonitorStore

logger = structlog.stdlib.get_logger()

DOCUMENT_MONITOR = "document_expiration"


async def _load_documents(
    store: MonitorStore, window: ObservationWindow,
) -> list[Subject]:
    docs = await store.read_documents_expiring_between(
        window.start.date(), window.end.date(),
    )
    logger.info("expiring_documents_loaded", count=len(docs))
    if not docs:
        return []

    owner_ids = sorted({d.owner_profile_id for d in docs})
    names = await store.read_profile_names(owner_ids)

    subjects: list[Subject] = []
    for doc in docs:
        owner = names.get(doc.owner_profile_id)
        if owner is None:
            logger.warning(
                "document_owner_missing",
                document_id=doc.id,
                profile_id=doc.owner_profile_id,
            )
            continue
        subjects.append(doc.model_copy(update={"owner_name": owner}))
    return subjects


async def _compute(
    store: MonitorStore,
    subjects: list[Subject],
    window: ObservationWindow,
) -> dict[str, Metric]:
    docs = [s for s in subjects if isinstance(s, DocumentSubject)]
    return document_metrics(docs, window)


def document_monitor(config: DocumentMonitorConfig | None = None) -> MonitorDefinition:
    """Build the document-expiration monitor definition."""
    cfg = config or get_settings().monitors.documents

    def _window(now: datetime.datetime) -> ObservationWindow:
        return day_range_window(now, cfg.lookback_days, cfg.lookahead_days)

    return MonitorDefinition(
        name=DOCUMENT_MONITOR,
        entity_type=EntityType.COLLABORATOR_DOCUMENT,
        thresholds=DOCUMENT_THRESHOLDS,
        observation_window=_window,
        load_subjects=_load_documents,
        compute_metrics=_compute,
        dedup_window=trailing_hours(cfg.dedup_hours),
        recipient_policy=RecipientPolicy.ADMINS_ONLY,
        message_fields=document_fields,
    )


async def check_document_expiration(
    store: MonitorStore,
    settings: Settings | None = None,
    clock: Clock | None = None,
) -> RunSummary:
    """Run the document-expiration monitor once and return its summary."""
    s = settings or get_settings()
    run = MonitorRun(
        document_monitor(s.monitors.documents),
        store,
        max_concurrency=s.monitors.max_concurrency,
        timeout_secs=s.monitors.store_timeout_secs,
        clock=clock or zoned_clock(s.monitors.timezone),
    )
    return await run.execute()
