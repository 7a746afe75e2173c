"""Convenience factory for wiring the store and monitor runs."""

from __future__ import annotations

from collections.abc import Callable

from src.core.config import Settings, StoreConfig
from src.monitor.credit import CREDIT_MONITOR, credit_monitor
from src.monitor.documents import DOCUMENT_MONITOR, document_monitor
from src.monitor.run import MonitorDefinition, MonitorRun
from src.monitor.windows import Clock, zoned_clock
from src.store.base import MonitorStore
from src.store.memory import InMemoryStore
from src.store.supabase import SupabaseStore

RunFactory = Callable[[], MonitorRun]

MONITOR_NAMES = (CREDIT_MONITOR, DOCUMENT_MONITOR)


def create_store(config: StoreConfig, approved_statuses: list[str] | None = None) -> MonitorStore:
    """Build the configured store backend (not yet connected)."""
    if config.backend == "supabase":
        return SupabaseStore(config, approved_statuses=approved_statuses)
    if config.backend == "memory":
        return InMemoryStore()
    raise ValueError(f"unknown store backend: {config.backend!r}")


def enabled_definitions(settings: Settings) -> list[MonitorDefinition]:
    """Definitions for every monitor enabled in *settings*, credit first."""
    definitions: list[MonitorDefinition] = []
    if settings.monitors.credit.enabled:
        definitions.append(credit_monitor(settings.monitors.credit))
    if settings.monitors.documents.enabled:
        definitions.append(document_monitor(settings.monitors.documents))
    return definitions


def create_run_factories(
    settings: Settings,
    store: MonitorStore,
    only: list[str] | None = None,
    clock: Clock | None = None,
) -> dict[str, RunFactory]:
    """Map monitor name → callable producing a fresh MonitorRun.

    Runs are single-use, so schedulers hold factories rather than runs.

    Args:
        only: Restrict to these monitor names (``credit_limits``,
            ``document_expiration``). Disabled monitors are never included.
    """
    run_clock = clock or zoned_clock(settings.monitors.timezone)
    factories: dict[str, RunFactory] = {}

    for definition in enabled_definitions(settings):
        if only is not None and definition.name not in only:
            continue

        def _factory(defn: MonitorDefinition = definition) -> MonitorRun:
            return MonitorRun(
                defn,
                store,
                max_concurrency=settings.monitors.max_concurrency,
                timeout_secs=settings.monitors.store_timeout_secs,
                clock=run_clock,
            )

        factories[definition.name] = _factory

    return factories
