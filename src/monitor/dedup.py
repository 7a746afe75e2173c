"""Dedup gate — suppresses alerts already sent inside the window."""

from __future__ import annotations

import datetime

import structlog

from src.monitor.windows import DedupWindow
from src.store.base import MonitorStore, with_timeout

logger = structlog.stdlib.get_logger()


class DedupGate:
    """Answers "was this alert already sent?" from the notification log.

    Holds no state of its own; the log is the source of truth, so two runs
    inside the same window see each other's notifications.  The read-then-
    write gap between overlapping runs is closed by the store's unique
    index, not here.
    """

    def __init__(
        self,
        store: MonitorStore,
        window: DedupWindow,
        timeout_secs: float = 15.0,
    ) -> None:
        self._store = store
        self._window = window
        self._timeout_secs = timeout_secs

    @property
    def window(self) -> DedupWindow:
        return self._window

    def window_start(self, now: datetime.datetime) -> datetime.datetime:
        return self._window.start(now)

    def period_bucket(self, now: datetime.datetime) -> str:
        return self._window.bucket(now)

    async def already_notified(
        self,
        entity_id: str,
        type_tag: str,
        window_start: datetime.datetime,
    ) -> bool:
        existing = await with_timeout(
            self._store.existing_notifications_since(type_tag, entity_id, window_start),
            self._timeout_secs,
            "existing_notifications_since",
        )
        if existing:
            logger.debug(
                "alert_already_notified",
                entity_id=entity_id,
                type_tag=type_tag,
                window=self._window.label,
                existing=len(existing),
            )
            return True
        return False
