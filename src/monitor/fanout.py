"""Notification fan-out — one log row per recipient, failures isolated."""

from __future__ import annotations

import datetime
from collections.abc import Callable

import structlog

from src.core.types import EntityType
from src.monitor.formatters import build_record
from src.monitor.types import Alert, FanoutResult, Recipient
from src.store.base import MonitorStore, with_timeout
from src.store.exceptions import DuplicateNotificationError

logger = structlog.stdlib.get_logger()

MessageFieldsFn = Callable[[Alert], dict[str, str]]


class NotificationFanout:
    """Writes an alert to every recipient's notification feed.

    - One record per recipient, all sharing the alert's ``type_tag`` so the
      dedup gate suppresses every phrasing together.
    - A failed insert is counted and the next recipient is still tried;
      rows already written are kept.
    - An insert rejected by the dedup index means a concurrent run got
      there first; it is counted as a duplicate, not a failure.
    """

    def __init__(
        self,
        store: MonitorStore,
        entity_type: EntityType,
        message_fields: MessageFieldsFn,
        created_at: datetime.datetime,
        period_bucket: str,
        timeout_secs: float = 15.0,
    ) -> None:
        self._store = store
        self._entity_type = entity_type
        self._message_fields = message_fields
        self._created_at = created_at
        self._period_bucket = period_bucket
        self._timeout_secs = timeout_secs

    async def emit(self, alert: Alert, recipients: list[Recipient]) -> FanoutResult:
        result = FanoutResult()
        fields = self._message_fields(alert)

        for recipient in recipients:
            record = build_record(
                alert,
                recipient,
                fields,
                self._entity_type,
                self._created_at,
                self._period_bucket,
            )
            try:
                await with_timeout(
                    self._store.insert_notification(record),
                    self._timeout_secs,
                    "insert_notification",
                )
            except DuplicateNotificationError:
                result.duplicates += 1
                logger.info(
                    "notification_duplicate_ignored",
                    entity_id=alert.entity_id,
                    type_tag=alert.type_tag,
                    recipient_id=recipient.id,
                )
                continue
            except Exception:
                result.failed += 1
                logger.exception(
                    "notification_insert_failed",
                    entity_id=alert.entity_id,
                    type_tag=alert.type_tag,
                    recipient_id=recipient.id,
                )
                continue
            result.created += 1

        logger.info(
            "alert_fanned_out",
            entity_id=alert.entity_id,
            type_tag=alert.type_tag,
            severity=alert.threshold.severity.name,
            recipients=len(recipients),
            created=result.created,
            failed=result.failed,
            duplicates=result.duplicates,
        )
        return result
