"""Abstract store interface consumed by the monitors."""

from __future__ import annotations

import abc
import asyncio
import datetime
from collections.abc import Awaitable
from typing import TypeVar

from src.core.types import CreditSubject, DocumentSubject, NotificationRecord, UsageRow
from src.store.exceptions import StoreTimeoutError

T = TypeVar("T")


class MonitorStore(abc.ABC):
    """Read access to subjects and append access to the notification log."""

    @abc.abstractmethod
    async def read_subjects_with_limit(self) -> list[CreditSubject]:
        """Collaborators with a positive monthly credit limit."""

    @abc.abstractmethod
    async def read_approved_usage(
        self,
        subject_ids: list[str],
        start: datetime.datetime,
        end: datetime.datetime,
    ) -> list[UsageRow]:
        """Approved/completed requests created within ``[start, end]``."""

    @abc.abstractmethod
    async def read_documents_expiring_between(
        self,
        start: datetime.date,
        end: datetime.date,
    ) -> list[DocumentSubject]:
        """Documents whose expiration date lies within ``[start, end]``."""

    @abc.abstractmethod
    async def read_administrator_ids(self) -> list[str]:
        """User ids currently holding the admin role."""

    @abc.abstractmethod
    async def read_profile_names(self, ids: list[str]) -> dict[str, str]:
        """Map profile id → full name. Unknown ids are omitted."""

    @abc.abstractmethod
    async def existing_notifications_since(
        self,
        type_tag: str,
        entity_id: str,
        since: datetime.datetime,
    ) -> list[NotificationRecord]:
        """Notifications for ``(entity_id, type_tag)`` created at or after *since*."""

    @abc.abstractmethod
    async def insert_notification(
        self, record: NotificationRecord,
    ) -> NotificationRecord:
        """Append a notification.

        Raises:
            DuplicateNotificationError: the dedup index already holds an
                equivalent row for this recipient and period.
            StoreError: any other write failure.
        """

    async def close(self) -> None:
        """Release resources (HTTP clients, etc.)."""


async def with_timeout(aw: Awaitable[T], timeout_secs: float, op: str) -> T:
    """Await *aw*, converting a timeout into StoreTimeoutError."""
    try:
        return await asyncio.wait_for(aw, timeout=timeout_secs)
    except TimeoutError as exc:
        raise StoreTimeoutError(f"{op} timed out after {timeout_secs}s") from exc
