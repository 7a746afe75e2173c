"""In-memory store for dry runs and tests.

Mirrors the table layout of the hosted store and enforces the same
notification dedup index on ``(recipient_id, entity_id, type_tag,
period_bucket)``.  Reads and inserts can be made to fail or stall so that
error paths can be exercised without a network.
"""

from __future__ import annotations

import asyncio
import datetime
from dataclasses import dataclass, field
from decimal import Decimal

from src.core.types import CreditSubject, DocumentSubject, NotificationRecord, UsageRow
from src.store.base import MonitorStore
from src.store.exceptions import DataSourceError, DuplicateNotificationError, StoreError

_DedupKey = tuple[str, str, str, str]


@dataclass
class ProfileRow:
    """A collaborator profile as stored in ``profiles``."""

    id: str
    full_name: str
    credit_limit: Decimal | None = None


@dataclass
class FailurePlan:
    """Failures to inject, keyed by store operation name."""

    read_errors: set[str] = field(default_factory=set)
    insert_errors_for: set[str] = field(default_factory=set)
    delays_secs: dict[str, float] = field(default_factory=dict)


class InMemoryStore(MonitorStore):
    """Drop-in replacement for the hosted store.

    Usage::

        store = InMemoryStore()
        store.add_profile("u1", "Ana", credit_limit=Decimal("1000"))
        store.add_usage(UsageRow(subject_id="u1", amount=Decimal("950"), ...))
        store.add_admin("admin1")

        summary = await check_credit_limits(store, settings)
        store.notifications  # rows created by the run
    """

    def __init__(self, failures: FailurePlan | None = None) -> None:
        self.failures = failures or FailurePlan()
        self._profiles: dict[str, ProfileRow] = {}
        self._usage: list[UsageRow] = []
        self._documents: list[DocumentSubject] = []
        self._admins: list[str] = []
        self._notifications: list[NotificationRecord] = []
        self._dedup_index: set[_DedupKey] = set()
        self._lock = asyncio.Lock()

    # ── Seeding ──────────────────────────────────────────────────

    def add_profile(
        self, id: str, full_name: str, credit_limit: Decimal | None = None,
    ) -> None:
        self._profiles[id] = ProfileRow(id, full_name, credit_limit)

    def add_usage(self, row: UsageRow) -> None:
        self._usage.append(row)

    def add_document(self, doc: DocumentSubject) -> None:
        self._documents.append(doc)

    def add_admin(self, user_id: str) -> None:
        if user_id not in self._admins:
            self._admins.append(user_id)

    @property
    def notifications(self) -> list[NotificationRecord]:
        """Snapshot of the notification log, oldest first."""
        return list(self._notifications)

    # ── MonitorStore ─────────────────────────────────────────────

    async def read_subjects_with_limit(self) -> list[CreditSubject]:
        await self._before("read_subjects_with_limit")
        return [
            CreditSubject(id=p.id, name=p.full_name, limit_amount=p.credit_limit)
            for p in self._profiles.values()
            if p.credit_limit is not None and p.credit_limit > 0
        ]

    async def read_approved_usage(
        self,
        subject_ids: list[str],
        start: datetime.datetime,
        end: datetime.datetime,
    ) -> list[UsageRow]:
        await self._before("read_approved_usage")
        wanted = set(subject_ids)
        return [
            row for row in self._usage
            if row.subject_id in wanted
            and row.created_at is not None
            and start <= row.created_at <= end
        ]

    async def read_documents_expiring_between(
        self,
        start: datetime.date,
        end: datetime.date,
    ) -> list[DocumentSubject]:
        await self._before("read_documents_expiring_between")
        return [
            doc.model_copy() for doc in self._documents
            if start <= doc.expiration_date <= end
        ]

    async def read_administrator_ids(self) -> list[str]:
        await self._before("read_administrator_ids")
        return list(self._admins)

    async def read_profile_names(self, ids: list[str]) -> dict[str, str]:
        await self._before("read_profile_names")
        return {
            pid: self._profiles[pid].full_name
            for pid in ids
            if pid in self._profiles
        }

    async def existing_notifications_since(
        self,
        type_tag: str,
        entity_id: str,
        since: datetime.datetime,
    ) -> list[NotificationRecord]:
        await self._before("existing_notifications_since")
        return [
            n for n in self._notifications
            if n.type_tag == type_tag
            and n.entity_id == entity_id
            and n.created_at >= since
        ]

    async def insert_notification(
        self, record: NotificationRecord,
    ) -> NotificationRecord:
        await self._delay("insert_notification")
        if record.recipient_id in self.failures.insert_errors_for:
            raise StoreError(f"insert rejected for recipient {record.recipient_id}")

        async with self._lock:
            if record.period_bucket:
                key = (
                    record.recipient_id,
                    record.entity_id,
                    record.type_tag,
                    record.period_bucket,
                )
                if key in self._dedup_index:
                    raise DuplicateNotificationError(
                        f"notification already exists for {key}",
                    )
                self._dedup_index.add(key)
            self._notifications.append(record)
        return record

    # ── Internal ─────────────────────────────────────────────────

    async def _before(self, op: str) -> None:
        await self._delay(op)
        if op in self.failures.read_errors:
            raise DataSourceError(f"{op} failed")

    async def _delay(self, op: str) -> None:
        delay = self.failures.delays_secs.get(op)
        if delay:
            await asyncio.sleep(delay)
