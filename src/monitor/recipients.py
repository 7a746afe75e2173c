"""Recipient resolution — the affected person plus every administrator."""

from __future__ import annotations

import asyncio
from enum import StrEnum

import structlog

from src.core.types import CreditSubject
from src.monitor.exceptions import RecipientResolutionError
from src.monitor.types import Recipient, RecipientRole, Subject
from src.store.base import MonitorStore, with_timeout
from src.store.exceptions import StoreError

logger = structlog.stdlib.get_logger()


class RecipientPolicy(StrEnum):
    """Who besides administrators hears about an alert."""

    SUBJECT_AND_ADMINS = "SUBJECT_AND_ADMINS"
    ADMINS_ONLY = "ADMINS_ONLY"


class RecipientResolver:
    """Expands a subject into a deduplicated list of recipients.

    The administrator list is read once per resolver (one resolver per run)
    and reused for every subject.  A failed read is not cached, so the next
    subject retries it.
    """

    def __init__(
        self,
        store: MonitorStore,
        policy: RecipientPolicy,
        timeout_secs: float = 15.0,
    ) -> None:
        self._store = store
        self._policy = policy
        self._timeout_secs = timeout_secs
        self._admins: list[str] | None = None
        self._lock = asyncio.Lock()

    async def _admin_ids(self) -> list[str]:
        async with self._lock:
            if self._admins is None:
                try:
                    self._admins = await with_timeout(
                        self._store.read_administrator_ids(),
                        self._timeout_secs,
                        "read_administrator_ids",
                    )
                except StoreError as exc:
                    raise RecipientResolutionError(
                        f"could not read administrators: {exc}",
                    ) from exc
                logger.debug("administrators_loaded", count=len(self._admins))
            return self._admins

    async def resolve(self, subject: Subject) -> list[Recipient]:
        recipients: list[Recipient] = []
        seen: set[str] = set()

        if self._policy == RecipientPolicy.SUBJECT_AND_ADMINS and isinstance(
            subject, CreditSubject,
        ):
            recipients.append(Recipient(id=subject.id, role=RecipientRole.SUBJECT))
            seen.add(subject.id)

        for admin_id in await self._admin_ids():
            if admin_id in seen:
                continue
            seen.add(admin_id)
            recipients.append(Recipient(id=admin_id, role=RecipientRole.ADMIN))

        return recipients
