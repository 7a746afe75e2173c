"""Hosted store — PostgREST (Supabase) tables over httpx.

Inserts write a ``period_bucket`` column and rely on a unique index over
``(user_id, entity_id, type, period_bucket)``; both are created by
``config/notifications_dedup.sql``.
"""

from __future__ import annotations

import datetime
from decimal import Decimal, InvalidOperation
from types import TracebackType
from typing import Any

import httpx
import structlog

from src.core.config import StoreConfig, get_settings
from src.core.types import (
    CreditSubject,
    DocumentSubject,
    EntityType,
    NotificationRecord,
    UsageRow,
)
from src.store.base import MonitorStore
from src.store.exceptions import (
    DataSourceError,
    DuplicateNotificationError,
    StoreError,
    StoreTimeoutError,
)

logger = structlog.stdlib.get_logger()

_NOTIFICATION_COLUMNS = (
    "user_id,title,message,type,entity_type,entity_id,created_at,period_bucket"
)

# Postgres unique_violation, surfaced by PostgREST as HTTP 409.
_UNIQUE_VIOLATION = "23505"


def _in_filter(values: list[str]) -> str:
    quoted = ",".join(f'"{v}"' for v in values)
    return f"in.({quoted})"


def _decimal(value: object) -> Decimal:
    if value is None:
        return Decimal(0)
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal(0)


def _parse_timestamp(value: object) -> datetime.datetime | None:
    if not isinstance(value, str) or not value:
        return None
    # PostgREST emits "+00:00"; older versions emit a trailing "Z".
    return datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))


def _notification_from_row(row: dict[str, Any]) -> NotificationRecord:
    return NotificationRecord(
        recipient_id=str(row.get("user_id", "")),
        title=str(row.get("title", "")),
        message=str(row.get("message", "")),
        type_tag=str(row.get("type", "")),
        entity_type=EntityType(row.get("entity_type", EntityType.CREDIT_LIMIT)),
        entity_id=str(row.get("entity_id", "")),
        created_at=_parse_timestamp(row.get("created_at"))
        or datetime.datetime.now(datetime.UTC),
        period_bucket=str(row.get("period_bucket") or ""),
    )


class SupabaseStore(MonitorStore):
    """MonitorStore backed by the Supabase REST API.

    Usage::

        store = SupabaseStore(settings.store)
        async with store:
            admins = await store.read_administrator_ids()
    """

    def __init__(
        self,
        config: StoreConfig | None = None,
        approved_statuses: list[str] | None = None,
    ) -> None:
        cfg = config or get_settings().store
        self._config = cfg
        self._approved_statuses = approved_statuses or list(
            get_settings().monitors.credit.approved_statuses,
        )
        self._http: httpx.AsyncClient | None = None

    @property
    def connected(self) -> bool:
        """Whether the HTTP client is active."""
        return self._http is not None and not self._http.is_closed

    async def connect(self) -> None:
        """Create the httpx async client."""
        if not self._config.url:
            raise StoreError("store.url is not configured")
        key = self._config.service_key.get_secret_value()
        self._http = httpx.AsyncClient(
            base_url=f"{self._config.url.rstrip('/')}/rest/v1",
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
            },
            timeout=httpx.Timeout(self._config.http_timeout_secs),
        )

    async def close(self) -> None:
        """Close the httpx async client."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> SupabaseStore:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ── Reads ────────────────────────────────────────────────────

    async def read_subjects_with_limit(self) -> list[CreditSubject]:
        rows = await self._select("profiles", [
            ("select", "user_id,full_name,credit_limit"),
            ("credit_limit", "not.is.null"),
            ("credit_limit", "gt.0"),
        ])
        return [
            CreditSubject(
                id=str(row["user_id"]),
                name=str(row.get("full_name") or ""),
                limit_amount=_decimal(row.get("credit_limit")),
            )
            for row in rows
            if row.get("user_id")
        ]

    async def read_approved_usage(
        self,
        subject_ids: list[str],
        start: datetime.datetime,
        end: datetime.datetime,
    ) -> list[UsageRow]:
        if not subject_ids:
            return []
        rows = await self._select("benefit_requests", [
            ("select", "user_id,approved_value,status,created_at"),
            ("status", _in_filter(self._approved_statuses)),
            ("user_id", _in_filter(subject_ids)),
            ("created_at", f"gte.{start.isoformat()}"),
            ("created_at", f"lte.{end.isoformat()}"),
        ])
        return [
            UsageRow(
                subject_id=str(row["user_id"]),
                amount=_decimal(row.get("approved_value")),
                status=str(row.get("status") or ""),
                created_at=_parse_timestamp(row.get("created_at")),
            )
            for row in rows
            if row.get("user_id")
        ]

    async def read_documents_expiring_between(
        self,
        start: datetime.date,
        end: datetime.date,
    ) -> list[DocumentSubject]:
        rows = await self._select("collaborator_documents", [
            ("select", "id,profile_id,document_name,document_type,expiration_date"),
            ("expiration_date", "not.is.null"),
            ("expiration_date", f"gte.{start.isoformat()}"),
            ("expiration_date", f"lte.{end.isoformat()}"),
        ])
        docs: list[DocumentSubject] = []
        for row in rows:
            try:
                expires = datetime.date.fromisoformat(str(row["expiration_date"]))
            except (KeyError, ValueError) as exc:
                raise DataSourceError(
                    f"collaborator_documents row {row.get('id')} has a bad expiration_date",
                ) from exc
            docs.append(DocumentSubject(
                id=str(row["id"]),
                owner_profile_id=str(row.get("profile_id") or ""),
                name=str(row.get("document_name") or ""),
                type_tag=str(row.get("document_type") or ""),
                expiration_date=expires,
            ))
        return docs

    async def read_administrator_ids(self) -> list[str]:
        rows = await self._select("user_roles", [
            ("select", "user_id"),
            ("role", "eq.admin"),
        ])
        return [str(row["user_id"]) for row in rows if row.get("user_id")]

    async def read_profile_names(self, ids: list[str]) -> dict[str, str]:
        if not ids:
            return {}
        rows = await self._select("profiles", [
            ("select", "id,full_name"),
            ("id", _in_filter(ids)),
        ])
        return {str(row["id"]): str(row.get("full_name") or "") for row in rows}

    async def existing_notifications_since(
        self,
        type_tag: str,
        entity_id: str,
        since: datetime.datetime,
    ) -> list[NotificationRecord]:
        rows = await self._select("notifications", [
            ("select", _NOTIFICATION_COLUMNS),
            ("type", f"eq.{type_tag}"),
            ("entity_id", f"eq.{entity_id}"),
            ("created_at", f"gte.{since.isoformat()}"),
        ])
        return [_notification_from_row(row) for row in rows]

    # ── Writes ───────────────────────────────────────────────────

    async def insert_notification(
        self, record: NotificationRecord,
    ) -> NotificationRecord:
        http = self._client()
        payload = {
            "user_id": record.recipient_id,
            "title": record.title,
            "message": record.message,
            "type": record.type_tag,
            "entity_type": record.entity_type.value,
            "entity_id": record.entity_id,
            "created_at": record.created_at.isoformat(),
            "period_bucket": record.period_bucket or None,
        }
        try:
            response = await http.post(
                "/notifications",
                json=payload,
                headers={"Prefer": "return=minimal"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 409 and _is_unique_violation(exc.response):
                raise DuplicateNotificationError(
                    f"notification for {record.entity_id}/{record.type_tag}"
                    f" already sent to {record.recipient_id}",
                ) from exc
            raise StoreError(
                f"notifications insert returned {exc.response.status_code}",
            ) from exc
        except httpx.TimeoutException as exc:
            raise StoreTimeoutError("notifications insert timed out") from exc
        except httpx.HTTPError as exc:
            raise StoreError(f"notifications insert failed: {exc}") from exc
        return record

    # ── Internal ─────────────────────────────────────────────────

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            raise StoreError("HTTP client not connected")
        return self._http

    async def _select(
        self, table: str, params: list[tuple[str, str]],
    ) -> list[dict[str, Any]]:
        http = self._client()
        try:
            response = await http.get(f"/{table}", params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise DataSourceError(
                f"{table} query returned {exc.response.status_code}",
            ) from exc
        except httpx.TimeoutException as exc:
            raise StoreTimeoutError(f"{table} query timed out") from exc
        except httpx.HTTPError as exc:
            raise DataSourceError(f"{table} query failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise DataSourceError(f"{table} returned invalid JSON") from exc

        if not isinstance(body, list):
            raise DataSourceError(f"{table} returned {type(body).__name__}, expected list")
        return [row for row in body if isinstance(row, dict)]


def _is_unique_violation(response: httpx.Response) -> bool:
    try:
        body = response.json()
    except ValueError:
        return False
    return isinstance(body, dict) and body.get("code") == _UNIQUE_VIOLATION
