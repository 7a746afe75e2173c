"""Pure functions that turn alerts into notification records."""

from __future__ import annotations

import datetime
from decimal import ROUND_HALF_UP, Decimal

from src.core.types import CreditSubject, DocumentSubject, EntityType, NotificationRecord
from src.monitor.types import Alert, Recipient, RecipientRole

_CENTS = Decimal("0.01")
_WHOLE = Decimal(1)


def _money(value: Decimal | None) -> str:
    return str((value or Decimal(0)).quantize(_CENTS, rounding=ROUND_HALF_UP))


def _day_word(days: int) -> str:
    return "dia" if abs(days) == 1 else "dias"


# ── Interpolation fields ────────────────────────────────────────


def credit_fields(alert: Alert) -> dict[str, str]:
    """Fields for credit-limit templates."""
    subject = alert.subject
    name = subject.name if isinstance(subject, CreditSubject) else ""
    return {
        "emoji": alert.threshold.emoji,
        "name": name,
        "percent": str(alert.metric.value.quantize(_WHOLE, rounding=ROUND_HALF_UP)),
        "used": _money(alert.metric.used),
        "limit": _money(alert.metric.limit),
    }


def document_fields(alert: Alert) -> dict[str, str]:
    """Fields for document-expiration templates."""
    subject = alert.subject
    if not isinstance(subject, DocumentSubject):
        raise TypeError(f"expected DocumentSubject, got {type(subject).__name__}")
    days = alert.metric.days
    return {
        "emoji": alert.threshold.emoji,
        "name": subject.owner_name,
        "document": subject.name,
        "label": subject.type_label,
        "days": str(days),
        "days_ago": str(abs(days)),
        "day_word": _day_word(days),
    }


# ── Rendering ───────────────────────────────────────────────────


def render_message(alert: Alert, role: RecipientRole, fields: dict[str, str]) -> str:
    """Pick the phrasing for *role* and interpolate *fields*.

    The affected person gets the first-person template when the threshold
    has one; everyone else gets the administrator phrasing.
    """
    template = alert.threshold.admin_template
    if role == RecipientRole.SUBJECT and alert.threshold.subject_template:
        template = alert.threshold.subject_template
    return template.format(**fields)


def build_record(
    alert: Alert,
    recipient: Recipient,
    fields: dict[str, str],
    entity_type: EntityType,
    created_at: datetime.datetime,
    period_bucket: str,
) -> NotificationRecord:
    """Build the log row for one recipient of *alert*."""
    return NotificationRecord(
        recipient_id=recipient.id,
        title=alert.threshold.title,
        message=render_message(alert, recipient.role, fields),
        type_tag=alert.type_tag,
        entity_type=entity_type,
        entity_id=alert.entity_id,
        created_at=created_at,
        period_bucket=period_bucket,
    )
