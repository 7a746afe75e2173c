"""Metric sources — pure aggregation over records read from the store."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal

from src.core.types import CreditSubject, DocumentSubject, UsageRow
from src.monitor.types import Metric, ObservationWindow

_HUNDRED = Decimal(100)


def credit_metrics(
    subjects: Sequence[CreditSubject],
    usage: Iterable[UsageRow],
    window: ObservationWindow,
    approved_statuses: Iterable[str],
) -> dict[str, Metric]:
    """Percent of the monthly limit used, per subject.

    Only rows whose status is approved and whose ``created_at`` falls in
    *window* are summed.  Subjects with a non-positive limit get no metric;
    subjects with a limit but no usage get 0%.
    """
    statuses = set(approved_statuses)
    used: dict[str, Decimal] = {}
    for row in usage:
        if row.status not in statuses:
            continue
        if row.created_at is None or not window.contains(row.created_at):
            continue
        used[row.subject_id] = used.get(row.subject_id, Decimal(0)) + row.amount

    metrics: dict[str, Metric] = {}
    for subject in subjects:
        if subject.limit_amount <= 0:
            continue
        amount = used.get(subject.id, Decimal(0))
        metrics[subject.id] = Metric(
            subject_id=subject.id,
            value=amount / subject.limit_amount * _HUNDRED,
            used=amount,
            limit=subject.limit_amount,
        )
    return metrics


def document_metrics(
    documents: Sequence[DocumentSubject],
    window: ObservationWindow,
) -> dict[str, Metric]:
    """Whole days from the window's reference date to each expiration.

    Documents outside the window's inclusive day range are left out.
    """
    today = window.reference.date()
    metrics: dict[str, Metric] = {}
    for doc in documents:
        if not window.contains_date(doc.expiration_date):
            continue
        metrics[doc.id] = Metric(
            subject_id=doc.id,
            value=Decimal((doc.expiration_date - today).days),
        )
    return metrics
