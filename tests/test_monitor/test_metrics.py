"""Tests for the credit and document metric sources."""

from __future__ import annotations

import datetime
from decimal import Decimal

from src.core.types import CreditSubject, DocumentSubject, UsageRow
from src.monitor.metrics import credit_metrics, document_metrics
from src.monitor.types import ObservationWindow
from src.monitor.windows import day_range_window, month_window

NOW = datetime.datetime(2026, 10, 19, 12, 0, tzinfo=datetime.UTC)
STATUSES = ("aprovada", "concluida")


# ── Helpers ─────────────────────────────────────────────────────


def _subject(id: str = "u1", limit: str = "1000") -> CreditSubject:
    return CreditSubject(id=id, name="Ana", limit_amount=Decimal(limit))


def _usage(
    amount: str,
    subject_id: str = "u1",
    status: str = "aprovada",
    created_at: datetime.datetime = NOW,
) -> UsageRow:
    return UsageRow(
        subject_id=subject_id,
        amount=Decimal(amount),
        status=status,
        created_at=created_at,
    )


def _doc(offset_days: int, id: str | None = None) -> DocumentSubject:
    return DocumentSubject(
        id=id or f"doc{offset_days}",
        owner_profile_id="p1",
        name="ASO",
        type_tag="atestado",
        expiration_date=NOW.date() + datetime.timedelta(days=offset_days),
    )


def _doc_window() -> ObservationWindow:
    return day_range_window(NOW, lookback_days=7, lookahead_days=30)


# ── Credit ──────────────────────────────────────────────────────


class TestCreditMetrics:
    def test_percent_of_limit(self) -> None:
        metrics = credit_metrics(
            [_subject()], [_usage("600"), _usage("350")], month_window(NOW), STATUSES,
        )
        m = metrics["u1"]
        assert m.value == Decimal(95)
        assert m.used == Decimal(950)
        assert m.limit == Decimal(1000)

    def test_only_approved_statuses_counted(self) -> None:
        metrics = credit_metrics(
            [_subject()],
            [
                _usage("500", status="aprovada"),
                _usage("100", status="concluida"),
                _usage("900", status="pendente"),
                _usage("900", status="rejeitada"),
            ],
            month_window(NOW),
            STATUSES,
        )
        assert metrics["u1"].used == Decimal(600)

    def test_blank_status_not_counted(self) -> None:
        metrics = credit_metrics(
            [_subject()],
            [_usage("100"), _usage("900", status="")],
            month_window(NOW),
            STATUSES,
        )
        assert metrics["u1"].used == Decimal(100)

    def test_undated_rows_not_counted(self) -> None:
        undated = UsageRow(subject_id="u1", amount=Decimal(900), status="aprovada")
        metrics = credit_metrics(
            [_subject()], [_usage("100"), undated], month_window(NOW), STATUSES,
        )
        assert metrics["u1"].used == Decimal(100)

    def test_month_bounds_inclusive(self) -> None:
        start = datetime.datetime(2026, 10, 1, tzinfo=datetime.UTC)
        end = datetime.datetime(2026, 10, 31, 23, 59, 59, 999999, tzinfo=datetime.UTC)
        rows = [
            _usage("100", created_at=start),
            _usage("200", created_at=end),
            _usage("400", created_at=start - datetime.timedelta(microseconds=1)),
            _usage("800", created_at=end + datetime.timedelta(microseconds=1)),
        ]
        metrics = credit_metrics([_subject()], rows, month_window(NOW), STATUSES)
        assert metrics["u1"].used == Decimal(300)

    def test_non_positive_limit_excluded(self) -> None:
        metrics = credit_metrics(
            [_subject("u1", "0"), _subject("u2", "-5")],
            [_usage("10", "u1"), _usage("10", "u2")],
            month_window(NOW),
            STATUSES,
        )
        assert metrics == {}

    def test_no_usage_is_zero_percent(self) -> None:
        metrics = credit_metrics([_subject()], [], month_window(NOW), STATUSES)
        assert metrics["u1"].value == Decimal(0)

    def test_usage_kept_per_subject(self) -> None:
        metrics = credit_metrics(
            [_subject("u1"), _subject("u2", "200")],
            [_usage("100", "u1"), _usage("100", "u2")],
            month_window(NOW),
            STATUSES,
        )
        assert metrics["u1"].value == Decimal(10)
        assert metrics["u2"].value == Decimal(50)


# ── Document ────────────────────────────────────────────────────


class TestDocumentMetrics:
    def test_days_until_expiration(self) -> None:
        metrics = document_metrics([_doc(12), _doc(-2)], _doc_window())
        assert metrics["doc12"].days == 12
        assert metrics["doc-2"].days == -2

    def test_lookahead_boundary(self) -> None:
        metrics = document_metrics([_doc(30), _doc(31)], _doc_window())
        assert "doc30" in metrics
        assert "doc31" not in metrics

    def test_lookback_boundary(self) -> None:
        metrics = document_metrics([_doc(-7), _doc(-8)], _doc_window())
        assert "doc-7" in metrics
        assert "doc-8" not in metrics

    def test_expiring_today(self) -> None:
        metrics = document_metrics([_doc(0)], _doc_window())
        assert metrics["doc0"].days == 0
