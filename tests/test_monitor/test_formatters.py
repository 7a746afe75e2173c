"""Tests for message fields, phrasing selection and record building."""

from __future__ import annotations

import datetime
from decimal import Decimal

import pytest

from src.core.types import CreditSubject, DocumentSubject, EntityType
from src.monitor.formatters import (
    build_record,
    credit_fields,
    document_fields,
    render_message,
)
from src.monitor.thresholds import CREDIT_THRESHOLDS, DOCUMENT_THRESHOLDS, classify
from src.monitor.types import Alert, Metric, Recipient, RecipientRole

NOW = datetime.datetime(2026, 10, 19, 12, 0, tzinfo=datetime.UTC)


# ── Helpers ─────────────────────────────────────────────────────


def _credit_alert(used: str = "950", limit: str = "1000") -> Alert:
    percent = Decimal(used) / Decimal(limit) * 100
    threshold = classify(percent, CREDIT_THRESHOLDS)
    assert threshold is not None
    return Alert(
        subject=CreditSubject(id="u1", name="Ana Souza", limit_amount=Decimal(limit)),
        metric=Metric(
            subject_id="u1", value=percent, used=Decimal(used), limit=Decimal(limit),
        ),
        threshold=threshold,
    )


def _doc_alert(days: int, type_tag: str = "contrato") -> Alert:
    threshold = classify(Decimal(days), DOCUMENT_THRESHOLDS)
    assert threshold is not None
    return Alert(
        subject=DocumentSubject(
            id="doc1",
            owner_profile_id="p1",
            name="Contrato de trabalho",
            type_tag=type_tag,
            expiration_date=NOW.date() + datetime.timedelta(days=days),
            owner_name="Bruno Lima",
        ),
        metric=Metric(subject_id="doc1", value=Decimal(days)),
        threshold=threshold,
    )


# ── Credit ──────────────────────────────────────────────────────


class TestCreditMessages:
    def test_fields(self) -> None:
        fields = credit_fields(_credit_alert())
        assert fields["percent"] == "95"
        assert fields["used"] == "950.00"
        assert fields["limit"] == "1000.00"
        assert fields["name"] == "Ana Souza"

    def test_percent_rounds_half_up(self) -> None:
        fields = credit_fields(_credit_alert(used="945", limit="1000"))
        assert fields["percent"] == "95"

    def test_subject_phrasing_is_first_person(self) -> None:
        alert = _credit_alert()
        msg = render_message(alert, RecipientRole.SUBJECT, credit_fields(alert))
        assert msg == "🔴 Você utilizou 95% do seu limite mensal (R$ 950.00 de R$ 1000.00)"

    def test_admin_phrasing_names_subject(self) -> None:
        alert = _credit_alert()
        msg = render_message(alert, RecipientRole.ADMIN, credit_fields(alert))
        assert msg == "🔴 Ana Souza atingiu 95% do limite (R$ 950.00 de R$ 1000.00)"

    def test_exceeded_title(self) -> None:
        alert = _credit_alert(used="1200")
        assert alert.threshold.title == "Limite de Crédito Excedido"
        msg = render_message(alert, RecipientRole.ADMIN, credit_fields(alert))
        assert "120%" in msg
        assert "1200.00" in msg


# ── Document ────────────────────────────────────────────────────


class TestDocumentMessages:
    def test_expired(self) -> None:
        alert = _doc_alert(-2)
        msg = render_message(alert, RecipientRole.ADMIN, document_fields(alert))
        assert alert.threshold.title == "Documento Vencido"
        assert "vencido há 2 dias" in msg
        assert '"Contrato de trabalho" (Contrato)' in msg
        assert "Bruno Lima" in msg

    def test_critical_singular_day(self) -> None:
        alert = _doc_alert(1)
        msg = render_message(alert, RecipientRole.ADMIN, document_fields(alert))
        assert alert.threshold.title == "Documento Vencendo"
        assert msg.endswith("vence em 1 dia.")

    def test_expiring_plural(self) -> None:
        alert = _doc_alert(20)
        msg = render_message(alert, RecipientRole.ADMIN, document_fields(alert))
        assert alert.threshold.title == "Documento Próximo do Vencimento"
        assert msg.endswith("vence em 20 dias.")

    def test_unknown_type_uses_raw_tag(self) -> None:
        alert = _doc_alert(20, type_tag="crachá")
        assert document_fields(alert)["label"] == "crachá"

    def test_subject_role_falls_back_to_admin_template(self) -> None:
        alert = _doc_alert(-2)
        fields = document_fields(alert)
        assert render_message(alert, RecipientRole.SUBJECT, fields) == render_message(
            alert, RecipientRole.ADMIN, fields,
        )

    def test_document_fields_reject_credit_subject(self) -> None:
        with pytest.raises(TypeError):
            document_fields(_credit_alert())


# ── build_record ────────────────────────────────────────────────


class TestBuildRecord:
    def test_record_fields(self) -> None:
        alert = _credit_alert()
        record = build_record(
            alert,
            Recipient(id="admin1", role=RecipientRole.ADMIN),
            credit_fields(alert),
            EntityType.CREDIT_LIMIT,
            NOW,
            "2026-10",
        )
        assert record.recipient_id == "admin1"
        assert record.type_tag == "credit_limit_critical"
        assert record.entity_type == EntityType.CREDIT_LIMIT
        assert record.entity_id == "u1"
        assert record.created_at == NOW
        assert record.period_bucket == "2026-10"
        assert record.title == "Limite de Crédito Crítico"
