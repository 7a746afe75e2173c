"""Threshold tables and the highest-severity-wins classifier."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from src.monitor.types import Comparator, Severity, Threshold

_DOCUMENT_MESSAGE = (
    '{emoji} O documento "{document}" ({label}) do colaborador {name}'
    " vence em {days} {day_word}."
)

# Percent of the monthly limit used.
CREDIT_THRESHOLDS: tuple[Threshold, ...] = (
    Threshold(
        severity=Severity.BREACHED,
        comparator=Comparator.GTE,
        bound=Decimal(100),
        type_tag="credit_limit_exceeded",
        title="Limite de Crédito Excedido",
        emoji="🚫",
        subject_template=(
            "{emoji} Você utilizou {percent}% do seu limite mensal"
            " (R$ {used} de R$ {limit})"
        ),
        admin_template="{emoji} {name} atingiu {percent}% do limite (R$ {used} de R$ {limit})",
    ),
    Threshold(
        severity=Severity.CRITICAL,
        comparator=Comparator.GTE,
        bound=Decimal(90),
        type_tag="credit_limit_critical",
        title="Limite de Crédito Crítico",
        emoji="🔴",
        subject_template=(
            "{emoji} Você utilizou {percent}% do seu limite mensal"
            " (R$ {used} de R$ {limit})"
        ),
        admin_template="{emoji} {name} atingiu {percent}% do limite (R$ {used} de R$ {limit})",
    ),
    Threshold(
        severity=Severity.WARNING,
        comparator=Comparator.GTE,
        bound=Decimal(80),
        type_tag="credit_limit_warning",
        title="Limite de Crédito em Alerta",
        emoji="⚠️",
        subject_template=(
            "{emoji} Você utilizou {percent}% do seu limite mensal"
            " (R$ {used} de R$ {limit})"
        ),
        admin_template="{emoji} {name} atingiu {percent}% do limite (R$ {used} de R$ {limit})",
    ),
)

# Whole days until expiration (negative once expired).
DOCUMENT_THRESHOLDS: tuple[Threshold, ...] = (
    Threshold(
        severity=Severity.BREACHED,
        comparator=Comparator.LT,
        bound=Decimal(0),
        type_tag="document_expired",
        title="Documento Vencido",
        emoji="⚠️",
        admin_template=(
            '{emoji} O documento "{document}" ({label}) do colaborador {name}'
            " está vencido há {days_ago} {day_word}."
        ),
    ),
    Threshold(
        severity=Severity.CRITICAL,
        comparator=Comparator.LTE,
        bound=Decimal(7),
        type_tag="document_expiring_critical",
        title="Documento Vencendo",
        emoji="🚨",
        admin_template=_DOCUMENT_MESSAGE,
    ),
    Threshold(
        severity=Severity.WARNING,
        comparator=Comparator.LTE,
        bound=Decimal(30),
        type_tag="document_expiring",
        title="Documento Próximo do Vencimento",
        emoji="📄",
        admin_template=_DOCUMENT_MESSAGE,
    ),
)


def classify(value: Decimal, thresholds: Sequence[Threshold]) -> Threshold | None:
    """Return the most severe threshold *value* satisfies, or None.

    Thresholds are walked most severe first, so the first match is the
    only one reported; lower tiers are never reported alongside it.
    """
    for threshold in sorted(thresholds, key=lambda t: t.severity, reverse=True):
        if threshold.comparator.holds(value, threshold.bound):
            return threshold
    return None
