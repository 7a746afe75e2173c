"""Records exchanged with the backing store — all money values use Decimal."""

from __future__ import annotations

import datetime
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class EntityType(StrEnum):
    """Kind of entity a notification points at."""

    CREDIT_LIMIT = "credit_limit"
    COLLABORATOR_DOCUMENT = "collaborator_document"


# Human labels for ``collaborator_documents.document_type``.
DOCUMENT_TYPE_LABELS: dict[str, str] = {
    "contrato": "Contrato",
    "atestado": "Atestado Médico",
    "aditivo": "Aditivo Contratual",
    "certidao": "Certidão",
    "comprovante": "Comprovante",
    "declaracao": "Declaração",
    "outro": "Outro",
}


class CreditSubject(BaseModel):
    """A collaborator with a monthly credit limit."""

    id: str
    name: str = ""
    limit_amount: Decimal = Decimal(0)


class UsageRow(BaseModel):
    """One benefit request counted against a collaborator's limit."""

    subject_id: str
    amount: Decimal = Decimal(0)
    status: str = ""
    created_at: datetime.datetime | None = None


class DocumentSubject(BaseModel):
    """A collaborator document with an expiration date."""

    id: str
    owner_profile_id: str
    name: str = ""
    type_tag: str = ""
    expiration_date: datetime.date
    owner_name: str = ""

    @property
    def type_label(self) -> str:
        return DOCUMENT_TYPE_LABELS.get(self.type_tag, self.type_tag)


class NotificationRecord(BaseModel):
    """One row of the append-only notification log."""

    model_config = ConfigDict(frozen=True)

    recipient_id: str
    title: str
    message: str
    type_tag: str
    entity_type: EntityType
    entity_id: str
    created_at: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(datetime.UTC),
    )
    # Dedup bucket of created_at (e.g. "2026-10" or "2026-10-19").
    period_bucket: str = ""
