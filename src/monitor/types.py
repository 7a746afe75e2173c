"""Domain types for the threshold-monitoring subsystem."""

from __future__ import annotations

import datetime
from decimal import Decimal
from enum import IntEnum, StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.core.types import CreditSubject, DocumentSubject

Subject = CreditSubject | DocumentSubject


class Severity(IntEnum):
    """Alert severity — ordered so comparisons work naturally."""

    WARNING = 1
    CRITICAL = 2
    BREACHED = 3


class Comparator(StrEnum):
    """How a metric is compared against a threshold's bound."""

    GTE = ">="
    LTE = "<="
    LT = "<"

    def holds(self, value: Decimal, bound: Decimal) -> bool:
        if self is Comparator.GTE:
            return value >= bound
        if self is Comparator.LTE:
            return value <= bound
        return value < bound


class Threshold(BaseModel):
    """A severity-tagged rule a metric may satisfy."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    comparator: Comparator
    bound: Decimal
    type_tag: str
    title: str
    emoji: str = ""
    # Phrasing for the affected person; empty when the monitor only
    # notifies administrators.
    subject_template: str = ""
    admin_template: str


class ObservationWindow(BaseModel):
    """Inclusive time range a metric is computed over."""

    start: datetime.datetime
    end: datetime.datetime
    reference: datetime.datetime

    def contains(self, ts: datetime.datetime) -> bool:
        return self.start <= ts <= self.end

    def contains_date(self, day: datetime.date) -> bool:
        return self.start.date() <= day <= self.end.date()


class Metric(BaseModel):
    """Value computed for one subject in one run.

    Credit metrics carry percent used in ``value`` plus ``used``/``limit``;
    document metrics carry whole days until expiration in ``value``.
    """

    subject_id: str
    value: Decimal
    used: Decimal | None = None
    limit: Decimal | None = None

    @property
    def days(self) -> int:
        return int(self.value)


class Alert(BaseModel):
    """A subject whose metric crossed a threshold in this run."""

    subject: Subject
    metric: Metric
    threshold: Threshold

    @property
    def entity_id(self) -> str:
        return self.subject.id

    @property
    def type_tag(self) -> str:
        return self.threshold.type_tag


class RecipientRole(StrEnum):
    """Why a recipient is being notified — selects the message phrasing."""

    SUBJECT = "SUBJECT"
    ADMIN = "ADMIN"


class Recipient(BaseModel):
    """A notification target."""

    model_config = ConfigDict(frozen=True)

    id: str
    role: RecipientRole


class FanoutResult(BaseModel):
    """Outcome of delivering one alert to all of its recipients."""

    created: int = 0
    failed: int = 0
    duplicates: int = 0


class RunState(StrEnum):
    """Phases of a single monitor run."""

    PENDING = "PENDING"
    LOADING_SUBJECTS = "LOADING_SUBJECTS"
    COMPUTING_METRICS = "COMPUTING_METRICS"
    CLASSIFYING_AND_FILTERING = "CLASSIFYING_AND_FILTERING"
    RESOLVING_RECIPIENTS = "RESOLVING_RECIPIENTS"
    FANNING_OUT = "FANNING_OUT"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class RunSummary(BaseModel):
    """Machine-readable result of one monitor run."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    monitor: str
    success: bool = True
    subjects_checked: int = 0
    notifications_created: int = 0
    notifications_failed: int = 0
    duplicates_ignored: int = 0
    alerts_suppressed: int = 0
    subjects_failed: int = 0
    cancelled: bool = False
    started_at: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(datetime.UTC),
    )
    finished_at: datetime.datetime | None = None
    error: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting ``error`` on success."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
