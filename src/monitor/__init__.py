"""Threshold monitoring and notification fan-out subsystem."""

from src.monitor.credit import CREDIT_MONITOR, check_credit_limits, credit_monitor
from src.monitor.dedup import DedupGate
from src.monitor.documents import (
    DOCUMENT_MONITOR,
    check_document_expiration,
    document_monitor,
)
from src.monitor.exceptions import MonitorError, RecipientResolutionError
from src.monitor.factory import create_run_factories, create_store
from src.monitor.fanout import NotificationFanout
from src.monitor.recipients import RecipientPolicy, RecipientResolver
from src.monitor.run import MonitorDefinition, MonitorRun
from src.monitor.scheduler import MonitorScheduler
from src.monitor.thresholds import CREDIT_THRESHOLDS, DOCUMENT_THRESHOLDS, classify
from src.monitor.types import (
    Alert,
    FanoutResult,
    Metric,
    Recipient,
    RecipientRole,
    RunState,
    RunSummary,
    Severity,
    Threshold,
)

__all__ = [
    "CREDIT_MONITOR",
    "CREDIT_THRESHOLDS",
    "DOCUMENT_MONITOR",
    "DOCUMENT_THRESHOLDS",
    "Alert",
    "DedupGate",
    "FanoutResult",
    "Metric",
    "MonitorDefinition",
    "MonitorError",
    "MonitorRun",
    "MonitorScheduler",
    "NotificationFanout",
    "Recipient",
    "RecipientPolicy",
    "RecipientResolutionError",
    "RecipientResolver",
    "RecipientRole",
    "RunState",
    "RunSummary",
    "Severity",
    "Threshold",
    "check_credit_limits",
    "check_document_expiration",
    "classify",
    "create_run_factories",
    "create_store",
    "credit_monitor",
    "document_monitor",
]
