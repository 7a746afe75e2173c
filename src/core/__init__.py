"""Core module — config, types, logging."""

from src.core.config import Settings, get_settings, load_settings, reset_settings
from src.core.logging import setup_logging
from src.core.types import (
    CreditSubject,
    DocumentSubject,
    EntityType,
    NotificationRecord,
    UsageRow,
)

__all__ = [
    "CreditSubject",
    "DocumentSubject",
    "EntityType",
    "NotificationRecord",
    "Settings",
    "UsageRow",
    "get_settings",
    "load_settings",
    "reset_settings",
    "setup_logging",
]
