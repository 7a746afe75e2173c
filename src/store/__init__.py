"""Store module — collaborator interface, hosted and in-memory backends."""

from src.store.base import MonitorStore, with_timeout
from src.store.exceptions import (
    DataSourceError,
    DuplicateNotificationError,
    StoreError,
    StoreTimeoutError,
)
from src.store.memory import FailurePlan, InMemoryStore
from src.store.supabase import SupabaseStore

__all__ = [
    "DataSourceError",
    "DuplicateNotificationError",
    "FailurePlan",
    "InMemoryStore",
    "MonitorStore",
    "StoreError",
    "StoreTimeoutError",
    "SupabaseStore",
    "with_timeout",
]
