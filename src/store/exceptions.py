"""Exception hierarchy for the backing store."""

from __future__ import annotations


class StoreError(Exception):
    """Base exception for all store errors."""


class DataSourceError(StoreError):
    """A read needed to make a monitoring decision failed."""


class StoreTimeoutError(StoreError):
    """A store call did not complete within its timeout."""


class DuplicateNotificationError(StoreError):
    """Insert rejected by the notification dedup index."""
