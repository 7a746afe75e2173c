"""Monitor-level exceptions."""

from __future__ import annotations


class MonitorError(Exception):
    """Base exception for monitor run errors."""


class RecipientResolutionError(MonitorError):
    """Recipients for a subject could not be determined."""
