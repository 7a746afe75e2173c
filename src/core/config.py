"""Pydantic settings loaded from YAML configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, SecretStr

_settings: Settings | None = None

_DEFAULT_CONFIG_PATH = Path("config/settings.yaml")


class StoreConfig(BaseModel):
    """Backing store for subjects, usage and the notification log."""

    backend: str = "supabase"
    url: str = ""
    service_key: SecretStr = SecretStr("")
    http_timeout_secs: float = 10.0


class CreditMonitorConfig(BaseModel):
    """Monthly credit-limit monitor."""

    enabled: bool = True
    approved_statuses: list[str] = ["aprovada", "concluida"]


class DocumentMonitorConfig(BaseModel):
    """Document expiration monitor."""

    enabled: bool = True
    lookback_days: int = 7
    lookahead_days: int = 30
    dedup_hours: int = 24


class MonitorsConfig(BaseModel):
    """Settings shared by every monitor run."""

    timezone: str = "UTC"
    max_concurrency: int = 8
    store_timeout_secs: float = 15.0
    credit: CreditMonitorConfig = CreditMonitorConfig()
    documents: DocumentMonitorConfig = DocumentMonitorConfig()


class SchedulerConfig(BaseModel):
    """In-process interval scheduler (only used with ``--every``)."""

    interval_secs: float = 3600.0


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"


class Settings(BaseModel):
    """Root settings container."""

    store: StoreConfig = StoreConfig()
    monitors: MonitorsConfig = MonitorsConfig()
    scheduler: SchedulerConfig = SchedulerConfig()
    logging: LoggingConfig = LoggingConfig()


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file and cache globally.

    Args:
        path: Path to YAML config. Defaults to config/settings.yaml.

    Returns:
        Parsed Settings instance.
    """
    global _settings  # noqa: PLW0603

    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f)
            if isinstance(raw, dict):
                data = raw

    _settings = Settings(**data)
    return _settings


def get_settings() -> Settings:
    """Return the cached settings, loading defaults if not yet loaded."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the cached settings (useful for testing)."""
    global _settings  # noqa: PLW0603
    _settings = None
