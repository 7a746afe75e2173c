"""Tests for src/core/config.py — YAML loading, defaults, SecretStr."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from src.core.config import (
    CreditMonitorConfig,
    DocumentMonitorConfig,
    LoggingConfig,
    MonitorsConfig,
    Settings,
    StoreConfig,
    get_settings,
    load_settings,
    reset_settings,
)


@pytest.fixture(autouse=True)
def _clean_settings() -> None:
    """Reset the global settings cache before each test."""
    reset_settings()


class TestDefaults:
    """Settings should have sensible defaults when no YAML is provided."""

    def test_default_store_config(self) -> None:
        cfg = StoreConfig()
        assert cfg.backend == "supabase"
        assert cfg.url == ""
        assert cfg.service_key.get_secret_value() == ""

    def test_default_credit_config(self) -> None:
        cfg = CreditMonitorConfig()
        assert cfg.enabled is True
        assert cfg.approved_statuses == ["aprovada", "concluida"]

    def test_default_document_config(self) -> None:
        cfg = DocumentMonitorConfig()
        assert cfg.lookback_days == 7
        assert cfg.lookahead_days == 30
        assert cfg.dedup_hours == 24

    def test_default_monitors_config(self) -> None:
        cfg = MonitorsConfig()
        assert cfg.timezone == "UTC"
        assert cfg.max_concurrency == 8
        assert cfg.store_timeout_secs > 0

    def test_default_logging_config(self) -> None:
        cfg = LoggingConfig()
        assert cfg.level == "INFO"
        assert cfg.format == "json"

    def test_default_settings(self) -> None:
        s = Settings()
        assert s.store.backend == "supabase"
        assert s.monitors.credit.enabled
        assert s.monitors.documents.enabled
        assert s.scheduler.interval_secs == 3600.0


class TestYamlLoading:
    """Settings should load correctly from YAML files."""

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        config_data = {
            "store": {
                "backend": "memory",
                "url": "https://example.supabase.co",
                "service_key": "service-role-key",
            },
            "monitors": {
                "timezone": "America/Sao_Paulo",
                "max_concurrency": 2,
                "credit": {"approved_statuses": ["approved"]},
                "documents": {"lookahead_days": 15, "dedup_hours": 12},
            },
            "logging": {"level": "DEBUG", "format": "console"},
        }
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.dump(config_data))

        settings = load_settings(config_file)

        assert settings.store.backend == "memory"
        assert settings.store.service_key.get_secret_value() == "service-role-key"
        assert settings.monitors.timezone == "America/Sao_Paulo"
        assert settings.monitors.max_concurrency == 2
        assert settings.monitors.credit.approved_statuses == ["approved"]
        assert settings.monitors.documents.lookahead_days == 15
        assert settings.monitors.documents.dedup_hours == 12
        assert settings.logging.level == "DEBUG"
        assert settings.logging.format == "console"

    def test_load_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path / "nonexistent.yaml")
        assert settings.store.backend == "supabase"
        assert settings.monitors.documents.lookback_days == 7

    def test_load_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        settings = load_settings(config_file)
        assert settings.monitors.max_concurrency == 8

    def test_partial_yaml_merges_with_defaults(self, tmp_path: Path) -> None:
        config_data = {"monitors": {"documents": {"enabled": False}}}
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.dump(config_data))

        settings = load_settings(config_file)
        assert settings.monitors.documents.enabled is False
        # Other defaults still intact
        assert settings.monitors.documents.lookahead_days == 30
        assert settings.monitors.credit.enabled is True

    def test_get_settings_caches(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.dump({"monitors": {"max_concurrency": 3}}))
        loaded = load_settings(config_file)
        assert get_settings() is loaded


class TestSecretStr:
    """The service key should never leak through repr."""

    def test_secret_str_repr_does_not_leak(self) -> None:
        cfg = StoreConfig(service_key="super-secret")  # type: ignore[arg-type]
        repr_str = repr(cfg)
        assert "super-secret" not in repr_str
        assert "**********" in repr_str
