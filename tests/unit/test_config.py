"""Unit tests for environment-driven pipeline configuration."""

from __future__ import annotations

import datetime as dt

import pytest

from gitcast.config import PipelineConfig, require_env


def test_defaults() -> None:
    """Defaults match the documented pipeline limits."""
    config = PipelineConfig()
    assert config.task_max_retries == 5, "retry budget"
    assert config.events_per_page == 30, "events page size"
    assert config.retention == dt.timedelta(days=5), "retention horizon"


def test_from_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set variables override defaults; blank ones are ignored."""
    monkeypatch.setenv("GITCAST_RETENTION_DAYS", "7")
    monkeypatch.setenv("GITCAST_EVENT_PAGES", " ")

    config = PipelineConfig.from_env()

    assert config.retention_days == 7, "override applied"
    assert config.event_pages == 1, "blank value falls back"


@pytest.mark.parametrize("raw", ["0", "-1", "many"])
def test_from_env_rejects_invalid(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    """Non-positive or non-integer values are rejected."""
    monkeypatch.setenv("GITCAST_TASK_TIMEOUT_S", raw)

    with pytest.raises(ValueError, match="GITCAST_TASK_TIMEOUT_S"):
        PipelineConfig.from_env()


def test_require_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Required variables must be present and non-blank."""
    monkeypatch.setenv("GITCAST_DATABASE_URL", "  ")

    with pytest.raises(ValueError, match="GITCAST_DATABASE_URL is required"):
        require_env("GITCAST_DATABASE_URL")
