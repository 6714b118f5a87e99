"""Pipeline tuning knobs loaded from the environment.

Usage
-----
Create a configuration with defaults:

>>> config = PipelineConfig()
>>> config.retention_days
5

Or load from environment variables:

>>> import os
>>> os.environ["GITCAST_SCHEDULER_BATCH_SIZE"] = "50"
>>> PipelineConfig.from_env().scheduler_batch_size
50

"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import os


def _parse_positive_int(env_var: str, default: int) -> int:
    """Read a positive integer env var, falling back to a default."""
    raw = os.environ.get(env_var, "")
    if not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        msg = f"{env_var} must be an integer, got: {raw!r}"
        raise ValueError(msg) from exc
    if value < 1:
        msg = f"{env_var} must be positive, got: {value}"
        raise ValueError(msg)
    return value


def require_env(env_var: str) -> str:
    """Return a non-empty environment variable or raise ``ValueError``."""
    value = os.environ.get(env_var, "").strip()
    if not value:
        msg = f"{env_var} is required"
        raise ValueError(msg)
    return value


@dc.dataclass(frozen=True, slots=True)
class PipelineConfig:
    """Limits and retry policy shared by workers and the scheduler.

    Attributes
    ----------
    task_max_retries
        Redeliveries allowed before a message is dead-lettered.
    task_min_backoff_ms, task_max_backoff_ms
        Exponential backoff bounds between redeliveries.
    task_timeout_s
        Wall-clock budget for handling one message, upstream calls included.
    events_per_page, event_pages
        Activity ingestion ceiling per user and run. A rate-limit budget,
        not a completeness guarantee.
    starred_page_size, starred_max_pages
        Star ingestion page size and safety cap.
    following_max_pages
        Safety cap when paginating a social-graph following list.
    scheduler_batch_size
        Messages enqueued concurrently by one scheduler batch.
    retention_days
        Age after which activity events are swept.

    """

    task_max_retries: int = 5
    task_min_backoff_ms: int = 15_000
    task_max_backoff_ms: int = 600_000
    task_timeout_s: int = 120
    events_per_page: int = 30
    event_pages: int = 1
    starred_page_size: int = 100
    starred_max_pages: int = 50
    following_max_pages: int = 10
    scheduler_batch_size: int = 100
    retention_days: int = 5

    @property
    def retention(self) -> dt.timedelta:
        """Retention horizon as a timedelta."""
        return dt.timedelta(days=self.retention_days)

    @classmethod
    def from_env(cls) -> PipelineConfig:
        """Create configuration from ``GITCAST_*`` environment variables.

        Raises
        ------
        ValueError
            If any variable is set to a non-integer or non-positive value.

        """
        return cls(
            task_max_retries=_parse_positive_int("GITCAST_TASK_MAX_RETRIES", 5),
            task_min_backoff_ms=_parse_positive_int(
                "GITCAST_TASK_MIN_BACKOFF_MS", 15_000
            ),
            task_max_backoff_ms=_parse_positive_int(
                "GITCAST_TASK_MAX_BACKOFF_MS", 600_000
            ),
            task_timeout_s=_parse_positive_int("GITCAST_TASK_TIMEOUT_S", 120),
            events_per_page=_parse_positive_int("GITCAST_EVENTS_PER_PAGE", 30),
            event_pages=_parse_positive_int("GITCAST_EVENT_PAGES", 1),
            starred_page_size=_parse_positive_int("GITCAST_STARRED_PAGE_SIZE", 100),
            starred_max_pages=_parse_positive_int("GITCAST_STARRED_MAX_PAGES", 50),
            following_max_pages=_parse_positive_int(
                "GITCAST_FOLLOWING_MAX_PAGES", 10
            ),
            scheduler_batch_size=_parse_positive_int(
                "GITCAST_SCHEDULER_BATCH_SIZE", 100
            ),
            retention_days=_parse_positive_int("GITCAST_RETENTION_DAYS", 5),
        )


__all__ = ["PipelineConfig", "require_env"]
