"""Scheduled re-synchronisation triggers and their cron runner."""

from __future__ import annotations

from .refresh import RefreshScheduler, TriggerName, TriggerOutcome

__all__ = ["RefreshScheduler", "TriggerName", "TriggerOutcome"]
