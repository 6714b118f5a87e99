"""Structured lifecycle events for pipeline tasks and scheduler triggers.

Events are emitted as ``[event] key=value`` log lines through femtologging
so log aggregators can parse them without a separate metrics backend.
"""

from __future__ import annotations

import enum
import typing as typ

from gitcast.logging import get_logger, log_error, log_info, log_warning

from .errors import categorize_error

if typ.TYPE_CHECKING:
    import datetime as dt

logger = get_logger(__name__)


class TaskEventType(enum.StrEnum):
    """Structured log event types for task handling."""

    TASK_STARTED = "task.started"
    TASK_COMPLETED = "task.completed"
    TASK_FAILED = "task.failed"
    TASK_DEAD_LETTERED = "task.dead_lettered"
    TRIGGER_COMPLETED = "scheduler.trigger.completed"
    TRIGGER_FAILED = "scheduler.trigger.failed"


class TaskEventLogger:
    """Emit structured task and trigger events."""

    def log_task_started(self, *, message_type: str, message_id: str | None) -> None:
        """Log that a consumer began handling a message."""
        log_info(
            logger,
            "[%s] message_type=%s message_id=%s",
            TaskEventType.TASK_STARTED,
            message_type,
            message_id,
        )

    def log_task_completed(
        self,
        *,
        message_type: str,
        message_id: str | None,
        duration: dt.timedelta,
        published: int,
    ) -> None:
        """Log successful handling with the number of follow-up messages."""
        log_info(
            logger,
            "[%s] message_type=%s message_id=%s duration_seconds=%.3f published=%d",
            TaskEventType.TASK_COMPLETED,
            message_type,
            message_id,
            duration.total_seconds(),
            published,
        )

    def log_task_failed(
        self,
        *,
        message_type: str,
        message_id: str | None,
        error: BaseException,
        duration: dt.timedelta,
    ) -> None:
        """Log a failed attempt; the broker decides whether to redeliver."""
        log_error(
            logger,
            "[%s] message_type=%s message_id=%s duration_seconds=%.3f "
            "error_type=%s error_category=%s error_message=%s",
            TaskEventType.TASK_FAILED,
            message_type,
            message_id,
            duration.total_seconds(),
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )

    def log_task_dead_lettered(
        self,
        *,
        actor_name: str,
        message_id: str,
        retries: int,
        payload: object,
    ) -> None:
        """Log a message the broker gave up on."""
        log_warning(
            logger,
            "[%s] actor=%s message_id=%s retries=%d payload=%r",
            TaskEventType.TASK_DEAD_LETTERED,
            actor_name,
            message_id,
            retries,
            payload,
        )

    def log_trigger_completed(
        self, *, trigger: str, duration: dt.timedelta, affected: int
    ) -> None:
        """Log a scheduler trigger that finished."""
        log_info(
            logger,
            "[%s] trigger=%s duration_seconds=%.3f affected=%d",
            TaskEventType.TRIGGER_COMPLETED,
            trigger,
            duration.total_seconds(),
            affected,
        )

    def log_trigger_failed(
        self, *, trigger: str, error: BaseException, duration: dt.timedelta
    ) -> None:
        """Log a scheduler trigger that raised."""
        log_error(
            logger,
            "[%s] trigger=%s duration_seconds=%.3f error_type=%s "
            "error_category=%s error_message=%s",
            TaskEventType.TRIGGER_FAILED,
            trigger,
            duration.total_seconds(),
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )


__all__ = ["TaskEventLogger", "TaskEventType"]
