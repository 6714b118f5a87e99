"""Dramatiq middleware surfacing dead-lettered task messages."""

from __future__ import annotations

import typing as typ

import dramatiq

from .observability import TaskEventLogger

if typ.TYPE_CHECKING:
    from dramatiq.broker import Broker
    from dramatiq.message import Message


class DeadLetterMiddleware(dramatiq.Middleware):
    """Log every message the broker rejects after retries are exhausted.

    The broker keeps the rejected message in its dead-letter queue; this
    middleware makes the rejection visible in the logs with enough context
    to replay it.
    """

    def __init__(self, event_logger: TaskEventLogger | None = None) -> None:
        """Create the middleware with an optional lifecycle event sink."""
        self._events = event_logger or TaskEventLogger()

    def after_nack(self, broker: Broker, message: Message[typ.Any]) -> None:
        """Record a rejected message."""
        self._events.log_task_dead_lettered(
            actor_name=message.actor_name,
            message_id=message.message_id,
            retries=int(message.options.get("retries", 0)),
            payload=message.args[0] if message.args else None,
        )


__all__ = ["DeadLetterMiddleware"]
