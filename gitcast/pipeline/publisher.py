"""Enqueue task messages onto the broker queue of their consuming stage."""

from __future__ import annotations

import asyncio
import typing as typ

import dramatiq

from .messages import GITHUB_QUEUE, NEYNAR_QUEUE, encode_message, queue_for

if typ.TYPE_CHECKING:
    from .messages import TaskMessage

ACTOR_BY_QUEUE: dict[str, str] = {
    NEYNAR_QUEUE: "process_neynar_task",
    GITHUB_QUEUE: "process_github_task",
}


class TaskPublisher(typ.Protocol):
    """Sink for follow-up messages emitted by stages and the read path."""

    async def publish(self, message: TaskMessage) -> None:
        """Enqueue ``message`` for its consuming stage."""
        ...


class DramatiqTaskPublisher:
    """Publish task messages through a dramatiq broker.

    Messages are addressed by actor name; importing this module never
    declares actors or configures a broker.
    """

    def __init__(self, broker: dramatiq.Broker | None = None) -> None:
        """Bind to ``broker``, or to the global broker at publish time."""
        self._broker = broker

    async def publish(self, message: TaskMessage) -> None:
        """Enqueue ``message`` on the queue its stage consumes."""
        broker = self._broker or dramatiq.get_broker()
        queue_name = queue_for(message)
        broker.declare_queue(queue_name)
        envelope = dramatiq.Message(
            queue_name=queue_name,
            actor_name=ACTOR_BY_QUEUE[queue_name],
            args=(encode_message(message),),
            kwargs={},
            options={},
        )
        await asyncio.to_thread(broker.enqueue, envelope)


__all__ = ["ACTOR_BY_QUEUE", "DramatiqTaskPublisher", "TaskPublisher"]
