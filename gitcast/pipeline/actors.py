"""Dramatiq actors consuming the pipeline's two task queues.

Run workers with::

    dramatiq gitcast.pipeline.actors

A message is acknowledged only after its actor returns. Any exception
propagates to dramatiq's ``Retries`` middleware, which redelivers with
exponential backoff until :func:`should_retry` declines; the broker then
moves the message to its dead-letter queue.
"""

from __future__ import annotations

import asyncio
import dataclasses
import threading
import typing as typ

import dramatiq
from dramatiq.middleware import CurrentMessage

from gitcast.config import PipelineConfig

from .broker import ensure_broker_configured
from .dispatch import dispatch
from .errors import should_retry
from .factory import create_pipeline_dependencies
from .messages import GITHUB_QUEUE, NEYNAR_QUEUE, decode_message

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .dispatch import PipelineDependencies

ensure_broker_configured()

_CONFIG = PipelineConfig.from_env()
_CACHE_LOCK = threading.Lock()


@dataclasses.dataclass(slots=True)
class _WorkerRuntime:
    """Event loop and collaborators owned by one worker thread."""

    loop: asyncio.AbstractEventLoop
    deps: PipelineDependencies


# Async clients are bound to the loop that created them, so each worker
# thread keeps its own loop and dependency set.
_RUNTIMES: dict[int, _WorkerRuntime] = {}
_dependencies_factory: cabc.Callable[[], PipelineDependencies] = (
    create_pipeline_dependencies
)


def configure_dependencies(
    factory: cabc.Callable[[], PipelineDependencies] | None,
) -> None:
    """Replace the dependency factory and drop cached runtimes.

    Passing ``None`` restores the environment-driven factory.
    """
    global _dependencies_factory
    with _CACHE_LOCK:
        _dependencies_factory = factory or create_pipeline_dependencies
        _RUNTIMES.clear()


def _runtime() -> _WorkerRuntime:
    key = threading.get_ident()
    with _CACHE_LOCK:
        runtime = _RUNTIMES.get(key)
        if runtime is None:
            runtime = _WorkerRuntime(
                loop=asyncio.new_event_loop(), deps=_dependencies_factory()
            )
            _RUNTIMES[key] = runtime
        return runtime


def _retry_when(retries: int, exception: Exception) -> bool:
    return should_retry(retries, exception, max_retries=_CONFIG.task_max_retries)


def _handle(payload: dict[str, typ.Any]) -> None:
    message = decode_message(payload)
    current = CurrentMessage.get_current_message()
    message_id = current.message_id if current is not None else None
    runtime = _runtime()
    runtime.loop.run_until_complete(
        dispatch(message, runtime.deps, message_id=message_id)
    )


_ACTOR_OPTIONS: dict[str, typ.Any] = {
    "retry_when": _retry_when,
    "min_backoff": _CONFIG.task_min_backoff_ms,
    "max_backoff": _CONFIG.task_max_backoff_ms,
    # Outlasts the in-process stage timeout.
    "time_limit": (_CONFIG.task_timeout_s + 30) * 1000,
}


@dramatiq.actor(
    actor_name="process_neynar_task", queue_name=NEYNAR_QUEUE, **_ACTOR_OPTIONS
)
def process_neynar_task(payload: dict[str, typ.Any]) -> None:
    """Handle identity resolution and verification matching messages."""
    _handle(payload)


@dramatiq.actor(
    actor_name="process_github_task", queue_name=GITHUB_QUEUE, **_ACTOR_OPTIONS
)
def process_github_task(payload: dict[str, typ.Any]) -> None:
    """Handle activity and star ingestion messages."""
    _handle(payload)


__all__ = ["configure_dependencies", "process_github_task", "process_neynar_task"]
