"""Broker configuration for the pipeline's dramatiq actors.

A Redis broker is used when ``GITCAST_REDIS_URL`` is set. Local and test runs
may fall back to an in-memory ``StubBroker``; production processes without a
broker refuse to start.
"""

from __future__ import annotations

import os
import sys
import threading

import dramatiq
from dramatiq.brokers.stub import StubBroker
from dramatiq.middleware import CurrentMessage

from .middleware import DeadLetterMiddleware

_BROKER_LOCK = threading.Lock()
_TRUTHY = frozenset({"1", "true", "yes"})


def _is_running_tests() -> bool:
    """Check if the current process is running under pytest."""
    return "pytest" in sys.modules or any(
        key in os.environ
        for key in ["PYTEST_CURRENT_TEST", "PYTEST_XDIST_WORKER", "PYTEST_ADDOPTS"]
    )


def _should_use_stub_broker() -> bool:
    """Return whether an in-memory broker is acceptable for this process."""
    allow_stub = os.environ.get("GITCAST_ALLOW_STUB_BROKER", "")
    return allow_stub.strip().lower() in _TRUTHY or _is_running_tests()


def _current_broker() -> dramatiq.Broker | None:
    try:  # pragma: no cover - depends on installed broker extras
        return dramatiq.get_broker()
    except (ImportError, LookupError):
        # ImportError: the default RabbitMQ dependency is not installed
        # LookupError: no broker has been configured yet
        return None


def _install_middleware(broker: dramatiq.Broker) -> None:
    if not any(isinstance(item, CurrentMessage) for item in broker.middleware):
        broker.add_middleware(CurrentMessage())
    if not any(isinstance(item, DeadLetterMiddleware) for item in broker.middleware):
        broker.add_middleware(DeadLetterMiddleware())


def ensure_broker_configured() -> dramatiq.Broker:
    """Return the global broker, configuring it on first use.

    Thread-safe and idempotent. The dead-letter middleware is installed on
    whichever broker ends up global.

    Raises
    ------
    RuntimeError
        If no broker is configured and neither Redis nor a stub is allowed.

    """
    with _BROKER_LOCK:
        redis_url = os.environ.get("GITCAST_REDIS_URL", "").strip()
        broker = _current_broker()
        if broker is None and redis_url:
            from dramatiq.brokers.redis import RedisBroker

            broker = RedisBroker(url=redis_url)
            dramatiq.set_broker(broker)
        elif broker is None and _should_use_stub_broker():
            broker = StubBroker()
            dramatiq.set_broker(broker)
        elif broker is None:  # pragma: no cover - guard for prod misconfigurations
            message = (
                "No Dramatiq broker configured. Set GITCAST_REDIS_URL, or "
                "GITCAST_ALLOW_STUB_BROKER=1 for local/test runs."
            )
            raise RuntimeError(message)

        _install_middleware(broker)
        return broker


__all__ = ["ensure_broker_configured"]
