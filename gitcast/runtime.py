"""gitcast runtime entrypoint for container deployments.

This module provides the ASGI application factory served by Granian. It
delegates to :func:`gitcast.api.app.create_app` for application
construction while keeping the ``gitcast.runtime:create_app`` entrypoint
stable.

When ``GITCAST_DATABASE_URL`` is set, the runtime builds the store, the
task publisher and the feed service so the app serves the read path.
Otherwise it starts in health-only mode.

Configuration is driven by environment variables:

- ``GITCAST_HOST``: Bind address (default ``0.0.0.0``)
- ``GITCAST_PORT``: Listen port (default ``8080``)
- ``GITCAST_LOG_LEVEL``: Log level (default ``INFO``)
- ``GITCAST_DATABASE_URL``: Database connection URL (optional; enables
  the read path when set)
- ``GITCAST_REDIS_URL``: Broker URL for enqueuing pipeline work

Run the service directly with ``python -m gitcast.runtime``.
"""

from __future__ import annotations

import os
import typing as typ

from gitcast.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["create_app", "main"]

logger = get_logger(__name__)

# TCP port number range limits
_MIN_PORT = 1
_MAX_PORT = 65535


def _parse_port(port_str: str) -> int:
    """Parse and validate a port number string.

    Raises
    ------
    SystemExit
        If port_str is not a valid integer in range 1-65535.

    """
    try:
        port = int(port_str)
        if not (_MIN_PORT <= port <= _MAX_PORT):
            msg = f"port {port} outside valid range {_MIN_PORT}-{_MAX_PORT}"
            raise ValueError(msg)  # noqa: TRY301 - unify conversion and range errors
    except ValueError as exc:
        log_error(
            logger,
            "Invalid GITCAST_PORT value: %r (must be %d-%d): %s",
            port_str,
            _MIN_PORT,
            _MAX_PORT,
            exc,
        )
        raise SystemExit(1) from exc
    return port


def create_app() -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    from gitcast.api.app import create_app as _create_api_app

    database_url = os.environ.get("GITCAST_DATABASE_URL")

    if database_url is None:
        return _create_api_app()

    from gitcast.api.app import AppDependencies
    from gitcast.feed.service import FeedService
    from gitcast.pipeline.broker import ensure_broker_configured
    from gitcast.pipeline.factory import create_session_factory
    from gitcast.pipeline.publisher import DramatiqTaskPublisher
    from gitcast.store.gateway import StoreGateway

    store = StoreGateway(create_session_factory(database_url))
    publisher = DramatiqTaskPublisher(ensure_broker_configured())
    deps = AppDependencies(store=store, feed_service=FeedService(store, publisher))
    return _create_api_app(deps)


def main() -> None:
    """Start the gitcast API server using Granian.

    Reads ``GITCAST_HOST``, ``GITCAST_PORT``, and ``GITCAST_LOG_LEVEL`` from
    the environment and starts the ASGI server.
    """
    from granian import Granian
    from granian.constants import Interfaces

    host = os.environ.get("GITCAST_HOST", "0.0.0.0")  # noqa: S104 - bind all interfaces for container
    port_str = os.environ.get("GITCAST_PORT", "8080")
    port = _parse_port(port_str)
    log_level_str = os.environ.get("GITCAST_LOG_LEVEL", "INFO")

    normalized_level, invalid_level = configure_logging(log_level_str)
    if invalid_level:
        log_warning(
            logger,
            "Invalid GITCAST_LOG_LEVEL %r, falling back to %s",
            log_level_str,
            normalized_level,
        )

    log_info(
        logger,
        "Starting gitcast API on %s:%d (log_level=%s)",
        host,
        port,
        normalized_level,
    )

    server = Granian(
        "gitcast.runtime:create_app",
        address=host,
        port=port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
