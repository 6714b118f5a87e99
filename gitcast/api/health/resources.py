"""Health probe resources for liveness and readiness checks.

Usage
-----
Register health endpoints on the Falcon app::

    from gitcast.api.health.resources import HealthResource, ReadyResource

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(store))

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

from sqlalchemy.exc import SQLAlchemyError

from gitcast.logging import get_logger, log_warning

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from gitcast.store.gateway import StoreGateway

__all__ = ["HealthResource", "ReadyResource"]

logger = get_logger(__name__)


class HealthResource:
    """Liveness probe resource returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe checking the database when one is configured.

    Without a store the service runs in probe-only mode and is always
    ready. With a store, an unreachable database yields HTTP 503.

    """

    def __init__(self, store: StoreGateway | None = None) -> None:
        """Configure the probe with an optional store to ping."""
        self._store = store

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests.

        Parameters
        ----------
        _req
            Falcon request (unused).
        resp
            Falcon response populated with readiness status.

        """
        if self._store is not None:
            try:
                await self._store.ping()
            except (SQLAlchemyError, OSError) as exc:
                log_warning(logger, "Readiness check failed: %s", exc)
                resp.media = {"status": "unavailable", "database": "unreachable"}
                resp.status = HTTPStatus.SERVICE_UNAVAILABLE
                return
        resp.media = {"status": "ready"}
        resp.status = HTTPStatus.OK
