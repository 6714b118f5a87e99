"""Application factory for the gitcast Falcon ASGI application.

This module provides ``create_app()`` which builds and configures the
Falcon ASGI application with health endpoints and, when a store and feed
service are available, the read-path endpoints.

Usage
-----
Create a health-only app (no database)::

    app = create_app()

Create a full app with the read path::

    from gitcast.api.app import AppDependencies, create_app

    deps = AppDependencies(store=store, feed_service=feed_service)
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from gitcast.api.errors import (
    InvalidInputError,
    handle_invalid_input,
    handle_user_not_linked,
)
from gitcast.api.health.resources import HealthResource, ReadyResource
from gitcast.feed.service import UserNotLinkedError

if typ.TYPE_CHECKING:
    from gitcast.feed.service import FeedService
    from gitcast.store.gateway import StoreGateway

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    store
        Store gateway; enables the database readiness check.
    feed_service
        Read-path service; enables the feed, status and listing routes.

    """

    store: StoreGateway | None = None
    feed_service: FeedService | None = None


def _register_feed_routes(app: falcon.asgi.App, service: FeedService) -> None:
    from gitcast.api.feed.resources import (
        FeedResource,
        InitReposResource,
        InitResource,
        RootResource,
        StatusResource,
        TopReposResource,
        UsersResource,
    )

    app.add_route("/", RootResource())
    app.add_route("/feed/{fid}", FeedResource(service))
    app.add_route("/init/{fid}", InitResource(service))
    app.add_route("/status/{fid}", StatusResource(service))
    app.add_route("/init-repos/{fid}", InitReposResource(service))
    app.add_route("/users", UsersResource(service))
    app.add_route("/top-repos", TopReposResource(service))


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    ``/health`` and ``/ready`` are always registered. The read-path routes
    are added only when *dependencies* carries a feed service.

    Parameters
    ----------
    dependencies
        Optional application dependencies.  When ``None``, only health
        endpoints are available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    deps = dependencies or AppDependencies()
    app = falcon.asgi.App(cors_enable=True)

    # Health endpoints are always available
    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(deps.store))

    if deps.feed_service is not None:
        _register_feed_routes(app, deps.feed_service)

    # Error handlers
    app.add_error_handler(InvalidInputError, handle_invalid_input)
    app.add_error_handler(UserNotLinkedError, handle_user_not_linked)

    return app
