"""Feed, bootstrap, status and listing resources.

Usage
-----
Register the resources on the Falcon app::

    app.add_route("/feed/{fid}", FeedResource(service))
    app.add_route("/init/{fid}", InitResource(service))

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

from gitcast.api.params import parse_fid, query_int, query_pagination
from gitcast.feed.service import (
    DEFAULT_FEED_LIMIT,
    DEFAULT_TOP_REPOS_LIMIT,
    DEFAULT_USERS_LIMIT,
    feed_entry_json,
)

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from gitcast.feed.service import FeedService

__all__ = [
    "FeedResource",
    "InitReposResource",
    "InitResource",
    "RootResource",
    "StatusResource",
    "TopReposResource",
    "UsersResource",
]


class _ServiceResource:
    """Base for resources delegating to :class:`FeedService`."""

    def __init__(self, service: FeedService) -> None:
        """Configure the resource with the read-path service."""
        self._service = service


class RootResource:
    """Plain-text banner at ``GET /``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET / requests."""
        resp.content_type = "text/plain; charset=utf-8"
        resp.text = "GitHub Activity Feed for Farcaster"
        resp.status = HTTPStatus.OK


class FeedResource(_ServiceResource):
    """``GET /feed/{fid}``: follow-closure activity with bootstrap-on-miss."""

    async def on_get(self, req: Request, resp: Response, *, fid: str) -> None:
        """Return one page of the feed.

        Parameters
        ----------
        req
            Falcon request carrying optional ``limit`` and ``page``.
        resp
            Falcon response populated with the feed page.
        fid
            Identity whose follow closure is read.

        """
        identity = parse_fid(fid)
        limit, page = query_pagination(req, default_limit=DEFAULT_FEED_LIMIT)
        result = await self._service.get_feed(identity, limit=limit, page=page)
        resp.media = {
            "events": [feed_entry_json(entry) for entry in result.entries],
            "page": result.page,
            "limit": result.limit,
            "hasMore": result.has_more,
        }
        resp.status = HTTPStatus.OK


class InitResource(_ServiceResource):
    """``POST /init/{fid}``: force pipeline bootstrap for an identity."""

    async def on_post(self, _req: Request, resp: Response, *, fid: str) -> None:
        """Queue the bootstrap messages."""
        await self._service.bootstrap(parse_fid(fid))
        resp.media = {
            "message": "Bootstrap process initiated",
            "note": (
                "Data will be populated in the background. "
                "Try fetching the feed in a few moments."
            ),
        }
        resp.status = HTTPStatus.OK


class StatusResource(_ServiceResource):
    """``GET /status/{fid}``: user row and follow-closure counts."""

    async def on_get(self, _req: Request, resp: Response, *, fid: str) -> None:
        """Return the status document."""
        resp.media = await self._service.status(parse_fid(fid))
        resp.status = HTTPStatus.OK


class InitReposResource(_ServiceResource):
    """``POST /init-repos/{fid}``: force star ingestion for a linked user."""

    async def on_post(self, _req: Request, resp: Response, *, fid: str) -> None:
        """Queue star ingestion; unlinked users are rejected with 400."""
        await self._service.init_repos(parse_fid(fid))
        resp.media = {
            "message": "Repository fetch initiated",
            "note": "Starred repositories will be populated in the background",
        }
        resp.status = HTTPStatus.OK


class UsersResource(_ServiceResource):
    """``GET /users``: one user by ``fid`` or a page ordered by username."""

    async def on_get(self, req: Request, resp: Response) -> None:
        """Return the user listing."""
        limit, page = query_pagination(req, default_limit=DEFAULT_USERS_LIMIT)
        resp.media = await self._service.list_users(
            fid=query_int(req, "fid", default=0, minimum=0),
            limit=limit,
            page=page,
        )
        resp.status = HTTPStatus.OK


class TopReposResource(_ServiceResource):
    """``GET /top-repos``: repositories ranked by blended star counts."""

    async def on_get(self, req: Request, resp: Response) -> None:
        """Return the ranked repository listing."""
        limit, page = query_pagination(req, default_limit=DEFAULT_TOP_REPOS_LIMIT)
        resp.media = await self._service.top_repos(limit=limit, page=page)
        resp.status = HTTPStatus.OK
