"""Read path: follow-closure feed, bootstrap-on-miss and listing views.

The read path never waits for the pipeline. It serves whatever the store
holds and enqueues work so later reads converge; a cold identity gets an
empty page plus the messages that will populate it.
"""

from __future__ import annotations

import dataclasses
import typing as typ

from gitcast.logging import get_logger, log_exception, log_info
from gitcast.pipeline.messages import (
    CheckGitHubVerifications,
    FetchStarredRepos,
    FetchUserData,
    UpdateUser,
)

if typ.TYPE_CHECKING:
    import datetime as dt

    from gitcast.pipeline.messages import TaskMessage
    from gitcast.pipeline.publisher import TaskPublisher
    from gitcast.store.gateway import StoreGateway
    from gitcast.store.records import FeedEntry, RankedRepository
    from gitcast.store.storage import User

logger = get_logger(__name__)

DEFAULT_FEED_LIMIT = 30
DEFAULT_USERS_LIMIT = 20
DEFAULT_TOP_REPOS_LIMIT = 50


class UserNotLinkedError(LookupError):
    """Raised when an operation needs a linked GitHub username that is absent."""

    def __init__(self, fid: int) -> None:
        """Record the identity lacking a GitHub link."""
        self.fid = fid
        super().__init__("User has no GitHub username configured")


@dataclasses.dataclass(frozen=True, slots=True)
class FeedPage:
    """One page of the aggregated activity feed."""

    entries: list[FeedEntry]
    page: int
    limit: int
    bootstrapped: bool = False

    @property
    def has_more(self) -> bool:
        """Return whether a full page was served."""
        return len(self.entries) == self.limit


def _offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def format_timestamp(value: dt.datetime | None) -> str | None:
    """Render an aware datetime as ISO 8601 with a ``Z`` suffix."""
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")


def feed_entry_json(entry: FeedEntry) -> dict[str, typ.Any]:
    """Serialise a feed entry in the feed endpoint's wire format."""
    event = entry.event
    body: dict[str, typ.Any] = {
        "id": event.id,
        "type": event.type,
        "created_at": format_timestamp(event.created_at),
        "actor": {"login": event.actor_login, "avatar_url": event.actor_avatar_url},
        "repo": {"name": event.repo_name, "url": event.repo_url},
        "fid": event.fid,
        "action": event.action,
        "commitMessage": event.commit_message,
        "commitUrl": event.commit_url,
        "eventUrl": event.event_url,
    }
    if entry.farcaster_username:
        body["farcaster"] = {
            "username": entry.farcaster_username,
            "display_name": entry.farcaster_display_name or entry.farcaster_username,
            "pfp_url": entry.farcaster_pfp_url or "",
        }
    return body


def user_json(user: User) -> dict[str, typ.Any]:
    """Serialise a user row."""
    return {
        "fid": user.fid,
        "farcaster_username": user.farcaster_username,
        "farcaster_display_name": user.farcaster_display_name,
        "farcaster_pfp_url": user.farcaster_pfp_url,
        "github_username": user.github_username,
        "last_updated": format_timestamp(user.last_updated),
    }


def ranked_repository_json(ranked: RankedRepository) -> dict[str, typ.Any]:
    """Serialise a ranked repository."""
    repo = ranked.repository
    return {
        "id": repo.id,
        "name": repo.name,
        "full_name": repo.full_name,
        "description": repo.description,
        "url": repo.url,
        "html_url": repo.html_url,
        "stars_count": repo.stars_count,
        "forks_count": repo.forks_count,
        "last_updated": format_timestamp(ranked.last_updated),
        "farcaster_stars_count": ranked.farcaster_stars_count,
    }


def bootstrap_messages(fid: int) -> tuple[TaskMessage, ...]:
    """Return the messages that populate a previously unseen identity."""
    return (
        FetchUserData(fid=fid),
        UpdateUser(fid=fid),
        CheckGitHubVerifications(fids=(fid,)),
    )


class FeedService:
    """Serve feed, status and listing queries over the store."""

    def __init__(self, store: StoreGateway, publisher: TaskPublisher) -> None:
        """Bind the service to the store and the task publisher."""
        self._store = store
        self._publisher = publisher

    async def _publish_best_effort(self, messages: typ.Iterable[TaskMessage]) -> bool:
        """Publish each message, logging failures; return whether all succeeded."""
        published_all = True
        for message in messages:
            try:
                await self._publisher.publish(message)
            except Exception as exc:
                published_all = False
                log_exception(
                    logger, "Failed to enqueue %s from the read path", exc, message
                )
        return published_all

    async def get_feed(
        self, fid: int, *, limit: int = DEFAULT_FEED_LIMIT, page: int = 1
    ) -> FeedPage:
        """Return a page of the follow-closure feed for ``fid``.

        An empty page for an identity with no user row triggers bootstrap:
        the three bootstrap messages are queued and, once all of them are
        accepted, a stub user is created. A failed enqueue leaves the
        identity unseen so the next read bootstraps again.
        Otherwise an ``update_user`` refresh is queued. Enqueue failures are
        logged and never fail the read.
        """
        entries = await self._store.feed_page(
            fid, limit=limit, offset=_offset(page, limit)
        )
        if not entries and not await self._store.user_exists(fid):
            log_info(logger, "No events for unseen fid=%d; bootstrapping", fid)
            if await self._publish_best_effort(bootstrap_messages(fid)):
                await self._store.ensure_users([fid])
            return FeedPage(entries=[], page=page, limit=limit, bootstrapped=True)

        await self._publish_best_effort([UpdateUser(fid=fid)])
        return FeedPage(entries=entries, page=page, limit=limit)

    async def bootstrap(self, fid: int) -> None:
        """Touch the user row and queue the bootstrap messages.

        Unlike the feed's bootstrap-on-miss, enqueue failures propagate.
        """
        await self._store.touch_user(fid)
        for message in bootstrap_messages(fid):
            await self._publisher.publish(message)

    async def status(self, fid: int) -> dict[str, typ.Any]:
        """Return the user row and follow-closure counts for ``fid``."""
        user = await self._store.get_user(fid)
        stats = await self._store.follow_stats(fid)
        return {
            "user": user_json(user) if user is not None else None,
            "stats": {
                "follows": stats.follows,
                "github_users": stats.github_users,
                "events": stats.events,
            },
        }

    async def init_repos(self, fid: int) -> str:
        """Queue star ingestion for ``fid`` and return the linked username.

        Raises
        ------
        UserNotLinkedError
            If the user is unknown or has no GitHub username.

        """
        user = await self._store.get_user(fid)
        if user is None or not user.github_username:
            raise UserNotLinkedError(fid)
        await self._publisher.publish(
            FetchStarredRepos(fid=fid, external_username=user.github_username)
        )
        return user.github_username

    async def list_users(
        self, *, fid: int = 0, limit: int = DEFAULT_USERS_LIMIT, page: int = 1
    ) -> dict[str, typ.Any]:
        """Return one user when ``fid`` is positive, else a page of users."""
        if fid > 0:
            user = await self._store.get_user(fid)
            users = [user] if user is not None else []
            has_more = False
        else:
            users = await self._store.list_users(
                limit=limit, offset=_offset(page, limit)
            )
            has_more = len(users) == limit
        return {
            "users": [user_json(user) for user in users],
            "page": page,
            "limit": limit,
            "hasMore": has_more,
        }

    async def top_repos(
        self, *, limit: int = DEFAULT_TOP_REPOS_LIMIT, page: int = 1
    ) -> dict[str, typ.Any]:
        """Return repositories ranked by GitHub and tracked-user stars."""
        ranked = await self._store.top_repositories(
            limit=limit, offset=_offset(page, limit)
        )
        return {
            "repositories": [ranked_repository_json(item) for item in ranked],
            "page": page,
            "limit": limit,
            "hasMore": len(ranked) == limit,
        }


__all__ = [
    "DEFAULT_FEED_LIMIT",
    "DEFAULT_TOP_REPOS_LIMIT",
    "DEFAULT_USERS_LIMIT",
    "FeedPage",
    "FeedService",
    "UserNotLinkedError",
    "bootstrap_messages",
    "feed_entry_json",
    "format_timestamp",
    "ranked_repository_json",
    "user_json",
]
