"""Unit tests for the read path's feed, bootstrap and listing views."""

from __future__ import annotations

import datetime as dt
import typing as typ

import pytest

from gitcast.feed.service import FeedService, UserNotLinkedError, format_timestamp
from gitcast.pipeline.messages import (
    CheckGitHubVerifications,
    FetchStarredRepos,
    FetchUserData,
    UpdateUser,
)
from gitcast.store import ActivityEventRow, UserProfile
from tests.helpers.fakes import RecordingPublisher

if typ.TYPE_CHECKING:
    from gitcast.store import StoreGateway

T0 = dt.datetime(2024, 6, 1, 12, 0, tzinfo=dt.UTC)


def _event(event_id: str, fid: int) -> ActivityEventRow:
    return ActivityEventRow(
        id=event_id,
        fid=fid,
        type="IssueCommentEvent",
        created_at=T0,
        actor_login="octo",
        actor_avatar_url="https://avatars.example/octo",
        repo_name="a/b",
        repo_url="https://github.com/a/b",
        action="commented on issue",
        commit_message=None,
        commit_url=None,
        event_url="https://github.com/a/b/issues/1",
    )


class TestGetFeed:
    """Feed reads with bootstrap-on-miss."""

    @pytest.mark.asyncio
    async def test_cold_identity_bootstraps(self, store: StoreGateway) -> None:
        """An unseen identity gets a stub row and exactly three messages."""
        publisher = RecordingPublisher()
        service = FeedService(store, publisher)

        page = await service.get_feed(77)

        assert page.entries == [], "cold feed is empty"
        assert page.bootstrapped, "bootstrap should be reported"
        assert await store.user_exists(77), "stub user should be created"
        assert publisher.messages == [
            FetchUserData(fid=77),
            UpdateUser(fid=77),
            CheckGitHubVerifications(fids=(77,)),
        ], "unexpected bootstrap messages"

    @pytest.mark.asyncio
    async def test_second_read_only_refreshes(self, store: StoreGateway) -> None:
        """Once the user row exists an empty feed only queues update_user."""
        publisher = RecordingPublisher()
        service = FeedService(store, publisher)
        await service.get_feed(77)
        publisher.messages.clear()

        page = await service.get_feed(77)

        assert not page.bootstrapped, "no second bootstrap"
        assert publisher.messages == [UpdateUser(fid=77)], "refresh expected"

    @pytest.mark.asyncio
    async def test_warm_feed_serves_entries(self, store: StoreGateway) -> None:
        """Stored events are served and a refresh is queued."""
        await store.upsert_profile(UserProfile(1, "alice", "", ""))
        await store.upsert_events([_event("e1", 1)])
        publisher = RecordingPublisher()

        page = await FeedService(store, publisher).get_feed(1, limit=1)

        assert [entry.event.id for entry in page.entries] == ["e1"], "entry served"
        assert page.has_more, "a full page suggests more"
        assert publisher.messages == [UpdateUser(fid=1)], "refresh expected"

    @pytest.mark.asyncio
    async def test_enqueue_failure_does_not_fail_read(
        self, store: StoreGateway
    ) -> None:
        """Publisher errors are logged, not raised, on the read path."""
        publisher = RecordingPublisher(error=ConnectionError("broker down"))

        page = await FeedService(store, publisher).get_feed(5)

        assert page.bootstrapped, "bootstrap still reported"
        assert not await store.user_exists(5), "no stub without queued bootstrap"

    @pytest.mark.asyncio
    async def test_failed_bootstrap_is_retried_on_next_read(
        self, store: StoreGateway
    ) -> None:
        """A read after a broker outage queues the bootstrap again."""
        publisher = RecordingPublisher(error=ConnectionError("broker down"))
        service = FeedService(store, publisher)
        await service.get_feed(42)

        publisher.error = None
        page = await service.get_feed(42)

        assert page.bootstrapped, "second read should bootstrap"
        assert FetchUserData(fid=42) in publisher.messages, "profile fetch queued"
        assert publisher.messages == [
            FetchUserData(fid=42),
            UpdateUser(fid=42),
            CheckGitHubVerifications(fids=(42,)),
        ], "unexpected bootstrap messages"
        assert await store.user_exists(42), "stub created once queued"


class TestBootstrapAndStatus:
    """Explicit bootstrap, status and star ingestion requests."""

    @pytest.mark.asyncio
    async def test_bootstrap_propagates_publish_errors(
        self, store: StoreGateway
    ) -> None:
        """An explicit bootstrap surfaces enqueue failures."""
        publisher = RecordingPublisher(error=ConnectionError("broker down"))

        with pytest.raises(ConnectionError):
            await FeedService(store, publisher).bootstrap(5)

    @pytest.mark.asyncio
    async def test_status_reports_user_and_stats(self, store: StoreGateway) -> None:
        """Status includes the user row and follow-closure counts."""
        await store.replace_following(1, [2])
        await store.link_github(2, "bob", now=T0)

        status = await FeedService(store, RecordingPublisher()).status(1)

        assert status["user"]["fid"] == 1, "user row expected"
        assert status["stats"] == {"follows": 1, "github_users": 1, "events": 0}, (
            "unexpected stats"
        )

    @pytest.mark.asyncio
    async def test_status_for_unknown_user(self, store: StoreGateway) -> None:
        """An unknown identity reports no user and zero counts."""
        status = await FeedService(store, RecordingPublisher()).status(9)

        assert status["user"] is None, "no user expected"

    @pytest.mark.asyncio
    async def test_init_repos_requires_link(self, store: StoreGateway) -> None:
        """Star ingestion needs a linked GitHub username."""
        await store.ensure_users([3])
        service = FeedService(store, RecordingPublisher())

        with pytest.raises(UserNotLinkedError):
            await service.init_repos(3)

    @pytest.mark.asyncio
    async def test_init_repos_queues_star_ingestion(
        self, store: StoreGateway
    ) -> None:
        """A linked user gets a fetch_starred_repos message."""
        await store.link_github(3, "octo")
        publisher = RecordingPublisher()

        username = await FeedService(store, publisher).init_repos(3)

        assert username == "octo", "linked username returned"
        assert publisher.messages == [
            FetchStarredRepos(fid=3, external_username="octo")
        ], "star ingestion expected"


class TestListings:
    """User and repository listings."""

    @pytest.mark.asyncio
    async def test_list_single_user(self, store: StoreGateway) -> None:
        """A positive fid returns that user and never has more."""
        await store.upsert_profile(UserProfile(1, "alice", "", ""))

        body = await FeedService(store, RecordingPublisher()).list_users(fid=1)

        assert [user["fid"] for user in body["users"]] == [1], "single user"
        assert body["hasMore"] is False, "single lookups never have more"

    @pytest.mark.asyncio
    async def test_list_users_paginates(self, store: StoreGateway) -> None:
        """Pages are offset by limit."""
        for fid, name in [(1, "a"), (2, "b"), (3, "c")]:
            await store.upsert_profile(UserProfile(fid, name, "", ""))
        service = FeedService(store, RecordingPublisher())

        body = await service.list_users(limit=2, page=2)

        assert [user["farcaster_username"] for user in body["users"]] == ["c"], (
            "second page expected"
        )
        assert body["hasMore"] is False, "short page ends listing"


def test_format_timestamp_uses_z_suffix() -> None:
    """UTC timestamps render with a Z suffix."""
    assert format_timestamp(T0) == "2024-06-01T12:00:00Z", "unexpected timestamp"
