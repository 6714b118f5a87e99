"""Unit tests for the read-path HTTP resources."""

from __future__ import annotations

import datetime as dt
import typing as typ
from unittest import mock

import falcon
import falcon.testing
import pytest

from gitcast.api.app import AppDependencies, create_app
from gitcast.feed.service import FeedPage, FeedService, UserNotLinkedError
from gitcast.pipeline.messages import UpdateUser
from gitcast.store import ActivityEventRow, FeedEntry
from tests.helpers.fakes import RecordingPublisher

if typ.TYPE_CHECKING:
    from gitcast.store import StoreGateway

T0 = dt.datetime(2024, 6, 1, 12, 0, tzinfo=dt.UTC)


def _entry() -> FeedEntry:
    return FeedEntry(
        event=ActivityEventRow(
            id="e1",
            fid=2,
            type="PushEvent",
            created_at=T0,
            actor_login="octo",
            actor_avatar_url="https://avatars.example/octo",
            repo_name="a/b",
            repo_url="https://github.com/a/b",
            action="pushed 1 commit",
            commit_message="fix",
            commit_url="https://github.com/a/b/commit/abc",
            event_url="https://github.com/a/b/commit/abc",
        ),
        farcaster_username="bob",
        farcaster_display_name=None,
        farcaster_pfp_url=None,
    )


@pytest.fixture
def service() -> mock.MagicMock:
    """Build a feed service double with async methods."""
    double = mock.MagicMock(spec=FeedService)
    double.get_feed = mock.AsyncMock(
        return_value=FeedPage(entries=[_entry()], page=1, limit=30)
    )
    double.bootstrap = mock.AsyncMock(return_value=None)
    double.status = mock.AsyncMock(return_value={"user": None, "stats": {}})
    double.init_repos = mock.AsyncMock(return_value="octo")
    double.list_users = mock.AsyncMock(return_value={"users": []})
    double.top_repos = mock.AsyncMock(return_value={"repositories": []})
    return double


@pytest.fixture
def client(service: mock.MagicMock) -> falcon.testing.TestClient:
    """Build a test client over the service double."""
    return falcon.testing.TestClient(
        create_app(AppDependencies(feed_service=service))
    )


class TestFeedResource:
    """GET /feed/{fid}."""

    def test_serves_feed_page(
        self, client: falcon.testing.TestClient, service: mock.MagicMock
    ) -> None:
        """The page is serialised in the feed wire format."""
        result = client.simulate_get("/feed/1", params={"limit": "5", "page": "2"})

        assert result.status == falcon.HTTP_200, "expected HTTP 200"
        service.get_feed.assert_awaited_once_with(1, limit=5, page=2)
        body = result.json
        assert body["page"] == 1, "page echoed from the service result"
        assert body["hasMore"] is False, "short page has no more"
        event = body["events"][0]
        assert event["created_at"] == "2024-06-01T12:00:00Z", "ISO timestamp"
        assert event["commitMessage"] == "fix", "camelCase commit fields"
        assert event["farcaster"] == {
            "username": "bob",
            "display_name": "bob",
            "pfp_url": "",
        }, "profile block falls back to the username"

    @pytest.mark.parametrize(
        "fid", ["abc", "0", "-4", "9223372036854775808", "99999999999999999999"]
    )
    def test_rejects_invalid_fid(
        self, client: falcon.testing.TestClient, service: mock.MagicMock, fid: str
    ) -> None:
        """Identities outside the signed 64-bit positive range are a client error."""
        result = client.simulate_get(f"/feed/{fid}")

        assert result.status == falcon.HTTP_400, "expected HTTP 400"
        assert result.json["field"] == "fid", "offending field named"
        service.get_feed.assert_not_awaited()

    def test_rejects_invalid_limit(self, client: falcon.testing.TestClient) -> None:
        """A malformed limit is a client error."""
        result = client.simulate_get("/feed/1", params={"limit": "lots"})

        assert result.status == falcon.HTTP_400, "expected HTTP 400"
        assert result.json["field"] == "limit", "offending field named"

    def test_accepts_largest_fid(
        self, client: falcon.testing.TestClient, service: mock.MagicMock
    ) -> None:
        """The largest signed 64-bit identity is accepted."""
        result = client.simulate_get("/feed/9223372036854775807")

        assert result.status == falcon.HTTP_200, "expected HTTP 200"
        service.get_feed.assert_awaited_once_with(
            9223372036854775807, limit=30, page=1
        )

    @pytest.mark.parametrize(
        ("params", "field"),
        [
            ({"limit": "101"}, "limit"),
            ({"limit": "0"}, "limit"),
            ({"page": "9223372036854775807"}, "page"),
            ({"limit": "100", "page": "99999999999999999999"}, "page"),
        ],
    )
    def test_rejects_out_of_range_pagination(
        self,
        client: falcon.testing.TestClient,
        service: mock.MagicMock,
        params: dict[str, str],
        field: str,
    ) -> None:
        """Oversized limits and offsets beyond 64 bits are a client error."""
        result = client.simulate_get("/feed/1", params=params)

        assert result.status == falcon.HTTP_400, "expected HTTP 400"
        assert result.json["field"] == field, "offending field named"
        service.get_feed.assert_not_awaited()

    def test_accepts_last_addressable_page(
        self, client: falcon.testing.TestClient, service: mock.MagicMock
    ) -> None:
        """The last page whose offset fits 64 bits is still served."""
        last_page = (2**63 - 1) // 100 + 1

        result = client.simulate_get(
            "/feed/1", params={"limit": "100", "page": str(last_page)}
        )

        assert result.status == falcon.HTTP_200, "expected HTTP 200"
        service.get_feed.assert_awaited_once_with(1, limit=100, page=last_page)


class TestCommandResources:
    """POST /init/{fid} and POST /init-repos/{fid}."""

    def test_init_bootstraps(
        self, client: falcon.testing.TestClient, service: mock.MagicMock
    ) -> None:
        """Bootstrap is requested and acknowledged."""
        result = client.simulate_post("/init/9")

        assert result.status == falcon.HTTP_200, "expected HTTP 200"
        assert result.json["message"] == "Bootstrap process initiated", "ack text"
        service.bootstrap.assert_awaited_once_with(9)

    def test_init_repos_acknowledges(self, client: falcon.testing.TestClient) -> None:
        """A linked user gets an acknowledgement."""
        result = client.simulate_post("/init-repos/9")

        assert result.status == falcon.HTTP_200, "expected HTTP 200"
        assert result.json["message"] == "Repository fetch initiated", "ack text"

    def test_init_repos_rejects_unlinked(
        self, client: falcon.testing.TestClient, service: mock.MagicMock
    ) -> None:
        """An unlinked user is a client error."""
        service.init_repos.side_effect = UserNotLinkedError(9)

        result = client.simulate_post("/init-repos/9")

        assert result.status == falcon.HTTP_400, "expected HTTP 400"
        assert result.json["fid"] == 9, "identity echoed"


class TestListingResources:
    """GET /users, GET /top-repos, GET /status/{fid} and GET /."""

    def test_users_passes_pagination(
        self, client: falcon.testing.TestClient, service: mock.MagicMock
    ) -> None:
        """Query parameters reach the service."""
        result = client.simulate_get("/users", params={"limit": "10", "page": "3"})

        assert result.status == falcon.HTTP_200, "expected HTTP 200"
        service.list_users.assert_awaited_once_with(fid=0, limit=10, page=3)

    def test_top_repos_defaults(
        self, client: falcon.testing.TestClient, service: mock.MagicMock
    ) -> None:
        """Missing pagination uses the listing defaults."""
        client.simulate_get("/top-repos")

        service.top_repos.assert_awaited_once_with(limit=50, page=1)

    @pytest.mark.parametrize(
        ("path", "params", "field"),
        [
            ("/users", {"fid": "9223372036854775808"}, "fid"),
            ("/users", {"limit": "500"}, "limit"),
            ("/top-repos", {"limit": "500"}, "limit"),
            ("/top-repos", {"page": "9223372036854775807"}, "page"),
        ],
    )
    def test_listings_reject_out_of_range_params(
        self,
        client: falcon.testing.TestClient,
        path: str,
        params: dict[str, str],
        field: str,
    ) -> None:
        """Listing views apply the same bounds as the feed."""
        result = client.simulate_get(path, params=params)

        assert result.status == falcon.HTTP_400, "expected HTTP 400"
        assert result.json["field"] == field, "offending field named"

    @pytest.mark.parametrize(
        ("method", "path"),
        [("GET", "/status/99999999999999999999"), ("POST", "/init/0")],
    )
    def test_identity_routes_reject_invalid_fid(
        self, client: falcon.testing.TestClient, method: str, path: str
    ) -> None:
        """Status and bootstrap reject identities out of range."""
        result = client.simulate_request(method, path)

        assert result.status == falcon.HTTP_400, "expected HTTP 400"
        assert result.json["field"] == "fid", "offending field named"

    def test_status(
        self, client: falcon.testing.TestClient, service: mock.MagicMock
    ) -> None:
        """Status is served for the identity."""
        result = client.simulate_get("/status/4")

        assert result.status == falcon.HTTP_200, "expected HTTP 200"
        service.status.assert_awaited_once_with(4)

    def test_root_banner(self, client: falcon.testing.TestClient) -> None:
        """The root path describes the service."""
        result = client.simulate_get("/")

        assert result.text == "GitHub Activity Feed for Farcaster", "banner text"


@pytest.mark.asyncio
async def test_cold_feed_over_http_bootstraps(store: StoreGateway) -> None:
    """A first read over HTTP returns an empty page and queues bootstrap."""
    publisher = RecordingPublisher()
    service = FeedService(store, publisher)
    app = create_app(AppDependencies(store=store, feed_service=service))

    async with falcon.testing.ASGIConductor(app) as conductor:
        first = await conductor.simulate_get("/feed/31")
        second = await conductor.simulate_get("/feed/31")

    assert first.json == {"events": [], "page": 1, "limit": 30, "hasMore": False}, (
        "cold feed should be empty"
    )
    assert second.status == falcon.HTTP_200, "second read succeeds"
    assert len(publisher.messages) == 4, "three bootstrap messages then a refresh"
    assert publisher.messages[-1] == UpdateUser(fid=31), "second read refreshes"
