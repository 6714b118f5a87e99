"""Unit tests for gitcast.api.app application factory.

Usage
-----
Run with pytest::

    pytest tests/unit/test_api_app.py

"""

from __future__ import annotations

from unittest import mock

import falcon.asgi
import falcon.testing
import pytest
from sqlalchemy.exc import OperationalError

from gitcast.api.app import AppDependencies, create_app


@pytest.fixture
def health_client() -> falcon.testing.TestClient:
    """Build a test client for health-only mode."""
    return falcon.testing.TestClient(create_app())


class TestCreateAppHealthOnly:
    """Tests for create_app() without domain dependencies."""

    def test_returns_falcon_app(self) -> None:
        """Create_app() returns a Falcon ASGI App."""
        app = create_app()
        assert isinstance(app, falcon.asgi.App), "expected Falcon ASGI App"

    def test_has_health_route(self, health_client: falcon.testing.TestClient) -> None:
        """Health-only app responds to /health."""
        result = health_client.simulate_get("/health")
        assert result.status == falcon.HTTP_200, "expected HTTP 200 from /health"
        assert result.json == {"status": "ok"}, "wrong /health body"

    def test_has_ready_route(self, health_client: falcon.testing.TestClient) -> None:
        """Health-only app responds to /ready."""
        result = health_client.simulate_get("/ready")
        assert result.status == falcon.HTTP_200, "expected HTTP 200 from /ready"
        assert result.json == {"status": "ready"}, "wrong /ready body"

    def test_feed_endpoint_not_registered(
        self, health_client: falcon.testing.TestClient
    ) -> None:
        """Without deps, the feed endpoint returns 404."""
        result = health_client.simulate_get("/feed/1")
        assert result.status == falcon.HTTP_404, "expected HTTP 404"


class TestReadiness:
    """Readiness with a store attached."""

    def test_ready_when_database_answers(self) -> None:
        """A reachable database keeps the service ready."""
        store = mock.MagicMock()
        store.ping = mock.AsyncMock(return_value=None)
        client = falcon.testing.TestClient(create_app(AppDependencies(store=store)))

        result = client.simulate_get("/ready")

        assert result.status == falcon.HTTP_200, "expected HTTP 200"
        store.ping.assert_awaited_once()

    def test_unavailable_when_database_fails(self) -> None:
        """An unreachable database yields 503."""
        store = mock.MagicMock()
        store.ping = mock.AsyncMock(
            side_effect=OperationalError("SELECT 1", {}, Exception("gone"))
        )
        client = falcon.testing.TestClient(create_app(AppDependencies(store=store)))

        result = client.simulate_get("/ready")

        assert result.status == falcon.HTTP_503, "expected HTTP 503"
        assert result.json["status"] == "unavailable", "wrong /ready body"
