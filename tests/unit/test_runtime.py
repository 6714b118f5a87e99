"""Unit tests for the API runtime entrypoint."""

from __future__ import annotations

from unittest import mock

import falcon
import falcon.testing
import pytest

from gitcast import runtime


def test_parse_port_accepts_valid_port() -> None:
    """A port inside the TCP range is returned as an integer."""
    assert runtime._parse_port("8081") == 8081, "port should parse"


@pytest.mark.parametrize("raw", ["0", "70000", "http"])
def test_parse_port_rejects_invalid_port(raw: str) -> None:
    """Out-of-range or non-numeric ports exit the process."""
    with pytest.raises(SystemExit):
        runtime._parse_port(raw)


def test_create_app_with_database_registers_feed(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A configured database enables the read-path routes."""
    monkeypatch.setenv("GITCAST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

    with mock.patch(
        "gitcast.pipeline.broker.ensure_broker_configured"
    ) as ensure_broker:
        app = runtime.create_app()

    ensure_broker.assert_called_once_with()
    result = falcon.testing.TestClient(app).simulate_get("/")
    assert result.status == falcon.HTTP_200, "root route should be registered"
