"""Shared fixtures for BDD feature tests."""

from __future__ import annotations

import asyncio
import typing as typ

import pytest


@pytest.fixture
def scenario_loop() -> typ.Iterator[asyncio.AbstractEventLoop]:
    """Provide one event loop for every async call within a scenario."""
    loop = asyncio.new_event_loop()
    try:
        yield loop
    finally:
        loop.close()
