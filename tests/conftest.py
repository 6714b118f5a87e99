"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import contextlib
import logging
import os
import socket
import typing as typ

import pytest
import pytest_asyncio
from py_pglite import PGliteConfig, PGliteManager
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from gitcast.store import StoreGateway, init_storage

if typ.TYPE_CHECKING:
    from pathlib import Path

os.environ.setdefault("GITCAST_ALLOW_STUB_BROKER", "1")

logger = logging.getLogger(__name__)


def _should_use_pglite() -> bool:
    """Return True when tests should run against py-pglite Postgres."""
    return os.getenv("GITCAST_TEST_DB", "pglite").lower() != "sqlite"


def _find_free_port() -> int:
    """Find an available TCP port for a temporary Postgres instance."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@contextlib.asynccontextmanager
async def _pglite_engine(tmp_path: Path) -> typ.AsyncIterator[AsyncEngine]:
    """Start a py-pglite Postgres and yield an async engine bound to it."""
    port = _find_free_port()
    config = PGliteConfig(
        use_tcp=True,
        tcp_host="127.0.0.1",
        tcp_port=port,
        work_dir=tmp_path / "pglite",
    )

    with PGliteManager(config):
        url = (
            f"postgresql+asyncpg://postgres:postgres@{config.tcp_host}:"
            f"{config.tcp_port}/postgres"
        )
        engine = create_async_engine(url)
        try:
            yield engine
        finally:
            await engine.dispose()


async def _try_setup_pglite(
    tmp_path: Path,
) -> tuple[AsyncEngine, contextlib.AbstractAsyncContextManager[AsyncEngine]] | None:
    """Attempt to set up a py-pglite Postgres engine.

    Returns the engine and its context manager, or None when SQLite was
    requested or py-pglite fails to start.
    """
    if not _should_use_pglite():
        return None

    engine_cm = None
    try:
        engine_cm = _pglite_engine(tmp_path)
        engine = await engine_cm.__aenter__()
        await init_storage(engine)
    except Exception as exc:  # noqa: BLE001
        # pragma: no cover - fall back when py-pglite fails at any stage
        logger.warning("py-pglite unavailable, falling back to SQLite: %s", exc)
        if engine_cm is not None:
            with contextlib.suppress(Exception):
                await engine_cm.__aexit__(None, None, None)
        return None
    else:
        return (engine, engine_cm)


async def _setup_sqlite(tmp_path: Path) -> AsyncEngine:
    """Create a SQLite engine with the gitcast schema."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'gitcast_test.db'}")
    try:
        await init_storage(engine)
    except Exception:
        await engine.dispose()
        raise
    return engine


@pytest_asyncio.fixture
async def session_factory(
    tmp_path: Path,
) -> typ.AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Yield a fresh async session factory, Postgres first, else SQLite."""
    engine_cm = None
    result = await _try_setup_pglite(tmp_path)
    if result is not None:
        engine, engine_cm = result
    else:
        engine = await _setup_sqlite(tmp_path)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        yield factory
    finally:
        await engine.dispose()
        if engine_cm is not None:
            await engine_cm.__aexit__(None, None, None)


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> StoreGateway:
    """Return a store gateway over the test database."""
    return StoreGateway(session_factory)
