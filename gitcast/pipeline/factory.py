"""Build pipeline collaborators from environment configuration."""

from __future__ import annotations

import typing as typ

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from gitcast.config import PipelineConfig, require_env
from gitcast.farcaster.client import (
    NeynarClient,
    NeynarConfig,
    WarpcastClient,
    WarpcastConfig,
)
from gitcast.github.client import GitHubConfig, GitHubRestClient
from gitcast.store.gateway import StoreGateway

from .dispatch import PipelineDependencies
from .publisher import DramatiqTaskPublisher

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    SessionFactory: typ.TypeAlias = async_sessionmaker[AsyncSession]


def create_session_factory(database_url: str | None = None) -> SessionFactory:
    """Return a session factory for ``database_url`` or ``GITCAST_DATABASE_URL``."""
    url = database_url or require_env("GITCAST_DATABASE_URL")
    engine = create_async_engine(url, pool_pre_ping=True)
    return async_sessionmaker(engine, expire_on_commit=False)


def create_pipeline_dependencies() -> PipelineDependencies:
    """Create stage collaborators for a worker process.

    Reads the following environment variables:

    - ``GITCAST_DATABASE_URL``: Required SQLAlchemy async URL.
    - ``GITCAST_NEYNAR_API_KEY``: Required Neynar API key.
    - ``GITCAST_GITHUB_TOKEN``: Required GitHub token.
    - ``GITCAST_*`` pipeline knobs read by :meth:`PipelineConfig.from_env`.

    Raises
    ------
    ValueError
        If the database URL or a pipeline knob is missing or invalid.
    FarcasterConfigError, GitHubConfigError
        If an upstream credential is missing.

    """
    return PipelineDependencies(
        store=StoreGateway(create_session_factory()),
        publisher=DramatiqTaskPublisher(),
        graph=NeynarClient(NeynarConfig.from_env()),
        directory=WarpcastClient(WarpcastConfig.from_env()),
        github=GitHubRestClient(GitHubConfig.from_env()),
        config=PipelineConfig.from_env(),
    )


__all__ = ["create_pipeline_dependencies", "create_session_factory"]
