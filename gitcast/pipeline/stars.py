"""Star ingestion: record the repositories a linked account has starred."""

from __future__ import annotations

import typing as typ

from gitcast.common.time import utcnow
from gitcast.config import PipelineConfig
from gitcast.logging import get_logger, log_info
from gitcast.store.records import RepositoryRow, StarRow

if typ.TYPE_CHECKING:
    import datetime as dt

    from gitcast.github.client import GitHubActivityClient
    from gitcast.github.models import StarredRepository
    from gitcast.store.gateway import StoreGateway

    from .messages import FetchStarredRepos

logger = get_logger(__name__)


def build_star_row(entry: StarredRepository, *, fallback: dt.datetime) -> StarRow:
    """Shape a starred entry; ``fallback`` stands in for an unknown star time."""
    repo = entry.repository
    return StarRow(
        repository=RepositoryRow(
            id=str(repo.id),
            name=repo.name,
            full_name=repo.full_name,
            description=repo.description,
            url=repo.url,
            html_url=repo.html_url,
            stars_count=repo.stargazers_count,
            forks_count=repo.forks_count,
        ),
        starred_at=entry.starred_at or fallback,
    )


class StarIngestionStage:
    """Consume ``fetch_starred_repos`` messages."""

    def __init__(
        self,
        store: StoreGateway,
        github: GitHubActivityClient,
        config: PipelineConfig | None = None,
    ) -> None:
        """Bind the stage to its store and GitHub client."""
        self._store = store
        self._github = github
        self._config = config or PipelineConfig()

    async def fetch_starred(self, message: FetchStarredRepos) -> int:
        """Refresh starred repositories and add new star edges.

        Existing star edges keep their original ``starred_at``. The user's
        ``last_updated`` is touched once after the whole listing is stored.
        """
        now = utcnow()
        stars = [
            build_star_row(entry, fallback=now)
            async for entry in self._github.iter_starred(
                message.external_username,
                per_page=self._config.starred_page_size,
                max_pages=self._config.starred_max_pages,
            )
        ]
        refreshed = await self._store.record_stars(message.fid, stars, now=now)
        await self._store.touch_user(message.fid, now=now)
        log_info(
            logger,
            "Recorded %d starred repositories for %s (fid=%d)",
            refreshed,
            message.external_username,
            message.fid,
        )
        return refreshed


__all__ = ["StarIngestionStage", "build_star_row"]
