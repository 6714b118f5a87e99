"""Activity ingestion: pull recent public GitHub events into the store."""

from __future__ import annotations

import typing as typ

from gitcast.config import PipelineConfig
from gitcast.github.classifier import GITHUB_WEB_URL, classify_event
from gitcast.logging import get_logger, log_info
from gitcast.store.records import ActivityEventRow

if typ.TYPE_CHECKING:
    from gitcast.github.client import GitHubActivityClient
    from gitcast.github.models import GitHubEvent
    from gitcast.store.gateway import StoreGateway

    from .messages import FetchGitHubEvents

logger = get_logger(__name__)


def build_event_row(fid: int, event: GitHubEvent) -> ActivityEventRow:
    """Classify ``event`` and shape it as a row owned by ``fid``."""
    classification = classify_event(event)
    return ActivityEventRow(
        id=event.id,
        fid=fid,
        type=event.type,
        created_at=event.created_at,
        actor_login=event.actor.login,
        actor_avatar_url=event.actor.avatar_url,
        repo_name=event.repo.name,
        repo_url=f"{GITHUB_WEB_URL}/{event.repo.name}",
        action=classification.action,
        commit_message=classification.commit_message,
        commit_url=classification.commit_url,
        event_url=classification.event_url,
    )


class ActivityIngestionStage:
    """Consume ``fetch_github_events`` messages."""

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

    async def fetch_events(self, message: FetchGitHubEvents) -> int:
        """Upsert the most recent events of the linked account.

        At most ``event_pages`` pages of ``events_per_page`` events are read.
        Returns the number of distinct events written.
        """
        rows: list[ActivityEventRow] = []
        for page in range(1, self._config.event_pages + 1):
            events = await self._github.fetch_user_events(
                message.external_username,
                page=page,
                per_page=self._config.events_per_page,
            )
            rows.extend(build_event_row(message.fid, event) for event in events)
            if len(events) < self._config.events_per_page:
                break

        if not rows:
            log_info(
                logger,
                "No recent GitHub events for %s (fid=%d)",
                message.external_username,
                message.fid,
            )
            return 0

        await self._store.ensure_users([message.fid])
        written = await self._store.upsert_events(rows)
        log_info(
            logger,
            "Upserted %d GitHub events for %s (fid=%d)",
            written,
            message.external_username,
            message.fid,
        )
        return written


__all__ = ["ActivityIngestionStage", "build_event_row"]
