"""Time-triggered re-synchronisation of the pipeline.

Four triggers keep the store converging without user traffic:

- verification refresh reconciles the whole GitHub verification directory;
- activity refresh re-enqueues event ingestion for every linked account;
- star refresh re-enqueues star ingestion for every linked account;
- retention sweep deletes activity older than the retention horizon.

Each trigger runs in isolation: a failure is logged and reported in the
outcome list without preventing the remaining triggers from running.
"""

from __future__ import annotations

import asyncio
import dataclasses
import enum
import itertools
import typing as typ

from gitcast.common.time import utcnow
from gitcast.config import PipelineConfig
from gitcast.logging import get_logger, log_info
from gitcast.pipeline.messages import (
    FetchGitHubEvents,
    FetchStarredRepos,
    FetchUserData,
)
from gitcast.pipeline.observability import TaskEventLogger

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

    from gitcast.farcaster.client import VerificationDirectory
    from gitcast.farcaster.models import Verification
    from gitcast.pipeline.messages import TaskMessage
    from gitcast.pipeline.publisher import TaskPublisher
    from gitcast.store.gateway import StoreGateway

logger = get_logger(__name__)


class TriggerName(enum.StrEnum):
    """Scheduled triggers understood by :class:`RefreshScheduler`."""

    VERIFICATION_REFRESH = "verification_refresh"
    ACTIVITY_REFRESH = "activity_refresh"
    STAR_REFRESH = "star_refresh"
    RETENTION_SWEEP = "retention_sweep"


@dataclasses.dataclass(frozen=True, slots=True)
class TriggerOutcome:
    """Result of one trigger run."""

    trigger: TriggerName
    succeeded: bool
    affected: int = 0
    error: str | None = None


class RefreshScheduler:
    """Run scheduled triggers against the store and the task publisher."""

    def __init__(  # noqa: PLR0913
        self,
        store: StoreGateway,
        directory: VerificationDirectory,
        publisher: TaskPublisher,
        config: PipelineConfig | None = None,
        *,
        clock: cabc.Callable[[], dt.datetime] = utcnow,
        event_logger: TaskEventLogger | None = None,
    ) -> None:
        """Bind the scheduler to its collaborators."""
        self._store = store
        self._directory = directory
        self._publisher = publisher
        self._config = config or PipelineConfig()
        self._clock = clock
        self._events = event_logger or TaskEventLogger()

    async def _publish_batched(self, messages: cabc.Iterable[TaskMessage]) -> int:
        """Publish concurrently within a batch and sequentially across batches."""
        published = 0
        iterator = iter(messages)
        while batch := list(
            itertools.islice(iterator, self._config.scheduler_batch_size)
        ):
            await asyncio.gather(*(self._publisher.publish(msg) for msg in batch))
            published += len(batch)
        return published

    async def refresh_verifications(self) -> int:
        """Link every verified GitHub account and request profile enrichment."""
        latest: dict[int, Verification] = {}
        async for verification in self._directory.iter_github_verifications():
            current = latest.get(verification.fid)
            if current is None or verification.verified_at > current.verified_at:
                latest[verification.fid] = verification

        for fid in sorted(latest):
            await self._store.link_github(fid, latest[fid].platform_username)
        return await self._publish_batched(
            FetchUserData(fid=fid) for fid in sorted(latest)
        )

    async def refresh_activity(self) -> int:
        """Enqueue event ingestion for every linked account."""
        users = await self._store.linked_users()
        return await self._publish_batched(
            FetchGitHubEvents(fid=user.fid, external_username=user.github_username)
            for user in users
        )

    async def refresh_stars(self) -> int:
        """Enqueue star ingestion for every linked account."""
        users = await self._store.linked_users()
        return await self._publish_batched(
            FetchStarredRepos(fid=user.fid, external_username=user.github_username)
            for user in users
        )

    async def sweep_retention(self) -> int:
        """Delete activity events older than the retention horizon."""
        cutoff = self._clock() - self._config.retention
        deleted = await self._store.delete_events_before(cutoff)
        log_info(
            logger,
            "Deleted %d GitHub events created before %s",
            deleted,
            cutoff.isoformat(),
        )
        return deleted

    async def run_trigger(self, trigger: TriggerName) -> TriggerOutcome:
        """Run one trigger, converting any failure into a logged outcome."""
        handlers: dict[TriggerName, cabc.Callable[[], cabc.Awaitable[int]]] = {
            TriggerName.VERIFICATION_REFRESH: self.refresh_verifications,
            TriggerName.ACTIVITY_REFRESH: self.refresh_activity,
            TriggerName.STAR_REFRESH: self.refresh_stars,
            TriggerName.RETENTION_SWEEP: self.sweep_retention,
        }
        started = utcnow()
        try:
            affected = await handlers[trigger]()
        except Exception as exc:
            self._events.log_trigger_failed(
                trigger=trigger, error=exc, duration=utcnow() - started
            )
            return TriggerOutcome(trigger=trigger, succeeded=False, error=str(exc))
        self._events.log_trigger_completed(
            trigger=trigger, duration=utcnow() - started, affected=affected
        )
        return TriggerOutcome(trigger=trigger, succeeded=True, affected=affected)

    async def run(self, triggers: cabc.Iterable[TriggerName]) -> list[TriggerOutcome]:
        """Run ``triggers`` in order; one failure never blocks the rest."""
        return [await self.run_trigger(trigger) for trigger in triggers]


__all__ = ["RefreshScheduler", "TriggerName", "TriggerOutcome"]
