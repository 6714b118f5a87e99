"""Route decoded task messages to their consuming stage."""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

from gitcast.common.time import utcnow
from gitcast.config import PipelineConfig

from .activity import ActivityIngestionStage
from .identity import IdentityResolutionStage
from .messages import (
    CheckGitHubVerifications,
    FetchGitHubEvents,
    FetchStarredRepos,
    FetchUserData,
    UpdateUser,
    message_type,
)
from .observability import TaskEventLogger
from .stars import StarIngestionStage
from .verification import VerificationMatchingStage

if typ.TYPE_CHECKING:
    from gitcast.farcaster.client import SocialGraphClient, VerificationDirectory
    from gitcast.github.client import GitHubActivityClient
    from gitcast.store.gateway import StoreGateway

    from .messages import TaskMessage
    from .publisher import TaskPublisher


@dataclasses.dataclass(frozen=True, slots=True)
class PipelineDependencies:
    """Collaborators shared by every stage in one worker process."""

    store: StoreGateway
    publisher: TaskPublisher
    graph: SocialGraphClient
    directory: VerificationDirectory
    github: GitHubActivityClient
    config: PipelineConfig = dataclasses.field(default_factory=PipelineConfig)


class _CountingPublisher:
    """Publisher wrapper counting follow-up messages for lifecycle logs."""

    def __init__(self, inner: TaskPublisher) -> None:
        self._inner = inner
        self.count = 0

    async def publish(self, message: TaskMessage) -> None:
        await self._inner.publish(message)
        self.count += 1


async def _run_stage(
    message: TaskMessage, deps: PipelineDependencies, publisher: TaskPublisher
) -> object:
    match message:
        case UpdateUser():
            stage = IdentityResolutionStage(
                deps.store, deps.graph, publisher, deps.config
            )
            return await stage.update_user(message)
        case FetchUserData():
            stage = IdentityResolutionStage(
                deps.store, deps.graph, publisher, deps.config
            )
            return await stage.fetch_user_data(message)
        case CheckGitHubVerifications():
            return await VerificationMatchingStage(
                deps.store, deps.directory, publisher
            ).check(message)
        case FetchGitHubEvents():
            return await ActivityIngestionStage(
                deps.store, deps.github, deps.config
            ).fetch_events(message)
        case FetchStarredRepos():
            return await StarIngestionStage(
                deps.store, deps.github, deps.config
            ).fetch_starred(message)
    typ.assert_never(message)


async def dispatch(
    message: TaskMessage,
    deps: PipelineDependencies,
    *,
    message_id: str | None = None,
    event_logger: TaskEventLogger | None = None,
) -> object:
    """Run the stage consuming ``message`` within the task timeout.

    Parameters
    ----------
    message
        Decoded task message.
    deps
        Store, publisher and upstream clients for this process.
    message_id
        Broker message id, used only for log correlation.
    event_logger
        Lifecycle event sink; a default logger is used when omitted.

    Returns
    -------
    object
        The stage's result summary.

    Raises
    ------
    TimeoutError
        If the stage exceeds ``deps.config.task_timeout_s``.

    """
    events = event_logger or TaskEventLogger()
    kind = message_type(message)
    publisher = _CountingPublisher(deps.publisher)
    started = utcnow()
    events.log_task_started(message_type=kind, message_id=message_id)
    try:
        async with asyncio.timeout(deps.config.task_timeout_s):
            result = await _run_stage(message, deps, publisher)
    except Exception as exc:
        events.log_task_failed(
            message_type=kind,
            message_id=message_id,
            error=exc,
            duration=utcnow() - started,
        )
        raise
    events.log_task_completed(
        message_type=kind,
        message_id=message_id,
        duration=utcnow() - started,
        published=publisher.count,
    )
    return result


__all__ = ["PipelineDependencies", "dispatch"]
