"""Identity resolution: follow-graph refresh and social profile enrichment."""

from __future__ import annotations

import dataclasses
import itertools
import typing as typ

from gitcast.config import PipelineConfig
from gitcast.logging import get_logger, log_info
from gitcast.store.records import UserProfile

from .messages import CheckGitHubVerifications, FetchUserData

if typ.TYPE_CHECKING:
    from gitcast.farcaster.client import SocialGraphClient
    from gitcast.store.gateway import StoreGateway

    from .messages import UpdateUser
    from .publisher import TaskPublisher

logger = get_logger(__name__)

# Identities per check_github_verifications message.
VERIFICATION_CHUNK = 100


@dataclasses.dataclass(frozen=True, slots=True)
class IdentityResolutionResult:
    """Summary of one follow-graph refresh."""

    fid: int
    following: int
    added: int
    removed: int
    enrichment_requested: int
    published: int


class IdentityResolutionStage:
    """Consume ``update_user`` and ``fetch_user_data`` messages."""

    def __init__(
        self,
        store: StoreGateway,
        graph: SocialGraphClient,
        publisher: TaskPublisher,
        config: PipelineConfig | None = None,
    ) -> None:
        """Bind the stage to its store, social-graph client and publisher."""
        self._store = store
        self._graph = graph
        self._publisher = publisher
        self._config = config or PipelineConfig()

    async def update_user(self, message: UpdateUser) -> IdentityResolutionResult:
        """Replace the follower's edge set with the current following list.

        The full list is fetched before the store is touched, so an upstream
        failure leaves the previous edge set intact.
        """
        fid = message.fid
        fetched = [
            following
            async for following in self._graph.iter_following(
                fid, max_pages=self._config.following_max_pages
            )
        ]
        following = [
            candidate for candidate in dict.fromkeys(fetched) if candidate != fid
        ]

        diff = await self._store.replace_following(fid, following)
        pending = await self._store.unenriched_fids(following)
        for pending_fid in pending:
            await self._publisher.publish(FetchUserData(fid=pending_fid))

        published = len(pending)
        candidates = iter([*following, fid])
        while chunk := tuple(itertools.islice(candidates, VERIFICATION_CHUNK)):
            await self._publisher.publish(CheckGitHubVerifications(fids=chunk))
            published += 1

        log_info(
            logger,
            "Refreshed follows for fid=%d: following=%d added=%d removed=%d",
            fid,
            len(following),
            len(diff.added),
            len(diff.removed),
        )
        return IdentityResolutionResult(
            fid=fid,
            following=len(following),
            added=len(diff.added),
            removed=len(diff.removed),
            enrichment_requested=len(pending),
            published=published,
        )

    async def fetch_user_data(self, message: FetchUserData) -> bool:
        """Store the identity's social profile; return whether one was found."""
        users = await self._graph.fetch_users([message.fid])
        user = users.get(message.fid)
        if user is None:
            log_info(logger, "No social profile found for fid=%d", message.fid)
            return False
        await self._store.upsert_profile(
            UserProfile(
                fid=user.fid,
                username=user.username or "",
                display_name=user.display_name or "",
                pfp_url=user.pfp_url or "",
            )
        )
        return True


__all__ = ["VERIFICATION_CHUNK", "IdentityResolutionResult", "IdentityResolutionStage"]
