"""Verification matching: link identities to their verified GitHub accounts."""

from __future__ import annotations

import typing as typ

from gitcast.logging import get_logger, log_info
from gitcast.store.records import LinkedUser

from .messages import FetchGitHubEvents

if typ.TYPE_CHECKING:
    from gitcast.farcaster.client import VerificationDirectory
    from gitcast.store.gateway import StoreGateway

    from .messages import CheckGitHubVerifications
    from .publisher import TaskPublisher

logger = get_logger(__name__)


class VerificationMatchingStage:
    """Consume ``check_github_verifications`` messages."""

    def __init__(
        self,
        store: StoreGateway,
        directory: VerificationDirectory,
        publisher: TaskPublisher,
    ) -> None:
        """Bind the stage to its store, verification directory and publisher."""
        self._store = store
        self._directory = directory
        self._publisher = publisher

    async def check(self, message: CheckGitHubVerifications) -> list[LinkedUser]:
        """Link every requested identity that has a GitHub verification.

        Identities without a verification are left untouched. A matched
        identity with no user row yet gets one created.
        """
        matches = await self._directory.lookup_github_verifications(message.fids)
        linked: list[LinkedUser] = []
        for fid in sorted(matches):
            username = matches[fid].platform_username
            await self._store.link_github(fid, username)
            await self._publisher.publish(
                FetchGitHubEvents(fid=fid, external_username=username)
            )
            linked.append(LinkedUser(fid=fid, github_username=username))

        log_info(
            logger,
            "Matched %d of %d identities to GitHub accounts",
            len(linked),
            len(set(message.fids)),
        )
        return linked


__all__ = ["VerificationMatchingStage"]
