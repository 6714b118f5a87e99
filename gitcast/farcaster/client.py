"""HTTP clients for the Neynar social graph and the Warpcast verification directory."""

from __future__ import annotations

import dataclasses
import itertools
import os
import typing as typ

import httpx
import msgspec

from .errors import FarcasterAPIError, FarcasterConfigError, FarcasterResponseShapeError
from .models import BulkUsersResponse, FollowingPage, VerificationsPage

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .models import NeynarUser, Verification

DEFAULT_NEYNAR_API_URL = "https://api.neynar.com"
DEFAULT_WARPCAST_API_URL = "https://api.warpcast.com"
BULK_USERS_CHUNK = 100
FOLLOWING_PAGE_SIZE = 100
GITHUB_PLATFORM = "github"

_HTTP_ERROR_STATUS_THRESHOLD = 400


class SocialGraphClient(typ.Protocol):
    """Interface for following lists and bulk profile lookups."""

    def iter_following(
        self, fid: int, *, max_pages: int = 10
    ) -> cabc.AsyncIterator[int]:
        """Yield every identity ``fid`` follows."""
        ...

    async def fetch_users(self, fids: cabc.Sequence[int]) -> dict[int, NeynarUser]:
        """Return the profiles found for ``fids`` keyed by identity."""
        ...


class VerificationDirectory(typ.Protocol):
    """Interface for GitHub account verifications."""

    def iter_github_verifications(
        self, *, max_pages: int | None = None
    ) -> cabc.AsyncIterator[Verification]:
        """Yield every GitHub verification in the directory."""
        ...

    async def lookup_github_verifications(
        self, fids: cabc.Iterable[int]
    ) -> dict[int, Verification]:
        """Return the newest GitHub verification for each of ``fids`` that has one."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class NeynarConfig:
    """Configuration for the Neynar API client."""

    api_key: str
    base_url: str = DEFAULT_NEYNAR_API_URL
    timeout_s: float = 20.0
    user_agent: str = "gitcast/0.1"

    @classmethod
    def from_env(cls) -> NeynarConfig:
        """Build configuration using the ``GITCAST_NEYNAR_API_KEY`` env var."""
        api_key = os.environ.get("GITCAST_NEYNAR_API_KEY", "").strip()
        if not api_key:
            raise FarcasterConfigError.missing_api_key()
        base_url = os.environ.get("GITCAST_NEYNAR_API_URL", "").strip()
        return cls(api_key=api_key, base_url=base_url or DEFAULT_NEYNAR_API_URL)


@dataclasses.dataclass(frozen=True, slots=True)
class WarpcastConfig:
    """Configuration for the Warpcast verification directory client."""

    base_url: str = DEFAULT_WARPCAST_API_URL
    timeout_s: float = 20.0
    user_agent: str = "gitcast/0.1"

    @classmethod
    def from_env(cls) -> WarpcastConfig:
        """Build configuration, honouring ``GITCAST_WARPCAST_API_URL`` if set."""
        base_url = os.environ.get("GITCAST_WARPCAST_API_URL", "").strip()
        return cls(base_url=base_url or DEFAULT_WARPCAST_API_URL)


T = typ.TypeVar("T")


def _decode(service: str, response: httpx.Response, type_: type[T]) -> T:
    try:
        return msgspec.json.decode(response.content, type=type_)
    except msgspec.DecodeError as exc:
        raise FarcasterResponseShapeError.invalid(
            service, response.url.path, str(exc)
        ) from exc


def _raise_for_status(service: str, response: httpx.Response) -> None:
    if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
        raise FarcasterAPIError.http_error(
            service, response.status_code, response.url.path
        )


class NeynarClient:
    """Neynar implementation of :class:`SocialGraphClient`."""

    _service = "Neynar"

    def __init__(
        self,
        config: NeynarConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client with the provided API configuration."""
        if not config.api_key.strip():
            raise FarcasterConfigError.empty_api_key()

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_s,
            headers={
                "x-api-key": config.api_key,
                "User-Agent": config.user_agent,
                "Accept": "application/json",
            },
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def iter_following(
        self, fid: int, *, max_pages: int = 10
    ) -> typ.AsyncIterator[int]:
        """Yield the identities ``fid`` follows, in Neynar's ranking order."""
        cursor: str | None = None
        for _ in range(max_pages):
            params: dict[str, typ.Any] = {
                "fid": fid,
                "viewer_fid": fid,
                "sort_type": "algorithmic",
                "limit": FOLLOWING_PAGE_SIZE,
            }
            if cursor:
                params["cursor"] = cursor
            response = await self._client.get("/v2/farcaster/following", params=params)
            _raise_for_status(self._service, response)
            page = _decode(self._service, response, FollowingPage)
            for entry in page.users:
                yield entry.user.fid
            cursor = page.next.cursor if page.next is not None else None
            if not cursor or not page.users:
                return

    async def fetch_users(self, fids: cabc.Sequence[int]) -> dict[int, NeynarUser]:
        """Return profiles for ``fids``, requested in chunks of 100."""
        found: dict[int, NeynarUser] = {}
        iterator = iter(dict.fromkeys(fids))
        while chunk := list(itertools.islice(iterator, BULK_USERS_CHUNK)):
            response = await self._client.get(
                "/v2/farcaster/user/bulk",
                params={"fids": ",".join(str(fid) for fid in chunk)},
            )
            _raise_for_status(self._service, response)
            body = _decode(self._service, response, BulkUsersResponse)
            found.update((user.fid, user) for user in body.users)
        return found


class WarpcastClient:
    """Warpcast implementation of :class:`VerificationDirectory`."""

    _service = "Warpcast"
    _path = "/fc/account-verifications"

    def __init__(
        self,
        config: WarpcastConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client with the provided configuration."""
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_s,
            headers={"User-Agent": config.user_agent, "Accept": "application/json"},
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def _page(self, params: dict[str, typ.Any]) -> VerificationsPage:
        response = await self._client.get(self._path, params=params)
        _raise_for_status(self._service, response)
        return _decode(self._service, response, VerificationsPage)

    async def iter_github_verifications(
        self, *, max_pages: int | None = None
    ) -> typ.AsyncIterator[Verification]:
        """Yield every GitHub verification, following the response cursor."""
        cursor: str | None = None
        pages = 0
        while max_pages is None or pages < max_pages:
            params: dict[str, typ.Any] = {"platform": GITHUB_PLATFORM}
            if cursor:
                params["cursor"] = cursor
            page = await self._page(params)
            pages += 1
            for verification in page.result.verifications:
                yield verification
            cursor = page.next.cursor if page.next is not None else None
            if not cursor:
                return

    async def lookup_github_verifications(
        self, fids: cabc.Iterable[int]
    ) -> dict[int, Verification]:
        """Return the newest GitHub verification per identity.

        Identities without a verification are absent from the result.
        """
        matches: dict[int, Verification] = {}
        for fid in dict.fromkeys(fids):
            page = await self._page({"fid": fid, "platform": GITHUB_PLATFORM})
            for verification in page.result.verifications:
                if (
                    verification.platform != GITHUB_PLATFORM
                    or verification.fid != fid
                ):
                    continue
                current = matches.get(fid)
                if current is None or verification.verified_at > current.verified_at:
                    matches[fid] = verification
        return matches


__all__ = [
    "NeynarClient",
    "NeynarConfig",
    "SocialGraphClient",
    "VerificationDirectory",
    "WarpcastClient",
    "WarpcastConfig",
]
