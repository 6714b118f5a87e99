"""GitHub REST client used by the activity and star ingestion stages."""

from __future__ import annotations

import dataclasses
import os
import typing as typ

import httpx
import msgspec

from .errors import GitHubAPIError, GitHubConfigError, GitHubResponseShapeError
from .models import GitHubEvent, GitHubRepository, StarredRepository, TimestampedStar
from .ratelimit import RateLimitGate

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class GitHubActivityClient(typ.Protocol):
    """Interface for fetching per-user GitHub activity and stars."""

    async def fetch_user_events(
        self, username: str, *, page: int = 1, per_page: int = 30
    ) -> list[GitHubEvent]:
        """Return one page of the user's public events, newest first."""
        ...

    def iter_starred(
        self, username: str, *, per_page: int = 100, max_pages: int = 50
    ) -> cabc.AsyncIterator[StarredRepository]:
        """Yield every repository the user has starred."""
        ...


DEFAULT_GITHUB_API_URL = "https://api.github.com"


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubConfig:
    """Configuration for the GitHub REST API client."""

    token: str
    base_url: str = DEFAULT_GITHUB_API_URL
    timeout_s: float = 20.0
    user_agent: str = "gitcast/0.1"
    api_version: str = "2022-11-28"

    @classmethod
    def from_env(cls) -> GitHubConfig:
        """Build configuration using the ``GITCAST_GITHUB_TOKEN`` env var."""
        token = os.environ.get("GITCAST_GITHUB_TOKEN", "").strip()
        if not token:
            raise GitHubConfigError.missing_token()
        base_url = os.environ.get("GITCAST_GITHUB_API_URL", "").strip()
        return cls(token=token, base_url=base_url or DEFAULT_GITHUB_API_URL)


_STAR_MEDIA_TYPE = "application/vnd.github.star+json"
_HTTP_ERROR_STATUS_THRESHOLD = 400

_EVENTS_DECODER = msgspec.json.Decoder(list[GitHubEvent])
_RAW_LIST_DECODER = msgspec.json.Decoder(list[dict[str, typ.Any]])


def _starred_entry(item: dict[str, typ.Any]) -> StarredRepository:
    """Resolve either starred-listing shape into one normalised entry."""
    if "starred_at" in item and "repo" in item:
        wrapped = msgspec.convert(item, type=TimestampedStar)
        return StarredRepository(repository=wrapped.repo, starred_at=wrapped.starred_at)
    return StarredRepository(repository=msgspec.convert(item, type=GitHubRepository))


class GitHubRestClient:
    """GitHub REST implementation of :class:`GitHubActivityClient`."""

    def __init__(
        self,
        config: GitHubConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        gate: RateLimitGate | None = None,
    ) -> None:
        """Initialise the client with the provided API configuration."""
        if not config.token.strip():
            raise GitHubConfigError.empty_token()

        self._config = config
        self._gate = gate or RateLimitGate()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_s,
            headers={
                "Authorization": f"Bearer {config.token}",
                "User-Agent": config.user_agent,
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": config.api_version,
            },
        )

    @property
    def rate_limit(self) -> RateLimitGate:
        """Return the gate tracking this client's request budget."""
        return self._gate

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def fetch_user_events(
        self, username: str, *, page: int = 1, per_page: int = 30
    ) -> list[GitHubEvent]:
        """Return one page of ``username``'s public events."""
        path = f"/users/{username}/events"
        response = await self._get(path, params={"per_page": per_page, "page": page})
        try:
            return _EVENTS_DECODER.decode(response.content)
        except msgspec.DecodeError as exc:
            raise GitHubResponseShapeError.invalid(path, str(exc)) from exc

    async def iter_starred(
        self, username: str, *, per_page: int = 100, max_pages: int = 50
    ) -> typ.AsyncIterator[StarredRepository]:
        """Yield ``username``'s starred repositories across all pages.

        Pagination follows the ``Link: rel="next"`` header and stops after
        ``max_pages`` pages even when more are advertised.
        """
        path = f"/users/{username}/starred"
        url: str | None = path
        params: dict[str, typ.Any] | None = {"per_page": per_page, "page": 1}
        pages = 0
        while url is not None and pages < max_pages:
            response = await self._get(
                url, params=params, headers={"Accept": _STAR_MEDIA_TYPE}
            )
            pages += 1
            try:
                items = _RAW_LIST_DECODER.decode(response.content)
                entries = [_starred_entry(item) for item in items]
            except msgspec.DecodeError as exc:
                raise GitHubResponseShapeError.invalid(path, str(exc)) from exc
            for entry in entries:
                yield entry
            if not items:
                return
            url = response.links.get("next", {}).get("url")
            # The next link already carries the query string.
            params = None

    async def _get(
        self,
        url: str,
        *,
        params: dict[str, typ.Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        await self._gate.wait()
        response = await self._client.get(url, params=params, headers=headers)
        self._gate.observe(response)
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise GitHubAPIError.http_error(response.status_code, response.url.path)
        return response


__all__ = ["GitHubActivityClient", "GitHubConfig", "GitHubRestClient"]
