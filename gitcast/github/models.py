"""Typed shapes of the GitHub REST payloads gitcast consumes.

Only the fields read downstream are declared; msgspec ignores the rest, so
new upstream fields never break decoding while renamed or retyped ones
surface as :class:`msgspec.ValidationError`.
"""

from __future__ import annotations

import datetime as dt  # noqa: TC003
import typing as typ

import msgspec


class EventActor(msgspec.Struct, kw_only=True, frozen=True):
    """Account that performed an activity event."""

    login: str
    avatar_url: str | None = None


class EventRepo(msgspec.Struct, kw_only=True, frozen=True):
    """Repository reference embedded in an activity event."""

    name: str
    url: str | None = None


class GitHubEvent(msgspec.Struct, kw_only=True, frozen=True):
    """One entry from ``GET /users/{username}/events``.

    ``payload`` stays an untyped mapping because its shape varies per event
    type; the classifier reads it defensively.
    """

    id: str
    type: str
    actor: EventActor
    repo: EventRepo
    created_at: dt.datetime
    payload: dict[str, typ.Any] = msgspec.field(default_factory=dict)


class GitHubRepository(msgspec.Struct, kw_only=True, frozen=True):
    """Repository snapshot as returned by the starred listing."""

    id: int
    name: str
    full_name: str
    url: str
    html_url: str
    description: str | None = None
    stargazers_count: int = 0
    forks_count: int = 0


class TimestampedStar(msgspec.Struct, kw_only=True, frozen=True):
    """Starred entry returned with the ``star+json`` media type."""

    starred_at: dt.datetime
    repo: GitHubRepository


class StarredRepository(msgspec.Struct, kw_only=True, frozen=True):
    """Normalised starred entry; ``starred_at`` is ``None`` when unknown."""

    repository: GitHubRepository
    starred_at: dt.datetime | None = None


__all__ = [
    "EventActor",
    "EventRepo",
    "GitHubEvent",
    "GitHubRepository",
    "StarredRepository",
    "TimestampedStar",
]
