"""Plain value objects passed into and out of the store gateway."""

from __future__ import annotations

import dataclasses
import typing as typ

if typ.TYPE_CHECKING:
    import datetime as dt


@dataclasses.dataclass(frozen=True, slots=True)
class UserProfile:
    """Social profile fields resolved for one identity."""

    fid: int
    username: str
    display_name: str
    pfp_url: str


@dataclasses.dataclass(frozen=True, slots=True)
class ActivityEventRow:
    """Classified activity event ready to be upserted."""

    id: str
    fid: int
    type: str
    created_at: dt.datetime
    actor_login: str
    actor_avatar_url: str | None
    repo_name: str
    repo_url: str
    action: str
    commit_message: str | None
    commit_url: str | None
    event_url: str


@dataclasses.dataclass(frozen=True, slots=True)
class RepositoryRow:
    """Repository snapshot taken from a starred-repository listing."""

    id: str
    name: str
    full_name: str
    description: str | None
    url: str
    html_url: str
    stars_count: int
    forks_count: int


@dataclasses.dataclass(frozen=True, slots=True)
class StarRow:
    """A user's star on a repository."""

    repository: RepositoryRow
    starred_at: dt.datetime


@dataclasses.dataclass(frozen=True, slots=True)
class FollowDiff:
    """Outcome of reconciling a follower's edge set."""

    added: frozenset[int]
    removed: frozenset[int]


@dataclasses.dataclass(frozen=True, slots=True)
class LinkedUser:
    """Identity with a verified GitHub username."""

    fid: int
    github_username: str


@dataclasses.dataclass(frozen=True, slots=True)
class FeedEntry:
    """Activity event joined with its owner's social profile."""

    event: ActivityEventRow
    farcaster_username: str | None
    farcaster_display_name: str | None
    farcaster_pfp_url: str | None


@dataclasses.dataclass(frozen=True, slots=True)
class FollowStats:
    """Counts reported by the status endpoint."""

    follows: int
    github_users: int
    events: int


@dataclasses.dataclass(frozen=True, slots=True)
class RankedRepository:
    """Repository with the number of tracked users who starred it."""

    repository: RepositoryRow
    last_updated: dt.datetime
    farcaster_stars_count: int
