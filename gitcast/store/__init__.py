"""Relational storage and the upsert-oriented gateway over it."""

from __future__ import annotations

from .gateway import StoreGateway, UnsupportedDialectError
from .records import (
    ActivityEventRow,
    FeedEntry,
    FollowDiff,
    FollowStats,
    LinkedUser,
    RankedRepository,
    RepositoryRow,
    StarRow,
    UserProfile,
)
from .storage import (
    Base,
    Follow,
    GitHubEventRecord,
    RepositoryRecord,
    User,
    UserStar,
    init_storage,
)

__all__ = [
    "ActivityEventRow",
    "Base",
    "FeedEntry",
    "Follow",
    "FollowDiff",
    "FollowStats",
    "GitHubEventRecord",
    "LinkedUser",
    "RankedRepository",
    "RepositoryRecord",
    "RepositoryRow",
    "StarRow",
    "StoreGateway",
    "UnsupportedDialectError",
    "User",
    "UserProfile",
    "UserStar",
    "init_storage",
]
