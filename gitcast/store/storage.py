"""Relational models for users, follow edges, activity events and stars."""

from __future__ import annotations

import datetime as dt
import typing as typ

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from gitcast.common.time import utcnow

if typ.TYPE_CHECKING:
    from sqlalchemy.engine import Dialect
    from sqlalchemy.ext.asyncio import AsyncEngine


class TimezoneAwareRequiredError(ValueError):
    """Raised when a naive datetime is bound to a UTC column."""

    def __init__(self) -> None:
        """Attach a consistent message."""
        super().__init__("datetime values must be timezone aware")


class Base(DeclarativeBase):
    """Declarative base for gitcast tables."""


class UTCDateTime(TypeDecorator[dt.datetime]):
    """DateTime wrapper that round-trips UTC tzinfo even on SQLite."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Force bound datetime values to UTC with tzinfo."""
        if value is None:
            return None
        if value.tzinfo is None:
            raise TimezoneAwareRequiredError
        return value.astimezone(dt.UTC)

    def process_result_value(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Ensure result datetimes are UTC and timezone aware."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value.astimezone(dt.UTC)


class User(Base):
    """Social identity, enriched incrementally by the pipeline."""

    __tablename__ = "users"

    fid: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    farcaster_username: Mapped[str | None] = mapped_column(String(255), default=None)
    farcaster_display_name: Mapped[str | None] = mapped_column(
        String(255), default=None
    )
    farcaster_pfp_url: Mapped[str | None] = mapped_column(Text(), default=None)
    github_username: Mapped[str | None] = mapped_column(String(255), default=None)
    last_updated: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)


class Follow(Base):
    """Directed follow edge between two identities."""

    __tablename__ = "follows"
    __table_args__ = (Index("idx_follows_follower_fid", "follower_fid"),)

    follower_fid: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.fid"), primary_key=True, autoincrement=False
    )
    following_fid: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.fid"), primary_key=True, autoincrement=False
    )
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)


class GitHubEventRecord(Base):
    """Activity event ingested from GitHub, keyed by the upstream id."""

    __tablename__ = "github_events"
    __table_args__ = (
        Index("idx_github_events_fid", "fid"),
        Index("idx_github_events_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    fid: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.fid"))
    type: Mapped[str] = mapped_column(String(64))
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime())
    actor_login: Mapped[str] = mapped_column(String(255))
    actor_avatar_url: Mapped[str | None] = mapped_column(Text(), default=None)
    repo_name: Mapped[str] = mapped_column(String(255))
    repo_url: Mapped[str] = mapped_column(Text())
    action: Mapped[str] = mapped_column(String(255))
    commit_message: Mapped[str | None] = mapped_column(Text(), default=None)
    commit_url: Mapped[str | None] = mapped_column(Text(), default=None)
    event_url: Mapped[str] = mapped_column(Text())


class RepositoryRecord(Base):
    """GitHub repository starred by at least one tracked user."""

    __tablename__ = "repositories"
    __table_args__ = (Index("idx_repositories_stars", "stars_count"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    full_name: Mapped[str] = mapped_column(String(512))
    description: Mapped[str | None] = mapped_column(Text(), default=None)
    url: Mapped[str] = mapped_column(Text())
    html_url: Mapped[str] = mapped_column(Text())
    stars_count: Mapped[int] = mapped_column(Integer, default=0)
    forks_count: Mapped[int] = mapped_column(Integer, default=0)
    last_updated: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)


class UserStar(Base):
    """Insert-only record of a user starring a repository."""

    __tablename__ = "user_stars"
    __table_args__ = (
        Index("idx_user_stars_repo_id", "repo_id"),
        Index("idx_user_stars_fid", "fid"),
    )

    fid: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.fid"), primary_key=True, autoincrement=False
    )
    repo_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("repositories.id"), primary_key=True
    )
    starred_at: Mapped[dt.datetime] = mapped_column(UTCDateTime())


async def init_storage(engine: AsyncEngine) -> None:
    """Create all tables registered with Base if they are absent."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
