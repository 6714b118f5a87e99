"""Upsert-oriented data access over the five gitcast tables.

Every write is keyed by a natural or composite primary key so pipeline
stages can be re-run on a redelivered message without duplicating rows.
The gateway owns its sessions: callers pass values, never ORM objects.
"""

from __future__ import annotations

import itertools
import typing as typ

from sqlalchemy import delete, func, or_, select
from sqlalchemy.dialects import postgresql, sqlite

from gitcast.common.time import utcnow

from .records import (
    ActivityEventRow,
    FeedEntry,
    FollowDiff,
    FollowStats,
    LinkedUser,
    RankedRepository,
    RepositoryRow,
)
from .storage import Follow, GitHubEventRecord, RepositoryRecord, User, UserStar

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
    from sqlalchemy.sql.selectable import Select

    from .records import StarRow, UserProfile

    SessionFactory: typ.TypeAlias = async_sessionmaker[AsyncSession]

# Rows per multi-values INSERT; keeps SQLite under its bound-parameter limit.
_INSERT_CHUNK = 200

_EVENT_MUTABLE_COLUMNS = (
    "fid",
    "type",
    "created_at",
    "actor_login",
    "actor_avatar_url",
    "repo_name",
    "repo_url",
    "action",
    "commit_message",
    "commit_url",
    "event_url",
)

_REPOSITORY_MUTABLE_COLUMNS = (
    "name",
    "full_name",
    "description",
    "url",
    "html_url",
    "stars_count",
    "forks_count",
    "last_updated",
)


class UnsupportedDialectError(RuntimeError):
    """Raised when the bound database has no native upsert support here."""

    def __init__(self, dialect: str) -> None:
        """Record the offending dialect name."""
        super().__init__(f"upserts are not supported on dialect {dialect!r}")


def _insert_for(session: AsyncSession, model: type[typ.Any]) -> typ.Any:  # noqa: ANN401
    """Return the dialect-specific INSERT construct supporting ON CONFLICT."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise UnsupportedDialectError(dialect)


T = typ.TypeVar("T")


def _chunks(items: cabc.Iterable[T], size: int) -> cabc.Iterator[list[T]]:
    iterator = iter(items)
    while chunk := list(itertools.islice(iterator, size)):
        yield chunk


def _event_values(row: ActivityEventRow) -> dict[str, typ.Any]:
    return {
        "id": row.id,
        "fid": row.fid,
        "type": row.type,
        "created_at": row.created_at,
        "actor_login": row.actor_login,
        "actor_avatar_url": row.actor_avatar_url,
        "repo_name": row.repo_name,
        "repo_url": row.repo_url,
        "action": row.action,
        "commit_message": row.commit_message,
        "commit_url": row.commit_url,
        "event_url": row.event_url,
    }


def _event_row(record: GitHubEventRecord) -> ActivityEventRow:
    return ActivityEventRow(
        id=record.id,
        fid=record.fid,
        type=record.type,
        created_at=record.created_at,
        actor_login=record.actor_login,
        actor_avatar_url=record.actor_avatar_url,
        repo_name=record.repo_name,
        repo_url=record.repo_url,
        action=record.action,
        commit_message=record.commit_message,
        commit_url=record.commit_url,
        event_url=record.event_url,
    )


def _repository_row(record: RepositoryRecord) -> RepositoryRow:
    return RepositoryRow(
        id=record.id,
        name=record.name,
        full_name=record.full_name,
        description=record.description,
        url=record.url,
        html_url=record.html_url,
        stars_count=record.stars_count,
        forks_count=record.forks_count,
    )


def _follow_closure(fid: int) -> typ.Any:  # noqa: ANN401
    """Return a filter matching events owned by ``fid`` or anyone it follows."""
    following = select(Follow.following_fid).where(Follow.follower_fid == fid)
    return or_(GitHubEventRecord.fid == fid, GitHubEventRecord.fid.in_(following))


class StoreGateway:
    """Single entry point for reads and idempotent writes."""

    def __init__(self, session_factory: SessionFactory) -> None:
        """Store the session factory used for every operation."""
        self._session_factory = session_factory

    # -- users -------------------------------------------------------------

    async def ensure_users(self, fids: cabc.Iterable[int]) -> None:
        """Insert stub users for ``fids`` that do not exist yet."""
        unique = sorted(set(fids))
        if not unique:
            return
        async with self._session_factory() as session, session.begin():
            await self._insert_stubs(session, unique, utcnow())

    async def touch_user(self, fid: int, *, now: dt.datetime | None = None) -> None:
        """Create the user if absent and refresh ``last_updated``."""
        stamp = now or utcnow()
        async with self._session_factory() as session, session.begin():
            stmt = _insert_for(session, User).values(fid=fid, last_updated=stamp)
            await session.execute(
                stmt.on_conflict_do_update(
                    index_elements=["fid"],
                    set_={"last_updated": stmt.excluded.last_updated},
                )
            )

    async def get_user(self, fid: int) -> User | None:
        """Return the user row for ``fid`` if present."""
        async with self._session_factory() as session:
            return await session.get(User, fid)

    async def user_exists(self, fid: int) -> bool:
        """Return whether a user row exists for ``fid``."""
        async with self._session_factory() as session:
            found = await session.scalar(select(User.fid).where(User.fid == fid))
            return found is not None

    async def unenriched_fids(self, fids: cabc.Iterable[int]) -> list[int]:
        """Return the subset of ``fids`` whose social profile is still unknown."""
        unique = sorted(set(fids))
        if not unique:
            return []
        pending: list[int] = []
        async with self._session_factory() as session:
            for chunk in _chunks(unique, _INSERT_CHUNK):
                rows = await session.scalars(
                    select(User.fid).where(
                        User.fid.in_(chunk), User.farcaster_username.is_(None)
                    )
                )
                pending.extend(rows.all())
        return sorted(pending)

    async def upsert_profile(
        self, profile: UserProfile, *, now: dt.datetime | None = None
    ) -> None:
        """Insert or refresh the social profile fields for one identity."""
        stamp = now or utcnow()
        async with self._session_factory() as session, session.begin():
            stmt = _insert_for(session, User).values(
                fid=profile.fid,
                farcaster_username=profile.username,
                farcaster_display_name=profile.display_name,
                farcaster_pfp_url=profile.pfp_url,
                last_updated=stamp,
            )
            await session.execute(
                stmt.on_conflict_do_update(
                    index_elements=["fid"],
                    set_={
                        "farcaster_username": stmt.excluded.farcaster_username,
                        "farcaster_display_name": stmt.excluded.farcaster_display_name,
                        "farcaster_pfp_url": stmt.excluded.farcaster_pfp_url,
                        "last_updated": stmt.excluded.last_updated,
                    },
                )
            )

    async def link_github(
        self, fid: int, github_username: str, *, now: dt.datetime | None = None
    ) -> None:
        """Record a verified GitHub username, creating the user if needed."""
        stamp = now or utcnow()
        async with self._session_factory() as session, session.begin():
            stmt = _insert_for(session, User).values(
                fid=fid, github_username=github_username, last_updated=stamp
            )
            await session.execute(
                stmt.on_conflict_do_update(
                    index_elements=["fid"],
                    set_={
                        "github_username": stmt.excluded.github_username,
                        "last_updated": stmt.excluded.last_updated,
                    },
                )
            )

    async def linked_users(self) -> list[LinkedUser]:
        """Return every identity with a linked GitHub username, by fid."""
        async with self._session_factory() as session:
            rows = await session.execute(
                select(User.fid, User.github_username)
                .where(User.github_username.is_not(None))
                .order_by(User.fid)
            )
            return [
                LinkedUser(fid=fid, github_username=username)
                for fid, username in rows.all()
            ]

    async def list_users(self, *, limit: int, offset: int) -> list[User]:
        """Return users ordered by social username."""
        async with self._session_factory() as session:
            rows = await session.scalars(
                select(User)
                .order_by(User.farcaster_username.asc().nulls_last(), User.fid)
                .limit(limit)
                .offset(offset)
            )
            return list(rows.all())

    async def ping(self) -> None:
        """Round-trip a trivial query to confirm the database is reachable."""
        async with self._session_factory() as session:
            await session.execute(select(1))

    # -- follows -----------------------------------------------------------

    async def replace_following(
        self,
        follower: int,
        following: cabc.Iterable[int],
        *,
        now: dt.datetime | None = None,
    ) -> FollowDiff:
        """Make ``follower``'s edge set equal ``following``.

        Stub users, stale-edge deletion and missing-edge insertion share one
        transaction, so a crash leaves either the old or the new set.
        """
        stamp = now or utcnow()
        desired = set(following)
        desired.discard(follower)
        async with self._session_factory() as session, session.begin():
            await self._insert_stubs(session, sorted(desired | {follower}), stamp)
            current = set(
                (
                    await session.scalars(
                        select(Follow.following_fid).where(
                            Follow.follower_fid == follower
                        )
                    )
                ).all()
            )
            stale = current - desired
            missing = desired - current
            for chunk in _chunks(sorted(stale), _INSERT_CHUNK):
                await session.execute(
                    delete(Follow).where(
                        Follow.follower_fid == follower,
                        Follow.following_fid.in_(chunk),
                    )
                )
            for chunk in _chunks(sorted(missing), _INSERT_CHUNK):
                stmt = _insert_for(session, Follow).values(
                    [
                        {
                            "follower_fid": follower,
                            "following_fid": fid,
                            "created_at": stamp,
                        }
                        for fid in chunk
                    ]
                )
                await session.execute(stmt.on_conflict_do_nothing())
        return FollowDiff(added=frozenset(missing), removed=frozenset(stale))

    async def following_of(self, follower: int) -> set[int]:
        """Return the identities ``follower`` currently follows."""
        async with self._session_factory() as session:
            rows = await session.scalars(
                select(Follow.following_fid).where(Follow.follower_fid == follower)
            )
            return set(rows.all())

    # -- activity events ---------------------------------------------------

    async def upsert_events(self, rows: cabc.Sequence[ActivityEventRow]) -> int:
        """Insert or overwrite activity events keyed by upstream id."""
        if not rows:
            return 0
        # Duplicate ids inside one statement would trip ON CONFLICT; last wins.
        latest = {row.id: row for row in rows}
        async with self._session_factory() as session, session.begin():
            for chunk in _chunks(latest.values(), _INSERT_CHUNK):
                stmt = _insert_for(session, GitHubEventRecord).values(
                    [_event_values(row) for row in chunk]
                )
                await session.execute(
                    stmt.on_conflict_do_update(
                        index_elements=["id"],
                        set_={
                            column: stmt.excluded[column]
                            for column in _EVENT_MUTABLE_COLUMNS
                        },
                    )
                )
        return len(latest)

    async def get_event(self, event_id: str) -> ActivityEventRow | None:
        """Return one stored event by upstream id."""
        async with self._session_factory() as session:
            record = await session.get(GitHubEventRecord, event_id)
            return _event_row(record) if record is not None else None

    async def delete_events_before(self, cutoff: dt.datetime) -> int:
        """Delete events created strictly before ``cutoff``; return the count."""
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                delete(GitHubEventRecord).where(GitHubEventRecord.created_at < cutoff)
            )
            return result.rowcount or 0

    async def feed_page(self, fid: int, *, limit: int, offset: int) -> list[FeedEntry]:
        """Return the follow-closure feed for ``fid``, newest first."""
        stmt: Select[typ.Any] = (
            select(
                GitHubEventRecord,
                User.farcaster_username,
                User.farcaster_display_name,
                User.farcaster_pfp_url,
            )
            .outerjoin(User, User.fid == GitHubEventRecord.fid)
            .where(_follow_closure(fid))
            .order_by(GitHubEventRecord.created_at.desc(), GitHubEventRecord.id.desc())
            .limit(limit)
            .offset(offset)
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).all()
        return [
            FeedEntry(
                event=_event_row(record),
                farcaster_username=username,
                farcaster_display_name=display_name,
                farcaster_pfp_url=pfp_url,
            )
            for record, username, display_name, pfp_url in rows
        ]

    async def follow_stats(self, fid: int) -> FollowStats:
        """Count follows, linked followed identities and closure events."""
        following = select(Follow.following_fid).where(Follow.follower_fid == fid)
        async with self._session_factory() as session:
            follows = await session.scalar(
                select(func.count())
                .select_from(Follow)
                .where(Follow.follower_fid == fid)
            )
            github_users = await session.scalar(
                select(func.count())
                .select_from(User)
                .where(User.github_username.is_not(None), User.fid.in_(following))
            )
            events = await session.scalar(
                select(func.count())
                .select_from(GitHubEventRecord)
                .where(_follow_closure(fid))
            )
        return FollowStats(
            follows=follows or 0,
            github_users=github_users or 0,
            events=events or 0,
        )

    # -- repositories and stars -------------------------------------------

    async def record_stars(
        self,
        fid: int,
        stars: cabc.Sequence[StarRow],
        *,
        now: dt.datetime | None = None,
    ) -> int:
        """Refresh repositories and add star edges that do not exist yet.

        Returns the number of repositories refreshed. Existing star edges are
        left untouched so the original ``starred_at`` survives re-ingestion.
        """
        stamp = now or utcnow()
        latest = {star.repository.id: star for star in stars}
        if not latest:
            return 0
        async with self._session_factory() as session, session.begin():
            await self._insert_stubs(session, [fid], stamp)
            for chunk in _chunks(latest.values(), _INSERT_CHUNK):
                repo_stmt = _insert_for(session, RepositoryRecord).values(
                    [
                        {
                            "id": star.repository.id,
                            "name": star.repository.name,
                            "full_name": star.repository.full_name,
                            "description": star.repository.description,
                            "url": star.repository.url,
                            "html_url": star.repository.html_url,
                            "stars_count": star.repository.stars_count,
                            "forks_count": star.repository.forks_count,
                            "last_updated": stamp,
                        }
                        for star in chunk
                    ]
                )
                await session.execute(
                    repo_stmt.on_conflict_do_update(
                        index_elements=["id"],
                        set_={
                            column: repo_stmt.excluded[column]
                            for column in _REPOSITORY_MUTABLE_COLUMNS
                        },
                    )
                )
                star_stmt = _insert_for(session, UserStar).values(
                    [
                        {
                            "fid": fid,
                            "repo_id": star.repository.id,
                            "starred_at": star.starred_at,
                        }
                        for star in chunk
                    ]
                )
                await session.execute(star_stmt.on_conflict_do_nothing())
        return len(latest)

    async def starred_at(self, fid: int, repo_id: str) -> dt.datetime | None:
        """Return when ``fid`` starred ``repo_id``, if recorded."""
        async with self._session_factory() as session:
            return await session.scalar(
                select(UserStar.starred_at).where(
                    UserStar.fid == fid, UserStar.repo_id == repo_id
                )
            )

    async def get_repository(self, repo_id: str) -> RepositoryRow | None:
        """Return one repository snapshot by id."""
        async with self._session_factory() as session:
            record = await session.get(RepositoryRecord, repo_id)
            return _repository_row(record) if record is not None else None

    async def top_repositories(
        self, *, limit: int, offset: int
    ) -> list[RankedRepository]:
        """Rank repositories by GitHub stars blended with tracked-user stars."""
        tracked = func.count(UserStar.fid.distinct())
        score = RepositoryRecord.stars_count * 0.7 + tracked * 100 * 0.3
        stmt = (
            select(RepositoryRecord, tracked.label("farcaster_stars_count"))
            .outerjoin(UserStar, UserStar.repo_id == RepositoryRecord.id)
            .group_by(RepositoryRecord.id)
            .order_by(score.desc(), RepositoryRecord.id)
            .limit(limit)
            .offset(offset)
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).all()
        return [
            RankedRepository(
                repository=_repository_row(record),
                last_updated=record.last_updated,
                farcaster_stars_count=count or 0,
            )
            for record, count in rows
        ]

    # -- helpers -----------------------------------------------------------

    @staticmethod
    async def _insert_stubs(
        session: AsyncSession, fids: cabc.Sequence[int], stamp: dt.datetime
    ) -> None:
        for chunk in _chunks(fids, _INSERT_CHUNK):
            stmt = _insert_for(session, User).values(
                [{"fid": fid, "last_updated": stamp} for fid in chunk]
            )
            await session.execute(stmt.on_conflict_do_nothing(index_elements=["fid"]))


__all__ = ["StoreGateway", "UnsupportedDialectError"]
