"""Typed shapes of the Neynar and Warpcast payloads gitcast consumes."""

from __future__ import annotations

import msgspec


class NextCursor(msgspec.Struct, kw_only=True, frozen=True):
    """Cursor block shared by both services' paginated responses."""

    cursor: str | None = None


class NeynarUser(msgspec.Struct, kw_only=True, frozen=True):
    """Social profile fields returned by Neynar."""

    fid: int
    username: str | None = None
    display_name: str | None = None
    pfp_url: str | None = None


class FollowingEntry(msgspec.Struct, kw_only=True, frozen=True):
    """One followed identity in a following page."""

    user: NeynarUser


class FollowingPage(msgspec.Struct, kw_only=True, frozen=True):
    """Response of ``GET /v2/farcaster/following``."""

    users: list[FollowingEntry] = msgspec.field(default_factory=list)
    next: NextCursor | None = None


class BulkUsersResponse(msgspec.Struct, kw_only=True, frozen=True):
    """Response of ``GET /v2/farcaster/user/bulk``."""

    users: list[NeynarUser] = msgspec.field(default_factory=list)


class Verification(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Verified link between an identity and an external platform account.

    Attributes
    ----------
    fid
        Identity owning the verification.
    platform
        External platform, ``"github"`` for every entry gitcast requests.
    platform_username
        Account name on the external platform.
    verified_at
        Epoch seconds at which the link was verified.

    """

    fid: int
    platform: str
    platform_username: str
    platform_id: str | int | None = None
    verified_at: int = 0


class VerificationsResult(msgspec.Struct, kw_only=True, frozen=True):
    """Inner ``result`` block of an account-verifications response."""

    verifications: list[Verification] = msgspec.field(default_factory=list)


class VerificationsPage(msgspec.Struct, kw_only=True, frozen=True):
    """Response of ``GET /fc/account-verifications``."""

    result: VerificationsResult
    next: NextCursor | None = None


__all__ = [
    "BulkUsersResponse",
    "FollowingEntry",
    "FollowingPage",
    "NeynarUser",
    "NextCursor",
    "Verification",
    "VerificationsPage",
    "VerificationsResult",
]
