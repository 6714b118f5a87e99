"""Task messages exchanged between pipeline stages.

Every message is a msgspec Struct tagged on the ``type`` field and carries
only keys, never snapshots of derived state, so a redelivered message always
re-reads the store and upstream services.
"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

import msgspec

from .errors import PoisonMessageError

Fid = typ.Annotated[int, msgspec.Meta(gt=0, le=2**63 - 1)]
Username = typ.Annotated[str, msgspec.Meta(min_length=1)]

NEYNAR_QUEUE = "neynar_tasks"
GITHUB_QUEUE = "github_tasks"


class _TaskMessage(msgspec.Struct, kw_only=True, frozen=True, tag_field="type"):
    """Common base for tagged task messages."""


class FetchUserData(_TaskMessage, tag="fetch_user_data"):
    """Resolve the social profile of one identity."""

    fid: Fid


class UpdateUser(_TaskMessage, tag="update_user"):
    """Refresh the follow graph of one identity."""

    fid: Fid


class CheckGitHubVerifications(_TaskMessage, tag="check_github_verifications"):
    """Look up GitHub verifications for a set of identities."""

    fids: tuple[Fid, ...]


class FetchGitHubEvents(_TaskMessage, tag="fetch_github_events"):
    """Ingest the recent public activity of a linked GitHub account."""

    fid: Fid
    external_username: Username


class FetchStarredRepos(_TaskMessage, tag="fetch_starred_repos"):
    """Ingest the starred repositories of a linked GitHub account."""

    fid: Fid
    external_username: Username


TaskMessage = (
    FetchUserData
    | UpdateUser
    | CheckGitHubVerifications
    | FetchGitHubEvents
    | FetchStarredRepos
)

_DECODER = msgspec.json.Decoder(TaskMessage)

_QUEUE_BY_TYPE: dict[type[_TaskMessage], str] = {
    FetchUserData: NEYNAR_QUEUE,
    UpdateUser: NEYNAR_QUEUE,
    CheckGitHubVerifications: NEYNAR_QUEUE,
    FetchGitHubEvents: GITHUB_QUEUE,
    FetchStarredRepos: GITHUB_QUEUE,
}


def decode_message(payload: bytes | str | cabc.Mapping[str, typ.Any]) -> TaskMessage:
    """Decode a JSON document or a builtin mapping into a task message.

    Raises
    ------
    PoisonMessageError
        If the payload has an unknown ``type`` tag, misses required fields or
        carries values of the wrong type.

    """
    try:
        if isinstance(payload, cabc.Mapping):
            return msgspec.convert(dict(payload), type=TaskMessage)
        return _DECODER.decode(payload)
    except msgspec.DecodeError as exc:
        raise PoisonMessageError.undecodable(payload, str(exc)) from exc


def encode_message(message: TaskMessage) -> dict[str, typ.Any]:
    """Return the builtin representation of ``message``, including its tag."""
    return msgspec.to_builtins(message)


def message_type(message: TaskMessage) -> str:
    """Return the ``type`` tag of ``message``."""
    return typ.cast("str", type(message).__struct_config__.tag)


def queue_for(message: TaskMessage) -> str:
    """Return the queue that carries ``message`` to its consuming stage."""
    return _QUEUE_BY_TYPE[type(message)]


__all__ = [
    "GITHUB_QUEUE",
    "NEYNAR_QUEUE",
    "CheckGitHubVerifications",
    "FetchGitHubEvents",
    "FetchStarredRepos",
    "FetchUserData",
    "TaskMessage",
    "UpdateUser",
    "decode_message",
    "encode_message",
    "message_type",
    "queue_for",
]
