"""Parse identity and pagination parameters at the HTTP boundary."""

from __future__ import annotations

import typing as typ

from gitcast.api.errors import InvalidInputError

if typ.TYPE_CHECKING:
    from falcon.asgi import Request

# Identities and offsets are bound as signed 64-bit integers.
MAX_BIGINT = 2**63 - 1
MAX_PAGE_LIMIT = 100


def _parse_int(raw: str, *, field: str, minimum: int, maximum: int) -> int:
    try:
        value = int(raw.strip())
    except ValueError as exc:
        msg = f"must be an integer, got {raw!r}"
        raise InvalidInputError(msg, field=field) from exc
    if value < minimum:
        msg = f"must be at least {minimum}, got {value}"
        raise InvalidInputError(msg, field=field)
    if value > maximum:
        msg = f"must be at most {maximum}, got {value}"
        raise InvalidInputError(msg, field=field)
    return value


def parse_fid(raw: str) -> int:
    """Return the positive identity encoded in a path segment.

    Raises
    ------
    InvalidInputError
        If ``raw`` is not an integer between 1 and ``MAX_BIGINT``.

    """
    return _parse_int(raw, field="fid", minimum=1, maximum=MAX_BIGINT)


def query_int(
    req: Request,
    name: str,
    *,
    default: int,
    minimum: int = 1,
    maximum: int = MAX_BIGINT,
) -> int:
    """Return query parameter ``name`` as an integer within the given bounds."""
    raw = req.get_param(name)
    if raw is None or not raw.strip():
        return default
    return _parse_int(raw, field=name, minimum=minimum, maximum=maximum)


def query_pagination(req: Request, *, default_limit: int) -> tuple[int, int]:
    """Return ``(limit, page)`` from the query string.

    ``limit`` is capped at ``MAX_PAGE_LIMIT`` and ``page`` is bounded so the
    resulting row offset fits a signed 64-bit integer.

    Raises
    ------
    InvalidInputError
        If either parameter is malformed or out of range.

    """
    limit = query_int(req, "limit", default=default_limit, maximum=MAX_PAGE_LIMIT)
    page = query_int(req, "page", default=1, maximum=MAX_BIGINT // limit + 1)
    return limit, page


__all__ = [
    "MAX_BIGINT",
    "MAX_PAGE_LIMIT",
    "parse_fid",
    "query_int",
    "query_pagination",
]
