"""Failure taxonomy for pipeline tasks and the redelivery policy built on it."""

from __future__ import annotations

import enum

import httpx
from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)

from gitcast.farcaster.errors import (
    FarcasterAPIError,
    FarcasterConfigError,
    FarcasterResponseShapeError,
)
from gitcast.github.errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubRateLimitError,
    GitHubResponseShapeError,
)

_HTTP_SERVER_ERROR_THRESHOLD = 500
_HTTP_TOO_MANY_REQUESTS = 429
_PAYLOAD_PREVIEW_CHARS = 200


class PoisonMessageError(ValueError):
    """Raised when a task payload cannot be decoded into a known message."""

    @classmethod
    def undecodable(cls, payload: object, detail: str) -> PoisonMessageError:
        """Return an error naming the decode failure and a payload preview."""
        preview = repr(payload)[:_PAYLOAD_PREVIEW_CHARS]
        return cls(f"undecodable task message ({detail}): {preview}")


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in logs and retry decisions."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    DATABASE_CONNECTIVITY = "database_connectivity"
    DATA_INTEGRITY = "data_integrity"
    DATABASE_ERROR = "database_error"
    POISON = "poison"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (PoisonMessageError, ErrorCategory.POISON),
    (GitHubRateLimitError, ErrorCategory.TRANSIENT),
    (httpx.TransportError, ErrorCategory.TRANSIENT),
    (TimeoutError, ErrorCategory.TRANSIENT),
    (GitHubResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (FarcasterResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (GitHubConfigError, ErrorCategory.CONFIGURATION),
    (FarcasterConfigError, ErrorCategory.CONFIGURATION),
    (OperationalError, ErrorCategory.DATABASE_CONNECTIVITY),
    (InterfaceError, ErrorCategory.DATABASE_CONNECTIVITY),
    (IntegrityError, ErrorCategory.DATA_INTEGRITY),
    (SQLAlchemyError, ErrorCategory.DATABASE_ERROR),
)

_NON_RETRYABLE = frozenset({ErrorCategory.POISON, ErrorCategory.CONFIGURATION})


def _categorize_status(status_code: int | None) -> ErrorCategory:
    if status_code is not None and (
        status_code >= _HTTP_SERVER_ERROR_THRESHOLD
        or status_code == _HTTP_TOO_MANY_REQUESTS
    ):
        return ErrorCategory.TRANSIENT
    return ErrorCategory.CLIENT_ERROR


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an exception for alerting and redelivery decisions.

    Returns
    -------
    ErrorCategory
        The failure class; upstream HTTP errors split on their status code.

    """
    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    # API errors need the status code to tell throttling from bad requests.
    if isinstance(exc, GitHubAPIError | FarcasterAPIError):
        return _categorize_status(exc.status_code)

    return ErrorCategory.UNKNOWN


def should_retry(retries: int, exc: BaseException, *, max_retries: int) -> bool:
    """Return whether a failed message should be redelivered.

    Parameters
    ----------
    retries
        Redeliveries already made for this message; zero on the first failure.
    exc
        The exception raised by the consuming stage.
    max_retries
        Redeliveries allowed before the message is dead-lettered.

    """
    if categorize_error(exc) in _NON_RETRYABLE:
        return False
    return retries < max_retries


__all__ = [
    "ErrorCategory",
    "PoisonMessageError",
    "categorize_error",
    "should_retry",
]
