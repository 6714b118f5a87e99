"""GitHub REST adapter and activity event classification."""

from __future__ import annotations

from .classifier import EventClassification, classify_event
from .client import GitHubActivityClient, GitHubConfig, GitHubRestClient
from .errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubRateLimitError,
    GitHubResponseShapeError,
)
from .models import GitHubEvent, GitHubRepository, StarredRepository
from .ratelimit import RateLimitGate

__all__ = [
    "EventClassification",
    "GitHubAPIError",
    "GitHubActivityClient",
    "GitHubConfig",
    "GitHubConfigError",
    "GitHubEvent",
    "GitHubRateLimitError",
    "GitHubRepository",
    "GitHubResponseShapeError",
    "GitHubRestClient",
    "RateLimitGate",
    "StarredRepository",
    "classify_event",
]
