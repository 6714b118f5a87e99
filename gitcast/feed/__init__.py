"""Read-path feed queries and bootstrap-on-miss."""

from __future__ import annotations

from .service import FeedPage, FeedService, UserNotLinkedError

__all__ = ["FeedPage", "FeedService", "UserNotLinkedError"]
