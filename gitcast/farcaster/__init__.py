"""Neynar social-graph and Warpcast verification-directory adapters."""

from __future__ import annotations

from .client import (
    NeynarClient,
    NeynarConfig,
    SocialGraphClient,
    VerificationDirectory,
    WarpcastClient,
    WarpcastConfig,
)
from .errors import FarcasterAPIError, FarcasterConfigError, FarcasterResponseShapeError
from .models import NeynarUser, Verification

__all__ = [
    "FarcasterAPIError",
    "FarcasterConfigError",
    "FarcasterResponseShapeError",
    "NeynarClient",
    "NeynarConfig",
    "NeynarUser",
    "SocialGraphClient",
    "Verification",
    "VerificationDirectory",
    "WarpcastClient",
    "WarpcastConfig",
]
