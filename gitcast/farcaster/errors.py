"""Social-graph and verification-directory adapter errors."""

from __future__ import annotations


class FarcasterAPIError(RuntimeError):
    """Raised when Neynar or Warpcast returns an error response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, service: str, status_code: int, path: str) -> FarcasterAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(f"{service} HTTP {status_code} for {path}", status_code=status_code)


class FarcasterResponseShapeError(RuntimeError):
    """Raised when a response body does not match the expected shape."""

    @classmethod
    def invalid(
        cls, service: str, path: str, detail: str
    ) -> FarcasterResponseShapeError:
        """Return an error for a body that failed to decode."""
        return cls(f"{service} response for {path} has unexpected shape: {detail}")


class FarcasterConfigError(RuntimeError):
    """Raised when adapter configuration is invalid."""

    @classmethod
    def missing_api_key(cls) -> FarcasterConfigError:
        """Return an error when no Neynar API key is configured."""
        return cls("GITCAST_NEYNAR_API_KEY is required for the Neynar API")

    @classmethod
    def empty_api_key(cls) -> FarcasterConfigError:
        """Return an error when the provided API key is empty."""
        return cls("Neynar API key must be non-empty")
