"""GitHub REST adapter errors."""

from __future__ import annotations


class GitHubAPIError(RuntimeError):
    """Raised when GitHub returns an error response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int, path: str) -> GitHubAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(f"GitHub HTTP {status_code} for {path}", status_code=status_code)


class GitHubRateLimitError(GitHubAPIError):
    """Raised when the REST rate-limit budget is exhausted."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        reset_at: float | None = None,
    ) -> None:
        """Initialise with the epoch second at which the budget refills."""
        self.reset_at = reset_at
        super().__init__(message, status_code=status_code)

    @classmethod
    def exhausted(
        cls, status_code: int, reset_at: float | None
    ) -> GitHubRateLimitError:
        """Return an error for a 403/429 carrying a zero remaining budget."""
        return cls(
            f"GitHub rate limit exhausted (HTTP {status_code}, reset={reset_at})",
            status_code=status_code,
            reset_at=reset_at,
        )


class GitHubResponseShapeError(RuntimeError):
    """Raised when GitHub responses do not match the expected shape."""

    @classmethod
    def invalid(cls, path: str, detail: str) -> GitHubResponseShapeError:
        """Return an error for a body that failed to decode."""
        return cls(f"GitHub response for {path} has unexpected shape: {detail}")


class GitHubConfigError(RuntimeError):
    """Raised when GitHub client configuration is invalid."""

    @classmethod
    def missing_token(cls) -> GitHubConfigError:
        """Return an error when no GitHub token is configured."""
        return cls("GITCAST_GITHUB_TOKEN is required for GitHub API")

    @classmethod
    def empty_token(cls) -> GitHubConfigError:
        """Return an error when the provided token is empty."""
        return cls("GitHub token must be non-empty")
