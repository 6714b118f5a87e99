"""Derive a human-readable action and a deep link for GitHub activity events.

The mapping is pure: it reads only the event type, the repository name and
the event payload. Unknown event types fall back to the type name without
its ``Event`` suffix and the repository URL.
"""

from __future__ import annotations

import dataclasses
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .models import GitHubEvent

GITHUB_WEB_URL = "https://github.com"

Payload: typ.TypeAlias = "cabc.Mapping[str, typ.Any]"


@dataclasses.dataclass(frozen=True, slots=True)
class EventClassification:
    """Derived presentation fields for one activity event."""

    action: str
    event_url: str
    commit_message: str | None = None
    commit_url: str | None = None


def _mapping(payload: Payload, key: str) -> Payload:
    value = payload.get(key)
    return value if isinstance(value, dict) else {}


def _text(payload: Payload, key: str) -> str | None:
    value = payload.get(key)
    return value if isinstance(value, str) and value else None


def _first_commit(payload: Payload) -> Payload | None:
    commits = payload.get("commits")
    if isinstance(commits, list) and commits and isinstance(commits[0], dict):
        return commits[0]
    return None


def _commit_count(payload: Payload) -> int:
    commits = payload.get("commits")
    return len(commits) if isinstance(commits, list) else 0


def _numbered(repo_url: str, segment: str, number: object) -> str:
    if isinstance(number, int | str) and str(number):
        return f"{repo_url}/{segment}/{number}"
    return repo_url


def describe_action(event_type: str, payload: Payload) -> str:
    """Return the action label shown in the feed for ``event_type``."""
    match event_type:
        case "PushEvent":
            count = _commit_count(payload)
            return f"pushed {count} commit{'' if count == 1 else 's'}"
        case "CreateEvent":
            return f"created {_text(payload, 'ref_type') or 'repository'}"
        case "PullRequestEvent":
            return f"{_text(payload, 'action') or 'updated'} pull request"
        case "IssuesEvent":
            return f"{_text(payload, 'action') or 'updated'} issue"
        case "IssueCommentEvent":
            return "commented on issue"
        case "WatchEvent":
            return "starred repository"
        case "ForkEvent":
            return "forked repository"
        case _:
            return event_type.removesuffix("Event")


def resolve_event_url(  # noqa: C901, PLR0911
    event_type: str, repo_name: str, payload: Payload
) -> str:
    """Return the most specific GitHub web URL for the event."""
    repo_url = f"{GITHUB_WEB_URL}/{repo_name}"
    match event_type:
        case "PushEvent":
            commit = _first_commit(payload)
            sha = _text(commit, "sha") if commit is not None else None
            return f"{repo_url}/commit/{sha}" if sha else repo_url
        case "PullRequestEvent":
            pull_request = _mapping(payload, "pull_request")
            return _text(pull_request, "html_url") or _numbered(
                repo_url, "pull", payload.get("number")
            )
        case "IssuesEvent":
            issue = _mapping(payload, "issue")
            return _text(issue, "html_url") or _numbered(
                repo_url, "issues", issue.get("number")
            )
        case "IssueCommentEvent":
            issue = _mapping(payload, "issue")
            return (
                _text(_mapping(payload, "comment"), "html_url")
                or _text(issue, "html_url")
                or _numbered(repo_url, "issues", issue.get("number"))
            )
        case "CreateEvent":
            ref = _text(payload, "ref")
            ref_type = _text(payload, "ref_type")
            if ref and ref_type == "branch":
                return f"{repo_url}/tree/{ref}"
            if ref and ref_type == "tag":
                return f"{repo_url}/releases/tag/{ref}"
            return repo_url
        case "ForkEvent":
            return _text(_mapping(payload, "forkee"), "html_url") or repo_url
        case "ReleaseEvent":
            return (
                _text(_mapping(payload, "release"), "html_url")
                or f"{repo_url}/releases"
            )
        case "CommitCommentEvent":
            return _text(_mapping(payload, "comment"), "html_url") or repo_url
        case "PullRequestReviewEvent":
            pull_request = _mapping(payload, "pull_request")
            return (
                _text(_mapping(payload, "review"), "html_url")
                or _text(pull_request, "html_url")
                or _numbered(repo_url, "pull", pull_request.get("number"))
            )
        case "PullRequestReviewCommentEvent":
            pull_request = _mapping(payload, "pull_request")
            return (
                _text(_mapping(payload, "comment"), "html_url")
                or _text(pull_request, "html_url")
                or _numbered(repo_url, "pull", pull_request.get("number"))
            )
        case "MemberEvent":
            return f"{repo_url}/graphs/contributors"
        case _:
            # DeleteEvent, WatchEvent, PublicEvent and unknown kinds.
            return repo_url


def classify_event(event: GitHubEvent) -> EventClassification:
    """Classify ``event`` into its feed presentation fields.

    Commit metadata is only populated for push events and is taken from the
    first commit in the payload.

    """
    payload = event.payload
    commit_message: str | None = None
    commit_url: str | None = None
    if event.type == "PushEvent":
        commit = _first_commit(payload)
        if commit is not None:
            commit_message = _text(commit, "message")
            sha = _text(commit, "sha")
            if sha:
                commit_url = f"{GITHUB_WEB_URL}/{event.repo.name}/commit/{sha}"
    return EventClassification(
        action=describe_action(event.type, payload),
        event_url=resolve_event_url(event.type, event.repo.name, payload),
        commit_message=commit_message,
        commit_url=commit_url,
    )


__all__ = [
    "GITHUB_WEB_URL",
    "EventClassification",
    "classify_event",
    "describe_action",
    "resolve_event_url",
]
