"""Unit tests for activity event classification."""

from __future__ import annotations

import pytest

from gitcast.github.classifier import (
    classify_event,
    describe_action,
    resolve_event_url,
)
from tests.helpers.fakes import event

REPO = "octocat/hello"
REPO_URL = "https://github.com/octocat/hello"


@pytest.mark.parametrize(
    ("event_type", "payload", "expected"),
    [
        ("PushEvent", {"commits": [{}, {}]}, "pushed 2 commits"),
        ("PushEvent", {"commits": [{}]}, "pushed 1 commit"),
        ("PushEvent", {}, "pushed 0 commits"),
        ("CreateEvent", {"ref_type": "branch"}, "created branch"),
        ("CreateEvent", {}, "created repository"),
        ("PullRequestEvent", {"action": "opened"}, "opened pull request"),
        ("IssuesEvent", {"action": "closed"}, "closed issue"),
        ("IssueCommentEvent", {}, "commented on issue"),
        ("WatchEvent", {}, "starred repository"),
        ("ForkEvent", {}, "forked repository"),
        ("GollumEvent", {}, "Gollum"),
    ],
)
def test_describe_action(
    event_type: str, payload: dict[str, object], expected: str
) -> None:
    """Each event type maps to its feed label."""
    assert describe_action(event_type, payload) == expected, (
        f"unexpected action for {event_type}"
    )


@pytest.mark.parametrize(
    ("event_type", "payload", "expected"),
    [
        ("PushEvent", {"commits": [{"sha": "abc"}]}, f"{REPO_URL}/commit/abc"),
        ("PushEvent", {"commits": []}, REPO_URL),
        (
            "PullRequestEvent",
            {"pull_request": {"html_url": "https://github.com/pr/1"}},
            "https://github.com/pr/1",
        ),
        ("PullRequestEvent", {"number": 7}, f"{REPO_URL}/pull/7"),
        ("PullRequestEvent", {}, REPO_URL),
        ("IssuesEvent", {"issue": {"number": 3}}, f"{REPO_URL}/issues/3"),
        (
            "IssueCommentEvent",
            {
                "comment": {"html_url": "https://github.com/c/1"},
                "issue": {"html_url": "https://github.com/i/1"},
            },
            "https://github.com/c/1",
        ),
        ("CreateEvent", {"ref": "main", "ref_type": "branch"}, f"{REPO_URL}/tree/main"),
        (
            "CreateEvent",
            {"ref": "v1.0", "ref_type": "tag"},
            f"{REPO_URL}/releases/tag/v1.0",
        ),
        ("CreateEvent", {"ref_type": "repository"}, REPO_URL),
        ("ReleaseEvent", {}, f"{REPO_URL}/releases"),
        ("MemberEvent", {}, f"{REPO_URL}/graphs/contributors"),
        ("DeleteEvent", {"ref": "old"}, REPO_URL),
        ("SomethingNewEvent", {}, REPO_URL),
    ],
)
def test_resolve_event_url(
    event_type: str, payload: dict[str, object], expected: str
) -> None:
    """The deep link follows the most specific payload URL available."""
    assert resolve_event_url(event_type, REPO, payload) == expected, (
        f"unexpected URL for {event_type}"
    )


def test_classify_push_takes_first_commit() -> None:
    """Push events carry the first commit's message and link."""
    push = event(
        "1",
        payload={
            "commits": [
                {"sha": "aaa", "message": "first"},
                {"sha": "bbb", "message": "second"},
            ]
        },
    )

    result = classify_event(push)

    assert result.action == "pushed 2 commits", "unexpected action"
    assert result.commit_message == "first", "first commit message expected"
    assert result.commit_url == f"{REPO_URL}/commit/aaa", "first commit URL expected"
    assert result.event_url == f"{REPO_URL}/commit/aaa", "event links to commit"


def test_classify_non_push_has_no_commit_fields() -> None:
    """Commit fields are only populated for pushes."""
    result = classify_event(event("2", event_type="WatchEvent", payload={}))

    assert result.commit_message is None, "no commit message expected"
    assert result.commit_url is None, "no commit URL expected"
    assert result.event_url == REPO_URL, "watch links to the repository"
