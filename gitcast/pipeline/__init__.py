"""Message-driven task pipeline: messages, stages, dispatch and transport.

Actors live in :mod:`gitcast.pipeline.actors` and are not imported here,
because importing them configures the global dramatiq broker.
"""

from __future__ import annotations

from .activity import ActivityIngestionStage
from .dispatch import PipelineDependencies, dispatch
from .errors import ErrorCategory, PoisonMessageError, categorize_error, should_retry
from .identity import IdentityResolutionResult, IdentityResolutionStage
from .messages import (
    CheckGitHubVerifications,
    FetchGitHubEvents,
    FetchStarredRepos,
    FetchUserData,
    TaskMessage,
    UpdateUser,
    decode_message,
    encode_message,
)
from .observability import TaskEventLogger, TaskEventType
from .publisher import DramatiqTaskPublisher, TaskPublisher
from .stars import StarIngestionStage
from .verification import VerificationMatchingStage

__all__ = [
    "ActivityIngestionStage",
    "CheckGitHubVerifications",
    "DramatiqTaskPublisher",
    "ErrorCategory",
    "FetchGitHubEvents",
    "FetchStarredRepos",
    "FetchUserData",
    "IdentityResolutionResult",
    "IdentityResolutionStage",
    "PipelineDependencies",
    "PoisonMessageError",
    "StarIngestionStage",
    "TaskEventLogger",
    "TaskEventType",
    "TaskMessage",
    "TaskPublisher",
    "UpdateUser",
    "VerificationMatchingStage",
    "categorize_error",
    "decode_message",
    "dispatch",
    "encode_message",
    "should_retry",
]
