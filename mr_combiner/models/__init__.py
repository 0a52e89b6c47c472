"""Data models for the merge request combiner."""

from .api_response import ErrorResponse, HealthResponse, WebhookResponse
from .combine import CombineOutcome, CombineState, CombineTrigger
from .gitlab import MergeRequest, RepoInfo
from .webhook_event import (
    EventLabel,
    MergeRequestAttributes,
    NoteAttributes,
    NoteMergeRequest,
    WebhookEvent,
)

__all__ = [
    # Webhook event models
    "WebhookEvent",
    "NoteAttributes",
    "NoteMergeRequest",
    "EventLabel",
    "MergeRequestAttributes",
    # GitLab resource models
    "RepoInfo",
    "MergeRequest",
    # Combination models
    "CombineTrigger",
    "CombineState",
    "CombineOutcome",
    # API response models
    "WebhookResponse",
    "ErrorResponse",
    "HealthResponse",
]
