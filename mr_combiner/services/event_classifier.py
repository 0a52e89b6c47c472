"""
Event Classifier component.

Turns a raw GitLab webhook payload into a CombineTrigger, or None when the
event should be ignored. Pure: no I/O and no logging.
"""

from typing import Any, Optional

from pydantic import ValidationError

from mr_combiner.models.combine import CombineTrigger
from mr_combiner.models.webhook_event import (
    MergeRequestAttributes,
    NoteAttributes,
    NoteMergeRequest,
    WebhookEvent,
)

NOTE_EVENT = "note"
MERGE_REQUEST_EVENT = "merge_request"

NOTE_CREATED_ACTION = "created"
MERGE_REQUEST_NOTEABLE = "MergeRequest"


def classify_event(
    payload: Any,
    trigger_message: str,
    trigger_tag: str
) -> Optional[CombineTrigger]:
    """
    Classify a webhook payload.

    Args:
        payload: Decoded JSON body of the webhook request
        trigger_message: Note text that starts a combination (exact match)
        trigger_tag: Label that marks a merge request for combination

    Returns:
        CombineTrigger when the event asks for a combination, otherwise None
    """
    if not isinstance(payload, dict):
        return None

    try:
        event = WebhookEvent.model_validate(payload)
    except ValidationError:
        return None

    if event.kind == NOTE_EVENT:
        return _classify_note(event, trigger_message)
    if event.kind == MERGE_REQUEST_EVENT:
        return _classify_merge_request(event, trigger_tag)
    return None


def _classify_note(event: WebhookEvent, trigger_message: str) -> Optional[CombineTrigger]:
    try:
        attrs = NoteAttributes.model_validate(event.object_attributes)
    except ValidationError:
        return None

    if (
        attrs.action != NOTE_CREATED_ACTION
        or attrs.note != trigger_message
        or attrs.noteable_type != MERGE_REQUEST_NOTEABLE
    ):
        return None

    try:
        merge_request = NoteMergeRequest.model_validate(event.merge_request)
    except ValidationError:
        return None

    return CombineTrigger(project_id=attrs.project_id, request_id=merge_request.iid)


def _classify_merge_request(event: WebhookEvent, trigger_tag: str) -> Optional[CombineTrigger]:
    try:
        attrs = MergeRequestAttributes.model_validate(event.object_attributes)
    except ValidationError:
        return None

    # Group labels carry no project_id
    for label in attrs.labels:
        if label.title == trigger_tag and label.project_id is not None:
            return CombineTrigger(project_id=label.project_id, request_id=attrs.iid)
    return None
