"""GitLab webhook event data models."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class WebhookEvent(BaseModel):
    """Envelope shared by GitLab note and merge request hooks."""

    object_kind: Optional[str] = None
    event_type: Optional[str] = None
    project_id: Optional[int] = None
    object_attributes: Optional[Dict[str, Any]] = None
    merge_request: Optional[Dict[str, Any]] = None

    @property
    def kind(self) -> Optional[str]:
        return self.event_type or self.object_kind


class NoteAttributes(BaseModel):
    """``object_attributes`` of a note (comment) event."""

    action: str
    note: str
    noteable_type: str
    project_id: int
    noteable_id: Optional[int] = None


class NoteMergeRequest(BaseModel):
    """The merge request a note was posted on."""

    iid: int


class EventLabel(BaseModel):
    """Label attached to a merge request, as sent in merge request events."""

    title: str
    project_id: Optional[int] = None


class MergeRequestAttributes(BaseModel):
    """``object_attributes`` of a merge request event."""

    iid: int
    action: Optional[str] = None
    labels: List[EventLabel] = []
