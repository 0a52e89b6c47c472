"""
Unit tests for webhook event classification.
"""

import itertools

import pytest

from mr_combiner.models.combine import CombineTrigger
from mr_combiner.services.event_classifier import classify_event

TRIGGER_MESSAGE = "combine mr"
TRIGGER_TAG = "mr-combine"


def note_event(**overrides):
    """Build a note event on a merge request."""
    attributes = {
        "action": "created",
        "note": TRIGGER_MESSAGE,
        "noteable_type": "MergeRequest",
        "noteable_id": 9001,
        "project_id": 123,
    }
    attributes.update(overrides)
    return {
        "object_kind": "note",
        "event_type": "note",
        "project_id": 123,
        "object_attributes": attributes,
        "merge_request": {"iid": 456},
    }


def merge_request_event(labels, iid=789):
    """Build a merge request event carrying labels."""
    return {
        "object_kind": "merge_request",
        "event_type": "merge_request",
        "object_attributes": {"action": "update", "iid": iid, "labels": labels},
    }


def classify(payload):
    return classify_event(payload, TRIGGER_MESSAGE, TRIGGER_TAG)


def test_note_event_matches():
    """Test that a trigger note on a merge request is classified."""
    assert classify(note_event()) == CombineTrigger(project_id=123, request_id=456)


def test_note_event_uses_note_project_and_merge_request_iid():
    """Test that IDs come from the note attributes and the nested MR."""
    payload = note_event(project_id=77)
    payload["project_id"] = 1
    payload["merge_request"] = {"iid": 5, "id": 999}

    assert classify(payload) == CombineTrigger(project_id=77, request_id=5)


@pytest.mark.parametrize("field, value", [
    ("action", "updated"),
    ("action", "create"),
    ("note", "combine mr "),
    ("note", "Combine MR"),
    ("noteable_type", "Issue"),
])
def test_note_event_single_mismatch_is_ignored(field, value):
    """Test that any single mismatched field flips the result."""
    assert classify(note_event(**{field: value})) is None


def test_note_event_without_merge_request_is_ignored():
    """Test that a missing nested merge request is not an error."""
    payload = note_event()
    del payload["merge_request"]

    assert classify(payload) is None


def test_note_event_with_malformed_attributes_is_ignored():
    """Test that unparseable nested fields are treated as non-matching."""
    payload = note_event()
    payload["object_attributes"]["project_id"] = "not-a-number"
    assert classify(payload) is None

    payload = note_event()
    payload["merge_request"] = {"iid": None}
    assert classify(payload) is None

    payload = note_event()
    payload["object_attributes"] = ["unexpected"]
    assert classify(payload) is None


def test_note_kind_falls_back_to_object_kind():
    """Test that object_kind is used when event_type is absent."""
    payload = note_event()
    del payload["event_type"]

    assert classify(payload) == CombineTrigger(project_id=123, request_id=456)


def test_merge_request_event_with_trigger_label_matches():
    """Test that a merge request carrying the trigger label is classified."""
    payload = merge_request_event([
        {"title": "bug", "project_id": 321},
        {"title": TRIGGER_TAG, "project_id": 321},
    ])

    assert classify(payload) == CombineTrigger(project_id=321, request_id=789)


def test_merge_request_event_without_trigger_label_is_ignored():
    """Test that other labels do not trigger a combination."""
    payload = merge_request_event([{"title": "bug", "project_id": 321}])
    assert classify(payload) is None

    assert classify(merge_request_event([])) is None


def test_merge_request_label_order_does_not_matter():
    """Test that every permutation of the label set gives the same result."""
    labels = [
        {"title": "bug", "project_id": 5},
        {"title": TRIGGER_TAG, "project_id": 5},
        {"title": "frontend", "project_id": 5},
    ]

    results = {classify(merge_request_event(list(order))) for order in itertools.permutations(labels)}

    assert results == {CombineTrigger(project_id=5, request_id=789)}


def test_merge_request_event_with_malformed_labels_is_ignored():
    """Test that labels without a project id are not matched."""
    payload = merge_request_event([{"title": TRIGGER_TAG}])
    assert classify(payload) is None


@pytest.mark.parametrize("payload", [
    {},
    {"event_type": "push", "object_attributes": {}},
    {"object_kind": "pipeline"},
    {"event_type": "note"},
    {"event_type": "merge_request", "object_attributes": None},
    [],
    "note",
    None,
])
def test_unknown_or_empty_events_are_ignored(payload):
    """Test that unknown kinds and empty shapes never raise."""
    assert classify(payload) is None


def test_group_label_without_project_does_not_hide_trigger_label():
    """Test that a group label with a null project id is tolerated."""
    payload = merge_request_event([
        {"title": "group-wide", "project_id": None},
        {"title": TRIGGER_TAG, "project_id": 5},
    ], iid=9)

    assert classify(payload) == CombineTrigger(project_id=5, request_id=9)


def test_trigger_label_without_project_is_skipped():
    """Test that a matching group label alone cannot name a project."""
    payload = merge_request_event([{"title": TRIGGER_TAG, "project_id": None}])

    assert classify(payload) is None
