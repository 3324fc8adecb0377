"""Tests for decoding recorded events."""

import pytest
from runreport.core.errors import EventFormatError
from runreport.events import (
    CurrentStateLoaded,
    Failed,
    SessionBegin,
    SessionEnd,
    Skipped,
    Updated,
    UpToDate,
    event_from_dict,
)

MOTD = {"type": "file", "name": "/etc/motd", "cookbook_name": "base", "state": {"content": "hi"}}


def test_current_state_loaded(node):
    event = event_from_dict(
        {"event": "current_state_loaded", "action": "create", "resource": MOTD, "current_state": {"content": ""}},
        node,
    )

    assert isinstance(event, CurrentStateLoaded)
    assert event.resource.state() == {"content": "hi"}
    assert event.current_state.state() == {"content": ""}
    assert event.current_state.resource_identity() == event.resource.resource_identity()


@pytest.mark.parametrize(
    "kind, cls",
    [("up_to_date", UpToDate), ("updated", Updated), ("skipped", Skipped), ("failed", Failed)],
)
def test_resource_events(node, kind, cls):
    event = event_from_dict({"event": kind, "action": "create", "resource": MOTD}, node)

    assert isinstance(event, cls)
    assert event.action == "create"
    assert event.resource.name == "/etc/motd"


def test_failed_exception_mapping(node):
    event = event_from_dict(
        {"event": "failed", "resource": MOTD, "exception": {"class": "Errno::EACCES", "message": "denied"}},
        node,
    )

    assert str(event.exception) == "denied"
    assert repr(event.exception) == "Errno::EACCES('denied')"


def test_skipped_reason(node):
    event = event_from_dict({"event": "skipped", "resource": MOTD, "reason": "not_if { true }"}, node)
    assert event.reason == "not_if { true }"


def test_elapsed_time_is_read(node):
    resource = {**MOTD, "elapsed_time": 0.25}
    event = event_from_dict({"event": "updated", "resource": resource}, node)
    assert event.resource.elapsed_time == 0.25


def test_session_events(node):
    assert isinstance(event_from_dict({"event": "session_begin"}, node), SessionBegin)

    end = event_from_dict({"event": "session_end", "exception": "converge failed"}, node)
    assert isinstance(end, SessionEnd)
    assert str(end.exception) == "converge failed"
    assert event_from_dict({"event": "session_end"}, node).exception is None


def test_unknown_event(node):
    with pytest.raises(EventFormatError):
        event_from_dict({"event": "resource_bypassed", "resource": MOTD}, node)


def test_missing_resource(node):
    with pytest.raises(EventFormatError):
        event_from_dict({"event": "updated", "resource": {"name": "x"}}, node)
