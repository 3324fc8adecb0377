import pytest
from runreport.dispatch import EventDispatcher
from runreport.events import SessionBegin, SessionEnd, Updated
from runreport.reporter import ResourceReporter


class RecordingListener:
    def __init__(self):
        self.events = []

    def handle(self, event):
        self.events.append(event)


def test_dispatch_reaches_every_listener_in_order(node):
    first, second = RecordingListener(), RecordingListener()
    dispatcher = EventDispatcher([first])
    dispatcher.register(second)

    event = SessionBegin(node)
    dispatcher.dispatch(event)

    assert first.events == [event]
    assert second.events == [event]
    assert dispatcher.listeners == [first, second]


def test_replay_drives_reporter(history, node, make_resource):
    reporter = ResourceReporter(history)
    recorder = RecordingListener()
    dispatcher = EventDispatcher([reporter, recorder])
    motd = make_resource("/etc/motd")

    count = dispatcher.replay([SessionBegin(node), Updated(motd, "create"), SessionEnd(node)])

    assert count == 3
    assert len(recorder.events) == 3
    assert reporter.total_resource_count == 1
    assert len(history.submissions) == 1


def test_listener_error_propagates(node):
    class Exploding:
        def handle(self, event):
            raise RuntimeError("listener broke")

    after = RecordingListener()
    dispatcher = EventDispatcher([Exploding(), after])

    with pytest.raises(RuntimeError):
        dispatcher.dispatch(SessionBegin(node))
    assert after.events == []
