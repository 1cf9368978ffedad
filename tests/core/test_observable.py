"""Tests for listener subscriptions."""

from music_shelf.core.observable import Observable


def test_listeners_receive_events_in_order():
    source = Observable()
    seen = []
    source.subscribe(lambda event, payload: seen.append(("first", event, payload)))
    source.subscribe(lambda event, payload: seen.append(("second", event, payload)))

    source._publish("changed", 1)

    assert seen == [("first", "changed", 1), ("second", "changed", 1)]


def test_failing_listener_does_not_block_others():
    source = Observable()
    seen = []

    def broken(event, payload):
        raise RuntimeError("listener bug")

    source.subscribe(broken)
    source.subscribe(lambda event, payload: seen.append(event))

    source._publish("changed")

    assert seen == ["changed"]


def test_listener_may_unsubscribe_itself():
    source = Observable()
    seen = []
    unsubscribe = None

    def once(event, payload):
        seen.append(event)
        unsubscribe()

    unsubscribe = source.subscribe(once)
    source._publish("a")
    source._publish("b")

    assert seen == ["a"]
