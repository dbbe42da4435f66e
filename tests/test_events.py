"""Tests for event channels."""

from __future__ import annotations

from screengrabber.events import Channel


def test_listeners_run_in_connection_order() -> None:
    channel = Channel("changed")
    calls = []
    channel.connect(lambda value: calls.append(("a", value)))
    channel.connect(lambda value: calls.append(("b", value)))

    channel.emit(1)

    assert calls == [("a", 1), ("b", 1)]


def test_failing_listener_does_not_stop_others() -> None:
    channel = Channel("changed")
    calls = []

    def broken() -> None:
        raise RuntimeError("boom")

    channel.connect(broken)
    channel.connect(lambda: calls.append(True))
    channel.emit()

    assert calls == [True]


def test_disconnect_during_emit() -> None:
    channel = Channel("changed")
    calls = []
    handler_id = 0

    def once() -> None:
        calls.append(True)
        channel.disconnect(handler_id)

    handler_id = channel.connect(once)
    channel.emit()
    channel.emit()

    assert calls == [True]
    assert len(channel) == 0
