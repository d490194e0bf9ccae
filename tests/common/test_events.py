"""Tests for the lifecycle event hub."""

from __future__ import annotations

from storage_provider.common.events import (
    STORAGE_CHANNEL,
    EventHub,
    LifecycleEvent,
    dispatch_storage_event,
)


def test_listeners_receive_channel_messages():
    hub = EventHub()
    received = []
    hub.listen("storage", received.append)
    hub.listen("auth", lambda m: received.append("wrong channel"))

    hub.dispatch("storage", {"event": "upload"}, "Storage")

    assert len(received) == 1
    assert received[0].channel == "storage"
    assert received[0].payload == {"event": "upload"}
    assert received[0].source == "Storage"


def test_unsubscribe_callable_removes_listener():
    hub = EventHub()
    received = []
    unsubscribe = hub.listen("storage", received.append)

    unsubscribe()
    hub.dispatch("storage", {"event": "upload"})

    assert received == []


def test_remove_unknown_listener_is_noop():
    EventHub().remove("storage", print)


def test_listener_errors_are_logged_and_isolated(caplog):
    hub = EventHub()
    received = []

    def broken(message):
        raise RuntimeError("listener bug")

    hub.listen("storage", broken)
    hub.listen("storage", received.append)

    with caplog.at_level("ERROR", logger="storage"):
        hub.dispatch("storage", {"event": "list"})

    assert len(received) == 1
    assert any("hub_listener_failed" in r.getMessage() for r in caplog.records)


def test_lifecycle_event_payload_shape():
    event = LifecycleEvent(
        event="download",
        attrs={"method": "get", "result": "success"},
        metrics={"fileSize": 3},
        message="Download success for a.txt",
    )

    assert event.to_payload() == {
        "event": "download",
        "data": {"attrs": {"method": "get", "result": "success"}, "metrics": {"fileSize": 3}},
        "message": "Download success for a.txt",
    }


def test_dispatch_storage_event_respects_track_flag():
    hub = EventHub()
    received = []
    hub.listen(STORAGE_CHANNEL, received.append)

    dispatch_storage_event(hub, False, "delete", {"method": "remove", "result": "success"}, None, "m")
    dispatch_storage_event(hub, True, "delete", {"method": "remove", "result": "success"}, None, "m")

    assert len(received) == 1
    assert received[0].payload["event"] == "delete"
    assert received[0].source == "Storage"
