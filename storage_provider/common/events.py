"""In-process lifecycle event hub.

Storage operations announce their outcome on the ``storage`` channel.
Dispatch is fire-and-forget: listeners run synchronously and a failing
listener is logged without affecting the operation that dispatched.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, DefaultDict

STORAGE_CHANNEL = "storage"
STORAGE_SOURCE = "Storage"

logger = logging.getLogger("storage")

Listener = Callable[["HubMessage"], None]


@dataclass(frozen=True, slots=True)
class LifecycleEvent:
    """Outcome of a single storage operation."""

    event: str
    attrs: dict[str, str]
    metrics: dict[str, Any] | None = None
    message: str = ""

    def to_payload(self) -> dict[str, Any]:
        return {
            "event": self.event,
            "data": {"attrs": self.attrs, "metrics": self.metrics},
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class HubMessage:
    channel: str
    payload: dict[str, Any]
    source: str


class EventHub:
    """Channel based publish/subscribe registry."""

    def __init__(self) -> None:
        self._listeners: DefaultDict[str, list[Listener]] = defaultdict(list)

    def listen(self, channel: str, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` on ``channel`` and return an unsubscribe callable."""
        self._listeners[channel].append(listener)
        return lambda: self.remove(channel, listener)

    def remove(self, channel: str, listener: Listener) -> None:
        listeners = self._listeners.get(channel)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def dispatch(
        self,
        channel: str,
        payload: dict[str, Any],
        source: str = "",
    ) -> None:
        message = HubMessage(channel=channel, payload=payload, source=source)
        for listener in list(self._listeners.get(channel, ())):
            try:
                listener(message)
            except Exception:
                logger.exception(
                    "hub_listener_failed channel=%s event=%s",
                    channel,
                    payload.get("event"),
                )


_default_hub = EventHub()


def get_hub() -> EventHub:
    return _default_hub


def dispatch_storage_event(
    hub: EventHub,
    track: bool,
    event: str,
    attrs: dict[str, str],
    metrics: dict[str, Any] | None,
    message: str,
) -> None:
    if not track:
        return
    lifecycle = LifecycleEvent(event=event, attrs=attrs, metrics=metrics, message=message)
    hub.dispatch(STORAGE_CHANNEL, lifecycle.to_payload(), STORAGE_SOURCE)
