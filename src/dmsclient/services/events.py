"""Per-session publish/subscribe hub for DMS notifications."""

import inspect
import logging
from enum import Enum
from typing import Any, Callable


class SessionEvent(str, Enum):
    """Notifications a DMSSession publishes.

    REACHABILITY_CHANGED carries a bool (True = DMS host reachable).
    NEW_FIRMWARE_LIST carries the FirmwareList just retrieved.
    """

    REACHABILITY_CHANGED = "reachability_changed"
    NEW_FIRMWARE_LIST = "new_firmware_list"


class EventHub:
    """Observer lists keyed by event, owned by a single session.

    Subscribers may be plain callables or coroutine functions. A failing
    subscriber is logged and does not stop delivery to the others.
    """

    def __init__(self):
        self.logger = logging.getLogger("dmsclient.events")
        self._subscribers: dict[SessionEvent, list[Callable[[Any], Any]]] = {
            event: [] for event in SessionEvent
        }

    def subscribe(
        self, event: SessionEvent, callback: Callable[[Any], Any]
    ) -> Callable[[], None]:
        """Register a callback for an event.

        Args:
            event: Event to observe
            callback: Called with the event payload

        Returns:
            Zero-argument function that removes the subscription
        """
        self._subscribers[event].append(callback)
        self.logger.debug(f"Subscribed {callback!r} to {event.value}")
        return lambda: self.unsubscribe(event, callback)

    def unsubscribe(self, event: SessionEvent, callback: Callable[[Any], Any]) -> None:
        """Remove a callback; unknown callbacks are ignored."""
        if callback in self._subscribers[event]:
            self._subscribers[event].remove(callback)

    def subscriber_count(self, event: SessionEvent) -> int:
        return len(self._subscribers[event])

    async def publish(self, event: SessionEvent, payload: Any) -> None:
        """Deliver payload to every subscriber of event, in subscription order."""
        # Snapshot so callbacks may unsubscribe during delivery
        for callback in list(self._subscribers[event]):
            try:
                result = callback(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self.logger.error(
                    f"Subscriber {callback!r} failed on {event.value}: {e}",
                    exc_info=True,
                )
