"""Synchronous in-process bus for booking domain events."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable

Handler = Callable[[Any], None]


class EventBus:
    """Publish/subscribe bus for domain events.

    A handler subscribed to a base class receives every subclass event as
    well. Handlers run synchronously, most specific event type first and in
    registration order within a type.
    """

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Handler) -> None:
        self._subscribers[event_type].append(handler)

    def publish(self, event: Any) -> None:
        for event_type in type(event).__mro__:
            for handler in self._subscribers.get(event_type, []):
                handler(event)
