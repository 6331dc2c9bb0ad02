"""Subscriber capability and the registry of live push channels."""

from typing import Callable, Iterator, Protocol, runtime_checkable

import structlog

log = structlog.stdlib.get_logger()


class SubscriberClosedError(Exception):
    """Raised by Subscriber.send when the channel is no longer usable."""

    pass


@runtime_checkable
class Subscriber(Protocol):
    """A live push channel to one connected client."""

    @property
    def is_open(self) -> bool: ...

    async def send(self, message: str) -> None:
        """Deliver one serialized event; raise SubscriberClosedError if closed."""
        ...


class SubscriberRegistry:
    """Set of currently connected subscribers.

    Membership only: no ordering, no duplicates, no per-subscriber state.
    """

    def __init__(self) -> None:
        self._subscribers: set[Subscriber] = set()

    def add(self, subscriber: Subscriber) -> None:
        self._subscribers.add(subscriber)
        log.info("subscriber_added", active_subscribers=len(self._subscribers))

    def remove(self, subscriber: Subscriber) -> None:
        """Remove a subscriber; removing an absent subscriber is a no-op."""
        if subscriber not in self._subscribers:
            return
        self._subscribers.discard(subscriber)
        log.info("subscriber_removed", active_subscribers=len(self._subscribers))

    def for_each(self, fn: Callable[[Subscriber], None]) -> None:
        """Apply fn to every subscriber; fn may add or remove members."""
        for subscriber in list(self._subscribers):
            fn(subscriber)

    def __iter__(self) -> Iterator[Subscriber]:
        return iter(list(self._subscribers))

    def __contains__(self, subscriber: object) -> bool:
        return subscriber in self._subscribers

    def __len__(self) -> int:
        return len(self._subscribers)
