"""Fan-out of sync events to every live subscriber."""

import asyncio

import structlog

from notion_relay.sync.models import SyncEvent
from notion_relay.sync.subscribers import Subscriber, SubscriberClosedError, SubscriberRegistry

log = structlog.stdlib.get_logger()


class BroadcastDispatcher:
    """Publishes serialized events to the subscriber registry."""

    def __init__(self, registry: SubscriberRegistry):
        self._registry = registry

    async def publish(self, event: SyncEvent) -> int:
        """
        Send one event to every open subscriber.

        The event is serialized once and the identical text goes to each
        subscriber. Subscribers that are not open are skipped, and sends run
        concurrently so a slow subscriber does not delay the others. A
        subscriber whose send fails is dropped from the registry.

        Args:
            event: Event to publish

        Returns:
            Number of subscribers the event was delivered to
        """
        message = event.model_dump_json(by_alias=True)

        subscribers: list[Subscriber] = []
        self._registry.for_each(subscribers.append)
        targets = [s for s in subscribers if s.is_open]
        skipped = len(subscribers) - len(targets)

        results = await asyncio.gather(*(self._deliver(s, message) for s in targets))
        delivered = sum(results)

        log.info(
            "broadcast_published",
            event_type=event.type,
            data_source_id=event.data_source_id,
            changes_count=event.changes_count,
            delivered=delivered,
            skipped=skipped,
            failed=len(targets) - delivered,
        )
        return delivered

    async def _deliver(self, subscriber: Subscriber, message: str) -> bool:
        try:
            await subscriber.send(message)
            return True
        except SubscriberClosedError as e:
            log.info("subscriber_closed_during_send", error=str(e))
        except Exception as e:
            log.error("subscriber_send_failed", error=str(e), exc_info=True)

        self._registry.remove(subscriber)
        return False
