"""Synchronization components: state, change detection and push fan-out."""

from notion_relay.sync.broadcaster import BroadcastDispatcher
from notion_relay.sync.change_detector import ChangeDetector
from notion_relay.sync.models import ChangeSet, SyncEvent, SyncState
from notion_relay.sync.poll_scheduler import PollScheduler
from notion_relay.sync.state_store import SyncStateStore
from notion_relay.sync.subscribers import Subscriber, SubscriberClosedError, SubscriberRegistry
from notion_relay.sync.sync_coordinator import SyncCoordinator

__all__ = [
    "BroadcastDispatcher",
    "ChangeDetector",
    "ChangeSet",
    "PollScheduler",
    "Subscriber",
    "SubscriberClosedError",
    "SubscriberRegistry",
    "SyncCoordinator",
    "SyncEvent",
    "SyncState",
    "SyncStateStore",
]
