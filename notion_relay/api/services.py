"""Process-scoped component wiring."""

from dataclasses import dataclass

import httpx
import structlog

from notion_relay.ingestion.notion_client import NotionClient
from notion_relay.models.config import AppConfig
from notion_relay.sync.broadcaster import BroadcastDispatcher
from notion_relay.sync.change_detector import ChangeDetector
from notion_relay.sync.poll_scheduler import PollScheduler
from notion_relay.sync.state_store import SyncStateStore
from notion_relay.sync.subscribers import SubscriberRegistry
from notion_relay.sync.sync_coordinator import SyncCoordinator

log = structlog.stdlib.get_logger()


@dataclass
class RelayServices:
    """All stateful components of one relay process."""

    config: AppConfig
    client: NotionClient
    state_store: SyncStateStore
    registry: SubscriberRegistry
    coordinator: SyncCoordinator
    scheduler: PollScheduler | None = None


def build_services(
    config: AppConfig, http_client: httpx.AsyncClient | None = None
) -> RelayServices:
    """
    Create fresh components for one process (or one test).

    Args:
        config: Relay configuration
        http_client: Optional httpx client for the upstream API

    Returns:
        RelayServices with empty sync state and no subscribers
    """
    client = NotionClient(config.notion, http_client=http_client)
    state_store = SyncStateStore()
    registry = SubscriberRegistry()
    coordinator = SyncCoordinator(
        client=client,
        state_store=state_store,
        change_detector=ChangeDetector(state_store),
        broadcaster=BroadcastDispatcher(registry),
        registry=registry,
        sync_config=config.sync,
    )

    scheduler = None
    if config.sync.auto_sync_enabled:
        if config.notion.integration_token:
            scheduler = PollScheduler(
                coordinator=coordinator,
                state_store=state_store,
                credential=config.notion.integration_token,
                interval_seconds=config.sync.sync_interval_seconds,
            )
        else:
            log.warning("auto_sync_disabled_missing_integration_token")

    return RelayServices(
        config=config,
        client=client,
        state_store=state_store,
        registry=registry,
        coordinator=coordinator,
        scheduler=scheduler,
    )
