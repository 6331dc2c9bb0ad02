"""Synchronization coordinator: fetch, normalize, detect and publish."""

import asyncio
import contextlib
import time
from typing import Any, AsyncContextManager

import structlog

from notion_relay.ingestion.notion_client import NotionClient
from notion_relay.models.config import SyncConfig
from notion_relay.models.record import Record
from notion_relay.processing.normalizer import normalize_page, normalize_pages
from notion_relay.sync.broadcaster import BroadcastDispatcher
from notion_relay.sync.change_detector import ChangeDetector
from notion_relay.sync.models import (
    ChangeSet,
    ChangesResult,
    DatabaseInfo,
    QueryResult,
    SourceStatus,
    SyncEvent,
    SyncStatus,
)
from notion_relay.sync.state_store import SyncStateStore
from notion_relay.sync.subscribers import SubscriberRegistry
from notion_relay.utils.errors import MissingCredentialError, MissingParameterError

log = structlog.stdlib.get_logger()

QUERY_EVENT = "notion_update"
CHANGES_EVENT = "notion_changes"


def require_credential(credential: str | None) -> str:
    if not credential:
        raise MissingCredentialError("Missing Notion API key in headers", code="missing_api_key")
    return credential


def require_parameter(value: Any, field: str) -> Any:
    if value is None or value == "" or value == {}:
        raise MissingParameterError(f"Missing {field} in request", field=field)
    return value


class SyncCoordinator:
    """Orchestrates the fetch -> normalize -> detect -> publish pipeline.

    Operations for the same data source may interleave while a fetch is in
    flight. By default the last detection to finish wins the stored state;
    with ``serialize_per_source`` a per-source lock applies them in arrival
    order instead.
    """

    def __init__(
        self,
        client: NotionClient,
        state_store: SyncStateStore,
        change_detector: ChangeDetector,
        broadcaster: BroadcastDispatcher,
        registry: SubscriberRegistry,
        sync_config: SyncConfig | None = None,
    ):
        """
        Initialize sync coordinator.

        Args:
            client: Upstream Notion client
            state_store: Per data source sync state
            change_detector: Delta computation over the state store
            broadcaster: Publishes non-empty deltas
            registry: Live subscribers (reported in status)
            sync_config: Optional sync configuration
        """
        self._client = client
        self._state_store = state_store
        self._change_detector = change_detector
        self._broadcaster = broadcaster
        self._registry = registry
        self._serialize = (sync_config or SyncConfig()).serialize_per_source
        self._locks: dict[str, asyncio.Lock] = {}
        self._started_at = time.monotonic()

        log.info("sync_coordinator_initialized", serialize_per_source=self._serialize)

    async def query_and_detect(
        self,
        data_source_id: str | None,
        credential: str | None,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
    ) -> QueryResult:
        """
        Query a data source, detect changes and publish them.

        Only the first result page is fetched; it is treated as the full
        snapshot. ``has_more`` and ``next_cursor`` are reported as returned
        by Notion.

        Args:
            data_source_id: Notion database id
            credential: Caller's Notion API key
            filter: Optional Notion filter passed through upstream
            sorts: Optional sort objects passed through upstream

        Returns:
            QueryResult with all records, the delta and the sync times

        Raises:
            MissingCredentialError: If no credential was given
            MissingParameterError: If no data source id was given
            UpstreamError: If Notion rejects the query
            TransportError: If Notion cannot be reached
        """
        credential = require_credential(credential)
        data_source_id = require_parameter(data_source_id, "databaseId")

        async with self._source_guard(data_source_id):
            page = await self._client.query_database(
                data_source_id,
                credential,
                filter=filter,
                sorts=sorts,
            )
            records = normalize_pages(page.results)
            change_set = self._change_detector.detect(data_source_id, records)

        await self._publish(QUERY_EVENT, change_set)

        return QueryResult(
            results=records,
            changes=change_set.changes,
            changes_count=change_set.changes_count,
            total_count=len(records),
            has_more=page.has_more,
            next_cursor=page.next_cursor,
            last_sync_time=change_set.sync_time,
            previous_sync_time=change_set.previous_sync_time,
        )

    async def get_changes_only(
        self, data_source_id: str | None, credential: str | None
    ) -> ChangesResult:
        """
        Fetch only records edited after the stored sync time.

        With no stored state the query is unfiltered and every record is a
        change. The fetched records then go through change detection like a
        regular query, so they become the stored snapshot.

        Raises:
            MissingCredentialError, MissingParameterError, UpstreamError, TransportError
        """
        credential = require_credential(credential)
        data_source_id = require_parameter(data_source_id, "databaseId")

        async with self._source_guard(data_source_id):
            state = self._state_store.get(data_source_id)
            filter = (
                {
                    "timestamp": "last_edited_time",
                    "last_edited_time": {"after": state.last_sync_time.isoformat()},
                }
                if state is not None
                else None
            )

            page = await self._client.query_database(data_source_id, credential, filter=filter)
            records = normalize_pages(page.results)
            change_set = self._change_detector.detect(data_source_id, records)

        await self._publish(CHANGES_EVENT, change_set)

        return ChangesResult(
            changes=change_set.changes,
            changes_count=change_set.changes_count,
            last_sync_time=change_set.sync_time,
            previous_sync_time=change_set.previous_sync_time,
        )

    async def create_record(
        self,
        data_source_id: str | None,
        properties: dict[str, Any] | None,
        credential: str | None,
    ) -> Record:
        """Create a page in a data source and return it normalized.

        Does not touch sync state; the new page shows up as a change on the
        next detection.
        """
        credential = require_credential(credential)
        data_source_id = require_parameter(data_source_id, "databaseId")
        properties = require_parameter(properties, "properties")

        page = await self._client.create_page(data_source_id, properties, credential)
        return normalize_page(page)

    async def describe_database(
        self, data_source_id: str | None, credential: str | None
    ) -> DatabaseInfo:
        """Connection test: fetch database metadata."""
        credential = require_credential(credential)
        data_source_id = require_parameter(data_source_id, "databaseId")

        log.info("testing_notion_connection", database_id=data_source_id[:8] + "...")

        data = await self._client.retrieve_database(data_source_id, credential)
        title_fragments = data.get("title") or []
        title = title_fragments[0].get("plain_text") if title_fragments else None

        return DatabaseInfo(
            id=data.get("id", data_source_id),
            title=title or "Untitled",
            created_time=data.get("created_time"),
            last_edited_time=data.get("last_edited_time"),
            properties=list((data.get("properties") or {}).keys()),
        )

    def get_sync_status(self) -> SyncStatus:
        """Report every known data source, live subscribers and uptime."""
        sources = [
            SourceStatus(
                data_source_id=state.data_source_id,
                last_sync_time=state.last_sync_time,
                record_count=state.record_count,
            )
            for state in self._state_store.states()
        ]
        return SyncStatus(
            sources=sources,
            active_subscriber_count=len(self._registry),
            uptime=time.monotonic() - self._started_at,
        )

    async def _publish(self, event_type: str, change_set: ChangeSet) -> None:
        if not change_set.has_changes:
            return
        await self._broadcaster.publish(SyncEvent.from_change_set(event_type, change_set))

    def _source_guard(self, data_source_id: str) -> AsyncContextManager[Any]:
        if not self._serialize:
            return contextlib.nullcontext()
        lock = self._locks.get(data_source_id)
        if lock is None:
            lock = self._locks[data_source_id] = asyncio.Lock()
        return lock
