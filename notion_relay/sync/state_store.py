"""In-memory per data source sync state."""

from datetime import datetime

import structlog

from notion_relay.models.record import Record
from notion_relay.sync.models import SyncState

log = structlog.stdlib.get_logger()


class SyncStateStore:
    """Holds the last sync time and snapshot for every data source seen.

    State lives for the lifetime of the process and is never evicted, so
    memory grows with the number of distinct data sources queried.
    """

    def __init__(self) -> None:
        self._states: dict[str, SyncState] = {}

    def get(self, data_source_id: str) -> SyncState | None:
        """Return the stored state, or None if the source was never synced."""
        return self._states.get(data_source_id)

    def set(self, data_source_id: str, timestamp: datetime, snapshot: list[Record]) -> SyncState:
        """
        Overwrite the state of a data source.

        Args:
            data_source_id: Notion database id
            timestamp: New last sync time
            snapshot: Records of the most recent fetch (replaces, never merges)

        Returns:
            The stored SyncState
        """
        state = SyncState(
            data_source_id=data_source_id,
            last_sync_time=timestamp,
            last_snapshot=list(snapshot),
        )
        self._states[data_source_id] = state

        log.debug(
            "sync_state_saved",
            data_source_id=data_source_id,
            last_sync_time=timestamp,
            record_count=state.record_count,
        )
        return state

    def source_ids(self) -> list[str]:
        """Ids of all known data sources, in first-seen order."""
        return list(self._states)

    def states(self) -> list[SyncState]:
        return list(self._states.values())

    def __contains__(self, data_source_id: object) -> bool:
        return data_source_id in self._states

    def __len__(self) -> int:
        return len(self._states)
