"""Change detection between a fresh snapshot and the stored sync state."""

from datetime import datetime, timezone
from typing import Callable

import structlog

from notion_relay.models.record import Record
from notion_relay.sync.models import ChangeSet
from notion_relay.sync.state_store import SyncStateStore

log = structlog.stdlib.get_logger()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so comparisons are always chronological."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ChangeDetector:
    """Derives the delta of a snapshot and records the new sync state.

    A record counts as changed when its last_edited_time is strictly after
    the stored sync time. The first snapshot of a source is entirely new.
    Edits between two detections collapse into the latest observed version.
    """

    def __init__(self, state_store: SyncStateStore, clock: Callable[[], datetime] = utc_now):
        """
        Initialize change detector.

        Args:
            state_store: Store read for the prior state and overwritten after detection
            clock: Source of the current time (injected by tests)
        """
        self._state_store = state_store
        self._clock = clock

    def detect(self, data_source_id: str, fresh_snapshot: list[Record]) -> ChangeSet:
        """
        Compute the delta for a fresh snapshot and store the snapshot.

        The store is written even when nothing changed, so the sync time
        advances on every call. Runs without suspension points, so the
        read and the overwrite are atomic on the event loop.

        Args:
            data_source_id: Notion database id
            fresh_snapshot: Normalized records of the latest fetch

        Returns:
            ChangeSet with the changed records and both sync times
        """
        prior = self._state_store.get(data_source_id)
        previous_sync_time = as_aware(prior.last_sync_time) if prior else None

        if previous_sync_time is None:
            changes = list(fresh_snapshot)
        else:
            changes = [
                record
                for record in fresh_snapshot
                if as_aware(record.last_edited_time) > previous_sync_time
            ]

        sync_time = as_aware(self._clock())
        if previous_sync_time is not None and sync_time < previous_sync_time:
            # wall clock stepped backwards; keep the stored time non-decreasing
            log.warning(
                "clock_regression_detected",
                data_source_id=data_source_id,
                clock_time=sync_time,
                previous_sync_time=previous_sync_time,
            )
            sync_time = previous_sync_time

        self._state_store.set(data_source_id, sync_time, fresh_snapshot)

        change_set = ChangeSet(
            data_source_id=data_source_id,
            changes=changes,
            previous_sync_time=previous_sync_time,
            sync_time=sync_time,
        )

        log.info(
            "changes_detected",
            data_source_id=data_source_id,
            snapshot_size=len(fresh_snapshot),
            changes_count=change_set.changes_count,
            first_sync=prior is None,
            previous_sync_time=previous_sync_time,
        )

        return change_set
