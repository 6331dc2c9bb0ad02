"""Periodic re-sync of every known data source."""

import asyncio

import structlog

from notion_relay.sync.state_store import SyncStateStore
from notion_relay.sync.sync_coordinator import SyncCoordinator
from notion_relay.utils.errors import RelayError

log = structlog.stdlib.get_logger()


class PollScheduler:
    """Background task that runs the changes-only sync on a fixed interval.

    Only data sources that already have sync state are polled, using the
    server-side integration token. A failing source is logged and skipped;
    the scheduler keeps ticking.
    """

    def __init__(
        self,
        coordinator: SyncCoordinator,
        state_store: SyncStateStore,
        credential: str,
        interval_seconds: float,
    ):
        self._coordinator = coordinator
        self._state_store = state_store
        self._credential = credential
        self._interval = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Start ticking in a background task on the running loop."""
        if self.running:
            raise RuntimeError("Poll scheduler already running")

        self._task = asyncio.create_task(self._run(), name="poll-scheduler")
        log.info("poll_scheduler_started", interval_seconds=self._interval)
        return self._task

    async def stop(self) -> None:
        """Cancel the background task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        log.info("poll_scheduler_stopped")

    async def run_once(self) -> dict[str, int | None]:
        """
        Run one tick over every known data source.

        Returns:
            Mapping of data source id to its changes count, or None on failure
        """
        source_ids = self._state_store.source_ids()
        log.info("poll_tick_started", source_count=len(source_ids))

        outcome: dict[str, int | None] = {}
        for data_source_id in source_ids:
            try:
                result = await self._coordinator.get_changes_only(data_source_id, self._credential)
                outcome[data_source_id] = result.changes_count
                log.info(
                    "poll_source_synced",
                    data_source_id=data_source_id,
                    changes_count=result.changes_count,
                )
            except RelayError as e:
                outcome[data_source_id] = None
                log.warning(
                    "poll_source_failed",
                    data_source_id=data_source_id,
                    kind=e.kind,
                    error=e.message,
                )
            except Exception as e:
                outcome[data_source_id] = None
                log.error(
                    "poll_source_failed",
                    data_source_id=data_source_id,
                    error=str(e),
                    exc_info=True,
                )

        return outcome

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.run_once()
