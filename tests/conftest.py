"""Shared fixtures and factories for relay tests."""

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from notion_relay.models.record import Record
from notion_relay.sync.change_detector import ChangeDetector
from notion_relay.sync.state_store import SyncStateStore
from notion_relay.sync.subscribers import SubscriberClosedError

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_raw_page(
    page_id: str,
    last_edited_time: str = "2024-01-01T00:00:00.000Z",
    properties: dict[str, Any] | None = None,
    created_time: str = "2023-12-01T00:00:00.000Z",
) -> dict[str, Any]:
    """Raw page object shaped like a Notion API response."""
    return {
        "object": "page",
        "id": page_id,
        "created_time": created_time,
        "last_edited_time": last_edited_time,
        "url": f"https://www.notion.so/{page_id}",
        "archived": False,
        "properties": properties or {},
    }


def make_record(page_id: str, last_edited_time: datetime) -> Record:
    return Record(
        id=page_id,
        created_time=T0 - timedelta(days=30),
        last_edited_time=last_edited_time,
        url=f"https://www.notion.so/{page_id}",
    )


class FakeClock:
    """Controllable clock for change detection tests."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeSubscriber:
    """In-memory subscriber recording every message it receives."""

    def __init__(self, open_: bool = True, fail: bool = False):
        self.open = open_
        self.fail = fail
        self.messages: list[str] = []

    @property
    def is_open(self) -> bool:
        return self.open

    async def send(self, message: str) -> None:
        if self.fail:
            self.open = False
            raise SubscriberClosedError("connection reset")
        self.messages.append(message)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def state_store() -> SyncStateStore:
    return SyncStateStore()


@pytest.fixture
def detector(state_store: SyncStateStore, clock: FakeClock) -> ChangeDetector:
    return ChangeDetector(state_store, clock=clock)
