"""Data models for synchronization state, change sets and push events."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from notion_relay.models.record import Record


class CamelModel(BaseModel):
    """Base for payloads exchanged with browser clients (camelCase keys)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SyncState(BaseModel):
    """Last observed state of one data source."""

    data_source_id: str = Field(default=..., description="Notion database id")
    last_sync_time: datetime = Field(default=..., description="Time of the last detection")
    last_snapshot: list[Record] = Field(
        default_factory=list, description="Records returned by the most recent fetch"
    )

    @property
    def record_count(self) -> int:
        return len(self.last_snapshot)


class ChangeSet(BaseModel):
    """Records of a fresh snapshot considered changed since the previous sync."""

    data_source_id: str = Field(default=..., description="Notion database id")
    changes: list[Record] = Field(default_factory=list, description="Changed records")
    previous_sync_time: datetime | None = Field(
        default=None, description="Stored sync time before this detection, None on first sync"
    )
    sync_time: datetime = Field(default=..., description="Sync time recorded by this detection")

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)

    @property
    def changes_count(self) -> int:
        return len(self.changes)


class SyncEvent(CamelModel):
    """Push notification sent to every live subscriber."""

    type: str = Field(default=..., description="Event type tag (notion_update, notion_changes)")
    data_source_id: str = Field(default=..., description="Notion database id")
    changes_count: int = Field(default=..., ge=0, description="Number of changed records")
    data: list[Record] = Field(default_factory=list, description="Changed records")

    @classmethod
    def from_change_set(cls, event_type: str, change_set: ChangeSet) -> "SyncEvent":
        return cls(
            type=event_type,
            data_source_id=change_set.data_source_id,
            changes_count=change_set.changes_count,
            data=change_set.changes,
        )


class QueryResult(CamelModel):
    """Full result set plus delta for a query."""

    success: bool = True
    results: list[Record] = Field(default_factory=list)
    changes: list[Record] = Field(default_factory=list)
    changes_count: int = Field(default=0, ge=0)
    total_count: int = Field(default=0, ge=0)
    has_more: bool = False
    next_cursor: str | None = None
    last_sync_time: datetime
    previous_sync_time: datetime | None = None


class ChangesResult(CamelModel):
    """Delta-only result for the changes endpoint and the poll scheduler."""

    success: bool = True
    changes: list[Record] = Field(default_factory=list)
    changes_count: int = Field(default=0, ge=0)
    last_sync_time: datetime
    previous_sync_time: datetime | None = None


class SourceStatus(CamelModel):
    data_source_id: str
    last_sync_time: datetime
    record_count: int = Field(default=0, ge=0)


class SyncStatus(CamelModel):
    """Snapshot of the relay's in-memory sync state."""

    success: bool = True
    sources: list[SourceStatus] = Field(default_factory=list)
    active_subscriber_count: int = Field(default=0, ge=0)
    uptime: float = Field(default=0.0, ge=0.0, description="Process uptime in seconds")


class DatabaseInfo(CamelModel):
    """Summary of a database returned by the connection test."""

    id: str
    title: str = "Untitled"
    created_time: datetime | None = None
    last_edited_time: datetime | None = None
    properties: list[str] = Field(default_factory=list)
