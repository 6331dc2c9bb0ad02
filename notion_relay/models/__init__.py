"""Data models for the Notion sync relay."""

from notion_relay.models.config import (
    AppConfig,
    LoggingConfig,
    NotionConfig,
    ServerConfig,
    SyncConfig,
)
from notion_relay.models.record import PropertyValue, Record, Scalar

__all__ = [
    "AppConfig",
    "LoggingConfig",
    "NotionConfig",
    "PropertyValue",
    "Record",
    "Scalar",
    "ServerConfig",
    "SyncConfig",
]
