"""Upstream Notion API access."""

from notion_relay.ingestion.notion_client import NotionClient, QueryPage

__all__ = ["NotionClient", "QueryPage"]
