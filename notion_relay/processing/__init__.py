"""Normalization of raw Notion payloads."""

from notion_relay.processing.normalizer import normalize_page, normalize_pages, normalize_property

__all__ = ["normalize_page", "normalize_pages", "normalize_property"]
