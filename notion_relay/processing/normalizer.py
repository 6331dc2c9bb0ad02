"""Flattening of raw Notion pages into Record projections."""

from typing import Any, Iterable

import structlog
from pydantic import ValidationError

from notion_relay.models.record import Record, Scalar, property_value_adapter
from notion_relay.utils.errors import ExtractionError

log = structlog.stdlib.get_logger()


def _extract(name: str, payload: Any) -> Scalar:
    try:
        prop = property_value_adapter.validate_python(payload)
        return prop.extract()
    except (ValidationError, AttributeError, IndexError, TypeError) as e:
        raise ExtractionError(f"Cannot extract property {name!r}: {e}") from e


def normalize_property(name: str, payload: Any) -> Scalar:
    """
    Flatten one typed property payload into a scalar.

    Unrecognized shapes and malformed payloads map to None; the failure is
    logged and never propagates.

    Args:
        name: Property name (for diagnostics only)
        payload: Raw property object as returned by the Notion API

    Returns:
        Flattened scalar value or None
    """
    try:
        return _extract(name, payload)
    except ExtractionError as e:
        log.debug("property_extraction_failed", property=name, error=e.message)
        return None


def normalize_page(page: dict[str, Any]) -> Record:
    """
    Convert a raw Notion page object to a Record.

    Args:
        page: Raw page data from the Notion API

    Returns:
        Record with every property flattened

    Raises:
        ValidationError: If the page lacks an id or valid timestamps
    """
    raw_properties = page.get("properties") or {}
    properties = {
        name: normalize_property(name, payload) for name, payload in raw_properties.items()
    }

    return Record(
        id=page.get("id"),
        created_time=page.get("created_time"),
        last_edited_time=page.get("last_edited_time"),
        url=page.get("url"),
        archived=bool(page.get("archived") or False),
        properties=properties,
    )


def normalize_pages(pages: Iterable[dict[str, Any]]) -> list[Record]:
    """
    Normalize a batch of raw pages, preserving upstream order.

    Pages missing their identity or timestamps are skipped with a warning so
    one malformed item cannot abort the batch.
    """
    records: list[Record] = []

    for page in pages:
        try:
            records.append(normalize_page(page))
        except (ValidationError, AttributeError) as e:
            log.warning(
                "failed_to_normalize_page",
                page_id=page.get("id") if isinstance(page, dict) else None,
                error=str(e),
            )

    return records
