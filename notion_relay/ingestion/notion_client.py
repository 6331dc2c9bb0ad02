"""Async client for the Notion REST API."""

from typing import Any

import httpx
import structlog
from pydantic import BaseModel, Field

from notion_relay.models.config import NotionConfig
from notion_relay.utils.errors import TransportError, UpstreamError
from notion_relay.utils.retry import exponential_backoff_retry

log = structlog.stdlib.get_logger()

DEFAULT_SORTS: list[dict[str, str]] = [{"timestamp": "last_edited_time", "direction": "descending"}]


class QueryPage(BaseModel):
    """One page of raw results from a database query."""

    results: list[dict[str, Any]] = Field(default_factory=list, description="Raw page objects")
    has_more: bool = Field(default=False, description="Whether more results exist upstream")
    next_cursor: str | None = Field(default=None, description="Cursor for the next page")


class NotionClient:
    """Thin async wrapper around the Notion API.

    The credential is supplied per call: request handlers forward the
    caller's key while the poll scheduler uses the configured integration
    token. The client itself holds no credential.
    """

    def __init__(self, config: NotionConfig, http_client: httpx.AsyncClient | None = None):
        """
        Initialize Notion client.

        Args:
            config: Upstream API configuration
            http_client: Optional pre-built httpx client (tests inject a mock transport)
        """
        self._config = config
        self._max_retries = config.max_retries
        self._client = http_client or httpx.AsyncClient(
            base_url=config.api_base_url,
            timeout=config.timeout_seconds,
        )
        log.info(
            "notion_client_initialized",
            base_url=config.api_base_url,
            api_version=config.api_version,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def query_database(
        self,
        database_id: str,
        credential: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
    ) -> QueryPage:
        """
        Run a database query.

        Args:
            database_id: Notion database id
            credential: Notion API key
            filter: Optional Notion filter object; omitted when empty
            sorts: Optional sort objects (defaults to newest edits first)

        Returns:
            QueryPage with the raw results

        Raises:
            UpstreamError: On a non-2xx response
            TransportError: When the API cannot be reached
        """
        body: dict[str, Any] = {
            "sorts": sorts or DEFAULT_SORTS,
            "page_size": self._config.page_size,
        }
        if filter:
            body["filter"] = filter

        data = await self._request("POST", f"/databases/{database_id}/query", credential, body)
        page = QueryPage.model_validate(data)

        log.info(
            "database_queried",
            database_id=database_id,
            result_count=len(page.results),
            has_more=page.has_more,
            filtered=bool(filter),
        )
        return page

    async def create_page(
        self, database_id: str, properties: dict[str, Any], credential: str
    ) -> dict[str, Any]:
        """Create a page under a database and return the raw page object."""
        body = {"parent": {"database_id": database_id}, "properties": properties}
        # page creation is not idempotent; a lost response must not be resent
        data = await self._send("POST", "/pages", credential, body)
        log.info("page_created", database_id=database_id, page_id=data.get("id"))
        return data

    async def retrieve_database(self, database_id: str, credential: str) -> dict[str, Any]:
        """Fetch database metadata; used as a connection test."""
        return await self._request("GET", f"/databases/{database_id}", credential)

    def _headers(self, credential: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {credential}",
            "Notion-Version": self._config.api_version,
            "Content-Type": "application/json",
        }

    @exponential_backoff_retry(
        max_retries=lambda self, *args, **kwargs: self._max_retries,
        base_delay=0.5,
        max_delay=10.0,
        exceptions=(TransportError,),
    )
    async def _request(
        self,
        method: str,
        path: str,
        credential: str,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send an idempotent request, retrying transport failures."""
        return await self._send(method, path, credential, body)

    async def _send(
        self,
        method: str,
        path: str,
        credential: str,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._client.request(
                method, path, headers=self._headers(credential), json=body
            )
        except httpx.TransportError as e:
            log.error("notion_transport_error", method=method, path=path, error=str(e))
            raise TransportError(f"Failed to reach Notion API: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = None
        payload = data if isinstance(data, dict) else {}

        if not response.is_success:
            message = payload.get("message") or payload.get("error") or "Notion API error"
            log.error(
                "notion_api_error",
                method=method,
                path=path,
                status=response.status_code,
                code=payload.get("code"),
                message=message,
            )
            raise UpstreamError(response.status_code, message, payload.get("code"))

        if not isinstance(data, dict):
            raise UpstreamError(
                response.status_code, "Notion API returned an invalid body", "invalid_body"
            )

        return data
