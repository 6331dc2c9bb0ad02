"""Tests for the Notion API client against a mocked transport."""

import json

import httpx
import pytest

from conftest import make_raw_page
from notion_relay.ingestion.notion_client import DEFAULT_SORTS, NotionClient
from notion_relay.models.config import NotionConfig
from notion_relay.utils.errors import TransportError, UpstreamError

BASE_URL = "https://api.notion.test/v1"


def client_for(handler, max_retries: int = 0) -> NotionClient:
    config = NotionConfig(api_base_url=BASE_URL, max_retries=max_retries)
    http_client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return NotionClient(config, http_client=http_client)


class TestQueryDatabase:
    @pytest.mark.asyncio
    async def test_sends_credential_version_and_default_body(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"results": [make_raw_page("a")], "has_more": True, "next_cursor": "cur-2"},
            )

        client = client_for(handler)
        page = await client.query_database("db1", "secret")
        await client.aclose()

        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/v1/databases/db1/query"
        assert request.headers["Authorization"] == "Bearer secret"
        assert request.headers["Notion-Version"] == "2022-06-28"
        body = json.loads(request.content)
        assert body == {"sorts": DEFAULT_SORTS, "page_size": 100}
        assert [p["id"] for p in page.results] == ["a"]
        assert page.has_more is True
        assert page.next_cursor == "cur-2"

    @pytest.mark.asyncio
    async def test_filter_and_sorts_are_passed(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"results": []})

        client = client_for(handler)
        filter = {"timestamp": "last_edited_time", "last_edited_time": {"after": "2024-01-01"}}
        sorts = [{"property": "Name", "direction": "ascending"}]
        await client.query_database("db1", "secret", filter=filter, sorts=sorts)
        await client.aclose()

        assert bodies[0]["filter"] == filter
        assert bodies[0]["sorts"] == sorts
        assert "start_cursor" not in bodies[0]

    @pytest.mark.asyncio
    async def test_non_2xx_raises_upstream_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                404,
                json={
                    "object": "error",
                    "status": 404,
                    "code": "object_not_found",
                    "message": "Could not find database with ID: db1.",
                },
            )

        client = client_for(handler)
        with pytest.raises(UpstreamError) as exc_info:
            await client.query_database("db1", "secret")
        await client.aclose()

        error = exc_info.value
        assert error.status == 404
        assert error.code == "object_not_found"
        assert "Could not find database" in error.message

    @pytest.mark.asyncio
    async def test_non_json_error_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad gateway")

        client = client_for(handler)
        with pytest.raises(UpstreamError) as exc_info:
            await client.query_database("db1", "secret")
        await client.aclose()

        assert exc_info.value.status == 502
        assert exc_info.value.message == "Notion API error"


class TestTransportFailures:
    @pytest.mark.asyncio
    async def test_network_error_raises_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = client_for(handler)
        with pytest.raises(TransportError):
            await client.query_database("db1", "secret")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_transport_error_is_retried(self, monkeypatch) -> None:
        async def no_sleep(delay: float) -> None:
            return None

        monkeypatch.setattr("notion_relay.utils.retry.asyncio.sleep", no_sleep)
        attempts = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal attempts
            attempts += 1
            if attempts < 3:
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(200, json={"results": []})

        client = client_for(handler, max_retries=2)
        page = await client.query_database("db1", "secret")
        await client.aclose()

        assert attempts == 3
        assert page.results == []

    @pytest.mark.asyncio
    async def test_upstream_error_is_not_retried(self) -> None:
        attempts = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal attempts
            attempts += 1
            return httpx.Response(429, json={"code": "rate_limited", "message": "Slow down"})

        client = client_for(handler, max_retries=3)
        with pytest.raises(UpstreamError):
            await client.query_database("db1", "secret")
        await client.aclose()

        assert attempts == 1

    @pytest.mark.asyncio
    async def test_create_page_is_sent_once_on_timeout(self, monkeypatch) -> None:
        async def no_sleep(delay: float) -> None:
            return None

        monkeypatch.setattr("notion_relay.utils.retry.asyncio.sleep", no_sleep)
        attempts = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal attempts
            attempts += 1
            raise httpx.ReadTimeout("timed out", request=request)

        client = client_for(handler, max_retries=2)
        with pytest.raises(TransportError):
            await client.create_page("db1", {"Name": {"title": []}}, "secret")
        await client.aclose()

        assert attempts == 1


class TestPagesAndDatabases:
    @pytest.mark.asyncio
    async def test_create_page_posts_parent_and_properties(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/pages"
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json=make_raw_page("new"))

        client = client_for(handler)
        properties = {"Name": {"title": [{"text": {"content": "Hi"}}]}}
        page = await client.create_page("db1", properties, "secret")
        await client.aclose()

        assert bodies[0] == {"parent": {"database_id": "db1"}, "properties": properties}
        assert page["id"] == "new"

    @pytest.mark.asyncio
    async def test_retrieve_database_uses_get(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            assert request.url.path == "/v1/databases/db1"
            return httpx.Response(200, json={"id": "db1", "title": [], "properties": {}})

        client = client_for(handler)
        data = await client.retrieve_database("db1", "secret")
        await client.aclose()

        assert data["id"] == "db1"
