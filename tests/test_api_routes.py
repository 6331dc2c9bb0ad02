"""End-to-end tests of the HTTP and WebSocket surface."""

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import make_raw_page
from notion_relay.api.app import create_app
from notion_relay.models.config import AppConfig, NotionConfig, ServerConfig, SyncConfig

API_KEY = {"x-notion-api-key": "secret"}
FUTURE = "2999-01-01T00:00:00.000Z"


class FakeNotion:
    """Scripted upstream: returns queued query results and records requests."""

    def __init__(self) -> None:
        self.query_results: list[list[dict]] = []
        self.requests: list[httpx.Request] = []
        self.fail_with: httpx.Response | None = None
        self.explode = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.explode:
            raise ValueError("boom")
        if self.fail_with is not None:
            return self.fail_with
        if request.url.path.endswith("/query"):
            results = self.query_results.pop(0) if self.query_results else []
            return httpx.Response(200, json={"results": results, "has_more": False})
        if request.url.path.endswith("/pages"):
            return httpx.Response(
                200,
                json=make_raw_page(
                    "created",
                    properties={"Name": {"type": "title", "title": [{"plain_text": "New"}]}},
                ),
            )
        return httpx.Response(
            200,
            json={
                "id": "db1",
                "title": [{"plain_text": "Tasks"}],
                "created_time": "2023-01-01T00:00:00.000Z",
                "last_edited_time": "2024-01-01T00:00:00.000Z",
                "properties": {"Name": {}, "Done": {}},
            },
        )


def build_config() -> AppConfig:
    return AppConfig(
        notion=NotionConfig(api_base_url="https://api.notion.test/v1", max_retries=0),
        sync=SyncConfig(auto_sync_enabled=False),
        server=ServerConfig(),
    )


@pytest.fixture
def notion() -> FakeNotion:
    return FakeNotion()


@pytest.fixture
def client(notion: FakeNotion):
    http_client = httpx.AsyncClient(
        base_url="https://api.notion.test/v1", transport=httpx.MockTransport(notion.handler)
    )
    app = create_app(build_config(), http_client=http_client)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


class TestHealth:
    def test_health_lists_endpoints(self, client: TestClient) -> None:
        response = client.get("/")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["activeConnections"] == 0
        assert any("/api/sync/status" in e for e in body["endpoints"])


class TestQueryEndpoint:
    def test_missing_credential_is_401(self, client: TestClient, notion: FakeNotion) -> None:
        response = client.post("/api/notion/query", json={"databaseId": "db1"})

        assert response.status_code == 401
        assert response.json()["error"]["kind"] == "missing_credential"
        assert notion.requests == []

    def test_cursor_in_body_is_not_forwarded(self, client: TestClient, notion: FakeNotion) -> None:
        response = client.post(
            "/api/notion/query",
            json={"databaseId": "db1", "startCursor": "c1"},
            headers=API_KEY,
        )

        assert response.status_code == 200
        assert b"start_cursor" not in notion.requests[0].read()

    def test_missing_database_id_is_400(self, client: TestClient, notion: FakeNotion) -> None:
        response = client.post("/api/notion/query", json={}, headers=API_KEY)

        assert response.status_code == 400
        assert response.json()["error"]["kind"] == "missing_parameter"
        assert notion.requests == []

    def test_malformed_body_is_400(self, client: TestClient) -> None:
        response = client.post(
            "/api/notion/query",
            content=b"not json",
            headers={**API_KEY, "Content-Type": "application/json"},
        )

        assert response.status_code == 400

    def test_first_and_incremental_query(self, client: TestClient, notion: FakeNotion) -> None:
        notion.query_results = [
            [make_raw_page("a", "2024-01-01T00:00:00Z")],
            [make_raw_page("a", "2024-01-01T00:00:00Z"), make_raw_page("b", FUTURE)],
        ]

        first = client.post("/api/notion/query", json={"databaseId": "db1"}, headers=API_KEY)
        assert first.status_code == 200
        assert [r["id"] for r in first.json()["changes"]] == ["a"]
        assert first.json()["previousSyncTime"] is None

        second = client.post("/api/notion/query", json={"databaseId": "db1"}, headers=API_KEY)
        body = second.json()
        assert [r["id"] for r in body["results"]] == ["a", "b"]
        assert body["changesCount"] == len(body["changes"])
        assert "a" not in [r["id"] for r in body["changes"]]
        assert body["previousSyncTime"] == first.json()["lastSyncTime"]

    def test_upstream_error_is_forwarded(self, client: TestClient, notion: FakeNotion) -> None:
        notion.fail_with = httpx.Response(
            404, json={"code": "object_not_found", "message": "Could not find database"}
        )

        response = client.post("/api/notion/query", json={"databaseId": "db1"}, headers=API_KEY)

        assert response.status_code == 404
        assert response.json()["error"] == {
            "kind": "upstream_error",
            "message": "Could not find database",
            "code": "object_not_found",
        }
        assert client.get("/api/sync/status").json()["sources"] == []

    def test_unexpected_failure_is_500(self, client: TestClient, notion: FakeNotion) -> None:
        notion.explode = True

        response = client.post("/api/notion/query", json={"databaseId": "db1"}, headers=API_KEY)

        assert response.status_code == 500
        assert response.json()["error"]["kind"] == "internal_error"


class TestChangesEndpoint:
    def test_changes_without_prior_state_is_unfiltered(
        self, client: TestClient, notion: FakeNotion
    ) -> None:
        notion.query_results = [[make_raw_page("a"), make_raw_page("b")]]

        response = client.get("/api/notion/changes/db1", headers=API_KEY)

        assert response.status_code == 200
        assert response.json()["changesCount"] == 2
        sent = notion.requests[0].read()
        assert b'"filter"' not in sent

    def test_changes_after_query_filters_on_sync_time(
        self, client: TestClient, notion: FakeNotion
    ) -> None:
        client.post("/api/notion/query", json={"databaseId": "db1"}, headers=API_KEY)

        client.get("/api/notion/changes/db1", headers=API_KEY)

        sent = notion.requests[1].read()
        assert b'"last_edited_time":{"after"' in sent.replace(b" ", b"")


class TestOtherEndpoints:
    def test_manual_sync(self, client: TestClient, notion: FakeNotion) -> None:
        notion.query_results = [[make_raw_page("a")]]

        response = client.post("/api/notion/sync", json={"databaseId": "db1"}, headers=API_KEY)

        assert response.status_code == 200
        assert response.json()["message"] == "Sync completed"
        assert response.json()["changesCount"] == 1

    def test_create_page(self, client: TestClient) -> None:
        response = client.post(
            "/api/notion/page",
            json={"databaseId": "db1", "properties": {"Name": {"title": []}}},
            headers=API_KEY,
        )

        assert response.status_code == 200
        assert response.json()["page"]["properties"] == {"Name": "New"}

    def test_create_page_requires_properties(self, client: TestClient) -> None:
        response = client.post("/api/notion/page", json={"databaseId": "db1"}, headers=API_KEY)

        assert response.status_code == 400

    def test_database_connection_test(self, client: TestClient) -> None:
        response = client.get("/api/notion/database/db1", headers=API_KEY)

        assert response.status_code == 200
        database = response.json()["database"]
        assert database["title"] == "Tasks"
        assert database["properties"] == ["Name", "Done"]

    def test_sync_status(self, client: TestClient, notion: FakeNotion) -> None:
        notion.query_results = [[make_raw_page("a"), make_raw_page("b")]]
        client.post("/api/notion/query", json={"databaseId": "db1"}, headers=API_KEY)

        status = client.get("/api/sync/status").json()

        assert status["sources"][0]["dataSourceId"] == "db1"
        assert status["sources"][0]["recordCount"] == 2
        assert status["activeSubscriberCount"] == 0
        assert status["uptime"] >= 0

    def test_cors_allows_vercel_preview(self, client: TestClient) -> None:
        response = client.options(
            "/api/notion/query",
            headers={
                "Origin": "https://preview-123.vercel.app",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "x-notion-api-key",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "https://preview-123.vercel.app"


class TestWebSocketPush:
    @pytest.mark.parametrize("path", ["/ws", "/"])
    def test_subscriber_receives_changes(
        self, client: TestClient, notion: FakeNotion, path: str
    ) -> None:
        notion.query_results = [[make_raw_page("a")]]

        with client.websocket_connect(path) as websocket:
            assert client.get("/api/sync/status").json()["activeSubscriberCount"] == 1

            client.post("/api/notion/query", json={"databaseId": "db1"}, headers=API_KEY)
            event = websocket.receive_json()

        assert event["type"] == "notion_update"
        assert event["dataSourceId"] == "db1"
        assert event["changesCount"] == 1
        assert event["data"][0]["id"] == "a"

    def test_two_subscribers_receive_identical_payload(
        self, client: TestClient, notion: FakeNotion
    ) -> None:
        notion.query_results = [[make_raw_page("a"), make_raw_page("b")]]

        with client.websocket_connect("/ws") as first, client.websocket_connect("/ws") as second:
            client.post("/api/notion/query", json={"databaseId": "db1"}, headers=API_KEY)

            assert first.receive_text() == second.receive_text()
