"""HTTP and WebSocket routes of the relay."""

from typing import Any

import structlog
from fastapi import APIRouter, Header, Request, WebSocket
from pydantic import Field

from notion_relay import __version__
from notion_relay.api.services import RelayServices
from notion_relay.api.websocket import WebSocketSubscriber
from notion_relay.models.record import Record
from notion_relay.sync.models import (
    CamelModel,
    ChangesResult,
    DatabaseInfo,
    QueryResult,
    SyncStatus,
)

log = structlog.stdlib.get_logger()

router = APIRouter()

ENDPOINTS = [
    "GET /api/notion/database/:databaseId - Test database connection",
    "POST /api/notion/query - Query database",
    "POST /api/notion/sync - Manual sync trigger",
    "GET /api/notion/changes/:databaseId - Get changes since last sync",
    "POST /api/notion/page - Create new page",
    "GET /api/sync/status - Get sync status",
    "WS /ws - WebSocket for real-time updates",
]


class QueryRequest(CamelModel):
    database_id: str | None = None
    filter: dict[str, Any] | None = None
    sorts: list[dict[str, Any]] | None = None


class SyncRequest(CamelModel):
    database_id: str | None = None


class CreatePageRequest(CamelModel):
    database_id: str | None = None
    properties: dict[str, Any] | None = None


class DatabaseResponse(CamelModel):
    success: bool = True
    database: DatabaseInfo


class PageResponse(CamelModel):
    success: bool = True
    page: Record


class SyncResponse(QueryResult):
    message: str = Field(default="Sync completed")


def get_services(request: Request) -> RelayServices:
    return request.app.state.services


@router.get("/")
async def health(request: Request) -> dict[str, Any]:
    relay = get_services(request)
    ws_scheme = "wss" if request.url.scheme == "https" else "ws"
    return {
        "status": "ok",
        "message": relay.config.server.name,
        "version": __version__,
        "websocket": f"{ws_scheme}://{request.url.netloc}/ws",
        "activeConnections": len(relay.registry),
        "endpoints": ENDPOINTS,
    }


@router.get("/api/notion/database/{database_id}", response_model=DatabaseResponse)
async def test_database(
    database_id: str,
    request: Request,
    x_notion_api_key: str | None = Header(default=None),
) -> DatabaseResponse:
    coordinator = get_services(request).coordinator
    info = await coordinator.describe_database(database_id, x_notion_api_key)
    log.info("notion_connection_successful", database_id=database_id[:8] + "...")
    return DatabaseResponse(database=info)


@router.post("/api/notion/query", response_model=QueryResult)
async def query_database(
    body: QueryRequest,
    request: Request,
    x_notion_api_key: str | None = Header(default=None),
) -> QueryResult:
    return await get_services(request).coordinator.query_and_detect(
        body.database_id,
        x_notion_api_key,
        filter=body.filter,
        sorts=body.sorts,
    )


@router.post("/api/notion/sync", response_model=SyncResponse)
async def trigger_sync(
    body: SyncRequest,
    request: Request,
    x_notion_api_key: str | None = Header(default=None),
) -> SyncResponse:
    result = await get_services(request).coordinator.query_and_detect(
        body.database_id, x_notion_api_key
    )
    return SyncResponse(**result.model_dump())


@router.get("/api/notion/changes/{database_id}", response_model=ChangesResult)
async def get_changes(
    database_id: str,
    request: Request,
    x_notion_api_key: str | None = Header(default=None),
) -> ChangesResult:
    coordinator = get_services(request).coordinator
    return await coordinator.get_changes_only(database_id, x_notion_api_key)


@router.post("/api/notion/page", response_model=PageResponse)
async def create_page(
    body: CreatePageRequest,
    request: Request,
    x_notion_api_key: str | None = Header(default=None),
) -> PageResponse:
    record = await get_services(request).coordinator.create_record(
        body.database_id, body.properties, x_notion_api_key
    )
    return PageResponse(page=record)


@router.get("/api/sync/status", response_model=SyncStatus)
async def sync_status(request: Request) -> SyncStatus:
    return get_services(request).coordinator.get_sync_status()


@router.websocket("/ws")
@router.websocket("/")
async def subscribe(websocket: WebSocket) -> None:
    """Register the connection as a push subscriber until it closes."""
    registry = websocket.app.state.services.registry

    subscriber = WebSocketSubscriber(websocket)
    registry.add(subscriber)

    try:
        await websocket.accept()
        while True:
            # client messages are ignored; only the disconnect matters
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        registry.remove(subscriber)
