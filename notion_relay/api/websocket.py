"""WebSocket transport for push subscribers."""

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from notion_relay.sync.subscribers import SubscriberClosedError


class WebSocketSubscriber:
    """Adapts a FastAPI WebSocket to the Subscriber capability."""

    def __init__(self, websocket: WebSocket):
        self._websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    async def send(self, message: str) -> None:
        try:
            await self._websocket.send_text(message)
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            raise SubscriberClosedError(f"WebSocket closed: {e}") from e
