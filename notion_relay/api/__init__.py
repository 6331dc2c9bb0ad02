"""HTTP and WebSocket surface of the relay."""

from notion_relay.api.app import create_app

__all__ = ["create_app"]
