"""
Command line entry point for the Notion sync relay.

Loads configuration, configures structured logging and serves the
FastAPI application (HTTP + WebSocket) with uvicorn.

Usage:
    notion-sync-relay [--config CONFIG_PATH] [--host HOST] [--port PORT]
"""

import argparse
import sys

import structlog
import uvicorn

from notion_relay.api.app import create_app
from notion_relay.utils.config_loader import ConfigLoader
from notion_relay.utils.errors import ConfigurationError
from notion_relay.utils.logging_config import configure_logging

log = structlog.stdlib.get_logger()


def main() -> None:
    """Main entry point for the relay server."""
    parser = argparse.ArgumentParser(description="Notion sync relay server")
    parser.add_argument("--config", type=str, default=None, help="Path to configuration file")
    parser.add_argument("--host", type=str, default=None, help="Override bind address")
    parser.add_argument("--port", type=int, default=None, help="Override listen port")
    args = parser.parse_args()

    config_loader = ConfigLoader()
    try:
        config = config_loader.load_config(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(
        log_level=config.logging.log_level,
        json_logs=config.logging.json_logs,
        log_file=config.logging.log_file,
    )
    config_loader.validate_config(config)

    host = args.host or config.server.host
    port = args.port or config.server.port

    log.info(
        "relay_starting",
        host=host,
        port=port,
        auto_sync=config.sync.auto_sync_enabled,
        sync_interval_seconds=config.sync.sync_interval_seconds,
    )

    uvicorn.run(create_app(config), host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
