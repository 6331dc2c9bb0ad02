#!/usr/bin/env python3
"""
Health check script for the Notion sync relay.

Checks:
- Configuration validation
- Relay HTTP endpoint reachability
- Notion API connectivity (when a database id and integration token are available)

Usage:
    python scripts/health_check.py [--config CONFIG_PATH] [--url URL] [--database-id ID] [--json]

Exit codes:
    0: All checks passed
    1: One or more checks failed
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime, timezone

import httpx
import structlog

from notion_relay.ingestion.notion_client import NotionClient
from notion_relay.models.config import AppConfig
from notion_relay.utils.config_loader import ConfigLoader
from notion_relay.utils.errors import ConfigurationError, RelayError

log = structlog.stdlib.get_logger()


class HealthChecker:
    """Performs health checks on relay components."""

    def __init__(self, config_path: str | None = None):
        self.config_path = config_path
        self.config: AppConfig | None = None
        self.results: dict[str, dict] = {}

    def check_configuration(self) -> bool:
        check_name = "configuration"
        log.info("checking_configuration")

        try:
            loader = ConfigLoader()
            self.config = loader.load_config(self.config_path)
            warnings = loader.validate_config(self.config)
        except ConfigurationError as e:
            self.results[check_name] = {"status": "fail", "message": str(e), "details": {}}
            return False

        self.results[check_name] = {
            "status": "pass",
            "message": "Configuration loaded successfully",
            "details": {
                "port": self.config.server.port,
                "auto_sync_enabled": self.config.sync.auto_sync_enabled,
                "warnings": warnings,
            },
        }
        return True

    def check_relay(self, url: str) -> bool:
        check_name = "relay"
        log.info("checking_relay", url=url)

        try:
            response = httpx.get(url, timeout=5.0)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self.results[check_name] = {
                "status": "fail",
                "message": f"Relay not reachable: {e}",
                "details": {},
            }
            return False

        self.results[check_name] = {
            "status": "pass",
            "message": "Relay is up",
            "details": {
                "version": body.get("version"),
                "active_connections": body.get("activeConnections"),
            },
        }
        return True

    def check_notion_connectivity(self, database_id: str) -> bool:
        check_name = "notion_connectivity"
        log.info("checking_notion_connectivity")

        if self.config is None or not self.config.notion.integration_token:
            self.results[check_name] = {
                "status": "skip",
                "message": "No integration token configured",
                "details": {},
            }
            return True

        async def probe() -> dict:
            client = NotionClient(self.config.notion)
            try:
                return await client.retrieve_database(
                    database_id, self.config.notion.integration_token
                )
            finally:
                await client.aclose()

        try:
            data = asyncio.run(probe())
        except RelayError as e:
            self.results[check_name] = {
                "status": "fail",
                "message": f"Notion connection failed: {e.message}",
                "details": {"kind": e.kind, "code": e.code},
            }
            return False

        self.results[check_name] = {
            "status": "pass",
            "message": "Successfully connected to Notion",
            "details": {"property_count": len(data.get("properties") or {})},
        }
        return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Health check for the Notion sync relay")
    parser.add_argument("--config", type=str, default=None, help="Path to configuration file")
    parser.add_argument("--url", type=str, default="http://localhost:3000/", help="Relay URL")
    parser.add_argument("--database-id", type=str, default=None, help="Database to probe")
    parser.add_argument("--json", action="store_true", help="Output results as JSON")
    args = parser.parse_args()

    checker = HealthChecker(args.config)
    passed = checker.check_configuration()
    passed = checker.check_relay(args.url) and passed
    if args.database_id:
        passed = checker.check_notion_connectivity(args.database_id) and passed

    report = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "healthy": passed,
        "checks": checker.results,
    }

    if args.json:
        print(json.dumps(report, indent=2))
    else:
        for name, result in checker.results.items():
            print(f"{name:24s} {result['status'].upper():5s} {result['message']}")

    sys.exit(0 if passed else 1)


if __name__ == "__main__":
    main()
