#!/usr/bin/env python3
"""
Start the Notion sync relay from a source checkout.

Usage:
    python scripts/run_server.py [--config CONFIG_PATH] [--host HOST] [--port PORT]
"""

from notion_relay.cli import main

if __name__ == "__main__":
    main()
