"""Notion sync relay: credential-shielding proxy with change detection and push fan-out."""

__version__ = "2.0.0"
