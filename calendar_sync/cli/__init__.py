"""Command line interface."""

from calendar_sync.cli.main import app

__all__ = ["app"]
