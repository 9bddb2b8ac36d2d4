"""Command-line interface."""

from volknobs.cli.main import app

__all__ = ["app"]
