"""typedsql command-line interface."""

from typedsql.cli.app import app

__all__ = ["app"]
