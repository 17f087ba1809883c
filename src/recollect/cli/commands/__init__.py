"""CLI command modules."""

from recollect.cli.commands import journal

__all__ = ["journal"]
