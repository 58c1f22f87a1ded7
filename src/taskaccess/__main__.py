"""CLI entry point for taskaccess."""

from __future__ import annotations

from taskaccess.cli.commands.root import cli

if __name__ == "__main__":
    cli()
