#!/usr/bin/env python3
"""
Command-line entry point for the world migration tool.

Importing the command modules registers their subcommands on the shared
``cli`` group.
"""

from world_migrator.cli import init_config_cmd, migrate_cmd  # noqa: F401
from world_migrator.cli.common import cli


def main() -> None:
    """Main entry point for the world migration tool."""
    cli()


if __name__ == "__main__":
    main()
