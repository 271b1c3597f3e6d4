"""CLI command handler for writing a default profile."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from world_migrator.cli.common import cli
from world_migrator.constants import DEFAULT_CONFIG_FILE
from world_migrator.core.config import create_default_config
from world_migrator.utils.logging import setup_logger


@cli.command("init-config")
@click.option(
    "--output",
    default=DEFAULT_CONFIG_FILE,
    show_default=True,
    help="Where to write the profile",
)
def init_config(output: str) -> None:
    """Write a default profile, never overwriting an existing file."""
    setup_logger()
    if not create_default_config(Path(output)):
        sys.exit(1)
    click.echo(f"Profile written to {output}")
