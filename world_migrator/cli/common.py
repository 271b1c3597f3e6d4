"""Shared CLI infrastructure: option decorators, error handlers, and the CLI group."""

from __future__ import annotations

import logging
from typing import Callable, ClassVar

import click

import world_migrator
from world_migrator.constants import DEFAULT_CONFIG_FILE
from world_migrator.exceptions import (
    ConfigError,
    DeclareError,
    DiffError,
    InitCallArgsError,
    MigratorError,
    ProviderError,
    TransactionError,
)
from world_migrator.utils.logging import log_with_context

# ---------------------------------------------------------------------------
# Custom click.Group that defaults to ``migrate``.
# When the first CLI token starts with ``-`` (i.e. a flag, not a subcommand)
# the group prepends ``migrate`` so that
#   ``world-migrator --diff diff.json``
# runs a migration.
# ---------------------------------------------------------------------------


class DefaultGroup(click.Group):
    """Click group that defaults to the ``migrate`` subcommand."""

    # Flags that belong to the group itself and should NOT trigger the
    # ``migrate`` default.
    _GROUP_FLAGS: ClassVar[set[str]] = {"--help", "--version", "-h"}

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        """Prepend ``migrate`` when the first token is a flag.

        Args:
            ctx: The current Click context.
            args: Raw CLI argument list.

        Returns:
            The (possibly modified) argument list for further parsing.
        """
        if args and args[0].startswith("-") and args[0] not in self._GROUP_FLAGS:
            args = ["migrate", *args]
        return super().parse_args(ctx, args)


# ---------------------------------------------------------------------------
# Shared option decorator
# ---------------------------------------------------------------------------


def common_options(f: Callable[..., None]) -> Callable[..., None]:
    """Decorator that adds options shared across multiple subcommands.

    Args:
        f: The Click command function to decorate.

    Returns:
        The decorated function with common options attached.
    """
    f = click.option(
        "--config",
        default=DEFAULT_CONFIG_FILE,
        show_default=True,
        help="Path to the profile YAML",
    )(f)
    f = click.option(
        "--verbose",
        "-v",
        is_flag=True,
        default=False,
        help="Enable verbose console logging (shows DEBUG level messages)",
    )(f)
    return f


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group(
    cls=DefaultGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(version=world_migrator.__version__, prog_name="world-migrator")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Apply a world diff to a namespaced world registry.

    Args:
        ctx: The Click context (injected by ``@click.pass_context``).
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


def handle_transaction_error(e: TransactionError) -> None:
    """Log a rejected transaction with the resource and entrypoint involved.

    Args:
        e: The transaction error to handle.
    """
    if isinstance(e, DeclareError):
        log_with_context(logging.ERROR, f"Class declaration failed: {e}", tag=e.tag)
    else:
        log_with_context(
            logging.ERROR,
            f"Transaction failed: {e}",
            tag=e.tag,
            entrypoint=e.entrypoint,
        )
    log_with_context(
        logging.INFO,
        "Work already sent is kept. Compute a new diff and run the migration again to resume.",
    )


def handle_exception(e: BaseException) -> None:
    """Handle different types of exceptions.

    Args:
        e: The exception to handle.
    """
    if isinstance(e, InitCallArgsError):
        log_with_context(logging.ERROR, str(e), tag=e.tag)
        log_with_context(
            logging.INFO, "Fix the init_call_args entry of this contract in the profile."
        )
    elif isinstance(e, ConfigError):
        log_with_context(logging.ERROR, f"Invalid configuration: {e}")
    elif isinstance(e, DiffError):
        log_with_context(logging.ERROR, f"World diff rejected: {e}")
        log_with_context(
            logging.INFO, "Recompute the diff against the current world and retry."
        )
    elif isinstance(e, TransactionError):
        handle_transaction_error(e)
    elif isinstance(e, ProviderError):
        log_with_context(logging.ERROR, f"Could not read chain state: {e}")
    elif isinstance(e, MigratorError):
        log_with_context(logging.ERROR, str(e))
    elif isinstance(e, FileNotFoundError):
        log_with_context(logging.ERROR, f"File not found: {e}")
        log_with_context(
            logging.INFO,
            "Please check that all required files exist and paths are correct.",
        )
    elif isinstance(e, KeyboardInterrupt):
        log_with_context(logging.WARNING, "Migration interrupted by user.")
        log_with_context(
            logging.INFO,
            "🔄 Compute a new diff and run the migration again to resume.",
        )
    else:
        log_with_context(logging.ERROR, f"Migration failed: {e}", exc_info=True)
