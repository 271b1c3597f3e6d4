"""CLI command handler for the migrate workflow."""

from __future__ import annotations

import asyncio
import importlib
import logging
import sys
from pathlib import Path
from types import SimpleNamespace

import click

from world_migrator.cli.common import cli, common_options, handle_exception
from world_migrator.cli.report import (
    create_output_directory,
    print_migration_summary,
    write_report,
)
from world_migrator.constants import MANIFEST_FILE
from world_migrator.core.config import load_config
from world_migrator.core.diff import load_diff
from world_migrator.core.migrator import Migration, MigrationResult
from world_migrator.exceptions import ConfigError
from world_migrator.services.dry_run import DryRunNetwork, build_dry_run_target
from world_migrator.services.target import Target, TxnConfig, UploadService
from world_migrator.services.world import WorldContract
from world_migrator.utils.logging import log_with_context, setup_logger
from world_migrator.utils.ui import MigrationUi

# ---------------------------------------------------------------------------
# migrate subcommand
# ---------------------------------------------------------------------------


@cli.command()
@common_options
@click.option(
    "--diff",
    "diff_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to the world diff JSON",
)
@click.option(
    "--dry_run",
    is_flag=True,
    default=False,
    help="Record the transactions a migration would send without sending them",
)
@click.option(
    "--guest",
    is_flag=True,
    default=False,
    help="Migrate into a world owned by another account; never deploy or upgrade it",
)
@click.option("--rpc_url", default=None, help="Node URL, used to find pre-funded declarers")
@click.option(
    "--target",
    "target_spec",
    default=None,
    help="Remote target factory as 'module:function'",
)
@click.option(
    "--manifest",
    "manifest_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="Where to write the manifest (default: in the run output directory)",
)
@click.option(
    "--upload_metadata",
    is_flag=True,
    default=False,
    help="Upload changed world and resource metadata after the migration",
)
@click.option("--wait", is_flag=True, default=False, help="Wait for every transaction")
@click.option(
    "--receipt", is_flag=True, default=False, help="Fetch the receipt of every transaction"
)
def migrate(
    config: str,
    verbose: bool,
    diff_path: str,
    dry_run: bool,
    guest: bool,
    rpc_url: str | None,
    target_spec: str | None,
    manifest_path: str | None,
    upload_metadata: bool,
    wait: bool,
    receipt: bool,
) -> None:
    """Apply a world diff to the remote world.

    Args:
        config: Path to the profile YAML.
        verbose: Enable verbose console logging.
        diff_path: Path to the world diff JSON.
        dry_run: Use the in-memory target instead of a real one.
        guest: Skip the world deployment and upgrade step.
        rpc_url: Node URL.
        target_spec: ``module:function`` building the remote target.
        manifest_path: Manifest output path.
        upload_metadata: Upload metadata after the migration.
        wait: Wait for every transaction to be accepted.
        receipt: Fetch the receipt of every transaction.
    """
    args = SimpleNamespace(
        config=config,
        verbose=verbose,
        diff_path=diff_path,
        dry_run=dry_run,
        guest=guest,
        rpc_url=rpc_url,
        target_spec=target_spec,
        manifest_path=manifest_path,
        upload_metadata=upload_metadata,
        wait=wait,
        receipt=receipt,
    )

    # Create output directory early so all operations are logged to file
    output_dir = create_output_directory()
    setup_logger(args.verbose, output_dir)

    log_startup_info(args)
    log_with_context(logging.INFO, f"Output directory: {output_dir}")

    try:
        run_migrate_command(args, output_dir)
    except (Exception, KeyboardInterrupt) as e:
        handle_exception(e)
        sys.exit(1)


def run_migrate_command(args: SimpleNamespace, output_dir: str) -> MigrationResult:
    """Load inputs, run the migration and write its outputs."""
    profile_config = load_config(Path(args.config))
    diff = load_diff(Path(args.diff_path))

    network: DryRunNetwork | None = None
    if args.dry_run:
        network = DryRunNetwork()
        target = build_dry_run_target(network)
    elif args.target_spec:
        target = load_target(args.target_spec, args.rpc_url)
    else:
        raise ConfigError("A remote target is required: pass --target or --dry_run")

    if args.upload_metadata and target.upload_service is None:
        raise ConfigError("--upload_metadata needs a target with an upload service")

    migration = Migration(
        diff,
        WorldContract(diff.world_info.address),
        target.account,
        TxnConfig(wait=args.wait, receipt=args.receipt),
        profile_config,
        rpc_url=args.rpc_url,
        guest=args.guest,
        account_factory=target.account_factory,
    )

    upload_service = target.upload_service if args.upload_metadata else None
    ui = MigrationUi("Migrating...")
    result = asyncio.run(run_migration(migration, ui, upload_service))

    manifest_path = (
        Path(args.manifest_path)
        if args.manifest_path
        else Path(output_dir) / MANIFEST_FILE
    )
    result.manifest.write(manifest_path)

    report_file = write_report(result, output_dir, args.diff_path, args.dry_run, network)
    print_migration_summary(result, report_file, dry_run=args.dry_run)

    if result.has_changes:
        log_with_context(logging.INFO, "🎉 Migration completed successfully!")
    else:
        log_with_context(logging.INFO, "No changes for the world.")
    return result


async def run_migration(
    migration: Migration,
    ui: MigrationUi,
    upload_service: UploadService | None = None,
) -> MigrationResult:
    """Run the migration, then the metadata upload when a service is given."""
    try:
        result = await migration.migrate(ui)
        if upload_service is not None:
            await migration.upload_metadata(ui, upload_service)
        return result
    finally:
        ui.stop()


def load_target(spec: str, rpc_url: str | None) -> Target:
    """Build the remote target from a ``module:function`` factory.

    The factory is called with the node URL and must return a ``Target``.

    Raises:
        ConfigError: If the factory cannot be found or returns something else.
    """
    module_name, sep, factory_name = spec.partition(":")
    if not sep or not module_name or not factory_name:
        raise ConfigError(f"Target must be given as 'module:function', got {spec!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"Cannot import target module {module_name}: {e}") from e

    factory = getattr(module, factory_name, None)
    if not callable(factory):
        raise ConfigError(f"Target factory {spec} not found or not callable")

    target = factory(rpc_url=rpc_url)
    if not isinstance(target, Target):
        raise ConfigError(
            f"Target factory {spec} returned {type(target).__name__}, expected Target"
        )
    return target


def log_startup_info(args: SimpleNamespace) -> None:
    """Log startup information.

    Args:
        args: Parsed CLI arguments containing migration parameters.
    """
    config_path = Path(args.config)
    if not config_path.is_absolute():
        config_path = Path.cwd() / args.config

    log_with_context(logging.INFO, "Starting migration with the following parameters:")
    log_with_context(logging.INFO, f"- Diff: {args.diff_path}")
    log_with_context(logging.INFO, f"- Config: {config_path}")
    log_with_context(logging.INFO, f"- Dry run: {args.dry_run}")
    log_with_context(logging.INFO, f"- Guest mode: {args.guest}")
    log_with_context(logging.INFO, f"- Target: {args.target_spec or 'none'}")
    log_with_context(logging.INFO, f"- Upload metadata: {args.upload_metadata}")
    log_with_context(logging.INFO, f"- Verbose logging: {args.verbose}")
