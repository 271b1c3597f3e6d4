"""
Report generation for world migration runs
"""

from __future__ import annotations

import datetime
import logging
import os
from typing import Any

import click
import yaml

from world_migrator.constants import DEFAULT_OUTPUT_DIR, REPORT_FILE
from world_migrator.core.migrator import MigrationResult
from world_migrator.services.dry_run import DryRunNetwork
from world_migrator.utils.logging import log_with_context


def create_output_directory(base_dir: str = DEFAULT_OUTPUT_DIR) -> str:
    """Create a timestamped output directory for this migration run.

    Returns:
        The path to the newly created output directory.
    """
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = os.path.join(base_dir, f"run_{timestamp}")
    os.makedirs(output_dir, exist_ok=True)
    return output_dir


def build_report(
    result: MigrationResult,
    diff_path: str,
    dry_run: bool,
    network: DryRunNetwork | None = None,
) -> dict[str, Any]:
    """Build the report dictionary of a finished migration."""
    summary = result.summary

    report: dict[str, Any] = {
        "migration_summary": {
            "timestamp": datetime.datetime.now().isoformat(),
            "dry_run": dry_run,
            "diff_path": str(diff_path),
            "has_changes": result.has_changes,
            "world_deployed": summary["world_deployed"],
            "world_upgraded": summary["world_upgraded"],
            "namespaces_registered": summary["namespaces_registered"],
            "resources_registered": summary["resources_registered"],
            "resources_upgraded": summary["resources_upgraded"],
            "classes_declared": summary["classes_declared"],
            "permissions_granted": summary["permissions_granted"],
            "contracts_initialized": summary["contracts_initialized"],
            "external_contracts_deployed": summary["external_contracts_deployed"],
            "metadata_updated": summary["metadata_updated"],
        },
        "world": dict(result.manifest.world),
        "skipped_resources": list(summary["skipped_resources"]),
        "recommendations": [],
    }

    if summary["skipped_resources"]:
        report["recommendations"].append(
            {
                "type": "skipped_resources",
                "message": f"{len(summary['skipped_resources'])} resources were skipped "
                "with migration.skip_contracts. Remove them from the list to migrate them.",
                "severity": "info",
            }
        )

    if network is not None:
        report["transactions"] = [
            {
                "kind": t.kind,
                "label": t.label,
                "calls": [
                    {"entrypoint": c.entrypoint, "tag": c.tag} for c in t.calls
                ],
            }
            for t in network.transactions
        ]

    return report


def write_report(
    result: MigrationResult,
    output_dir: str,
    diff_path: str,
    dry_run: bool,
    network: DryRunNetwork | None = None,
) -> str:
    """Write the YAML report of a migration run.

    Returns:
        The path of the report file.
    """
    report_path = os.path.join(output_dir, REPORT_FILE)
    report = build_report(result, diff_path, dry_run, network)

    with open(report_path, "w") as f:
        yaml.safe_dump(report, f, default_flow_style=False, sort_keys=False)

    log_with_context(logging.INFO, f"Migration report generated: {report_path}")
    return report_path


def print_migration_summary(
    result: MigrationResult, report_file: str, dry_run: bool = False
) -> None:
    """Print a summary of the migration to the console."""
    summary = result.summary
    title = "DRY RUN SUMMARY" if dry_run else "MIGRATION SUMMARY"
    verb = "would be" if dry_run else "were"

    click.echo("\n" + "=" * 80)
    click.echo(title)
    click.echo("=" * 80)

    if not result.has_changes:
        click.echo("World is already in sync, nothing to migrate.")
    else:
        if summary["world_deployed"]:
            click.echo(f"World {verb} deployed")
        if summary["world_upgraded"]:
            click.echo(f"World {verb} upgraded")
        click.echo(f"Classes declared: {summary['classes_declared']}")
        click.echo(f"Namespaces registered: {summary['namespaces_registered']}")
        click.echo(f"Resources registered: {summary['resources_registered']}")
        click.echo(f"Resources upgraded: {summary['resources_upgraded']}")
        click.echo(f"Permissions granted: {summary['permissions_granted']}")
        click.echo(f"Contracts initialized: {summary['contracts_initialized']}")
        click.echo(
            f"External contracts deployed: {summary['external_contracts_deployed']}"
        )
        if summary["metadata_updated"]:
            click.echo(f"Metadata updated: {summary['metadata_updated']}")

    if summary["skipped_resources"]:
        click.echo(f"\nSkipped resources: {', '.join(summary['skipped_resources'])}")

    click.echo(f"\nDetailed report saved to {report_file}")
    click.echo("=" * 80)
    if dry_run:
        click.echo("\nTo perform the actual migration, run again without --dry_run")
        click.echo("=" * 80)
