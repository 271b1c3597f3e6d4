"""Writer and owner grants to apply to the world.

Only grants declared locally and missing on chain are applied.  Grants found
on chain but not declared locally are reported and left in place: the
migration never revokes a permission.
"""

from __future__ import annotations

import logging

from world_migrator.core.config import ProfileConfig
from world_migrator.core.diff import PermissionDiff, ResourceDiff, WorldDiff
from world_migrator.services.target import Call
from world_migrator.services.world import WorldContract
from world_migrator.utils.logging import format_felt, log_with_context


def _log_grant(kind: str, resource: ResourceDiff, pdiff: PermissionDiff) -> None:
    log_with_context(
        logging.DEBUG,
        f"Granting {kind} permission.",
        target=resource.tag,
        grantee_tag=pdiff.tag or "",
        grantee_address=format_felt(pdiff.address),
    )


def _log_drift(kind: str, resource: ResourceDiff, pdiff: PermissionDiff) -> None:
    log_with_context(
        logging.DEBUG,
        f"Remote {kind} permission not declared locally, keeping it.",
        target=resource.tag,
        grantee_address=format_felt(pdiff.address),
    )


def permission_calls(
    world: WorldContract, diff: WorldDiff, config: ProfileConfig
) -> list[Call]:
    """Grant calls for every local-only writer and owner permission.

    Resources are walked by selector; for each one, writer grants come before
    owner grants.  Skipped resources get no grant.
    """
    calls = []

    for selector, resource in diff.sorted_resources():
        if config.is_skipped(resource.tag):
            log_with_context(
                logging.DEBUG, "Sync permissions skipping resource.", tag=resource.tag
            )
            continue

        writers = diff.get_writers(selector)
        for pdiff in writers.only_local():
            _log_grant("writer", resource, pdiff)
            calls.append(world.grant_writer_getcall(selector, pdiff.address, tag=resource.tag))

        owners = diff.get_owners(selector)
        for pdiff in owners.only_local():
            _log_grant("owner", resource, pdiff)
            calls.append(world.grant_owner_getcall(selector, pdiff.address, tag=resource.tag))

        for pdiff in writers.only_remote():
            _log_drift("writer", resource, pdiff)
        for pdiff in owners.only_remote():
            _log_drift("owner", resource, pdiff)

    return calls
