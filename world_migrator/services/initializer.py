"""
Contract initialization calls.

A contract is initialized exactly once: when it is created, or later if the
world reports it as not initialized yet (a previous run may have stopped
between registration and initialization).

Arguments come from the profile ``init_call_args`` (tag -> calldata strings).
Contracts listed in ``migration.order_inits`` are initialized after all the
others, in the listed order; the others follow selector order.
"""

from __future__ import annotations

import logging

from world_migrator.core.config import ProfileConfig
from world_migrator.core.diff import DiffStatus, ResourceDiff, ResourceType, WorldDiff
from world_migrator.exceptions import CalldataDecodeError, DiffError, InitCallArgsError
from world_migrator.services.target import Call
from world_migrator.services.world import WorldContract
from world_migrator.utils.calldata import decode_calldata
from world_migrator.utils.logging import log_with_context


def needs_init(resource: ResourceDiff) -> bool:
    """Whether the contract ``resource`` must be initialized in this run."""
    if resource.status == DiffStatus.CREATED:
        return True
    if resource.status in (DiffStatus.UPDATED, DiffStatus.SYNCED):
        if resource.remote is None:
            raise DiffError(f"Resource {resource.tag} has no remote state")
        return not resource.remote.is_initialized
    raise DiffError(f"Unknown diff status {resource.status!r} for {resource.tag}")


def init_call_args(config: ProfileConfig, tag: str) -> list[int]:
    """Decode the init arguments configured for ``tag`` (empty if none).

    Raises:
        InitCallArgsError: If the configured arguments cannot be decoded.
    """
    raw_args = config.init_call_args.get(tag)
    if raw_args is None:
        return []
    try:
        return decode_calldata(raw_args)
    except CalldataDecodeError as e:
        raise InitCallArgsError(
            f"Invalid init call arguments for {tag}: {e}", tag=tag
        ) from e


def init_calls(world: WorldContract, diff: WorldDiff, config: ProfileConfig) -> list[Call]:
    """Init calls for every contract that still needs initialization.

    Arguments of every eligible contract are decoded before any call is
    returned, so a malformed entry fails the step as a whole.
    """
    order = config.migration.order_inits
    unordered: list[Call] = []
    ordered: dict[int, Call] = {}

    for selector, resource in diff.sorted_resources():
        if resource.resource_type != ResourceType.CONTRACT:
            continue

        tag = resource.tag
        if config.is_skipped(tag):
            log_with_context(logging.DEBUG, "Contract init skipping resource.", tag=tag)
            continue

        if not needs_init(resource):
            continue

        args = init_call_args(config, tag)
        log_with_context(logging.DEBUG, "Initializing contract.", tag=tag, init_args=args)

        call = world.init_contract_getcall(selector, args, tag=tag)
        if tag in order:
            ordered[order.index(tag)] = call
        else:
            unordered.append(call)

    return unordered + [ordered[index] for index in sorted(ordered)]
