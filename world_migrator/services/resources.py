"""
Calls and classes needed to sync namespaced resources.

For each resource diff, the functions in this module return the calls to
register or upgrade the resource in the world, together with the class
artifacts that must be declared before those calls are sent:

- created resources: one artifact and one ``register_*`` call
- updated resources: one artifact and one ``upgrade_*`` call
- synced resources: nothing

Libraries cannot be upgraded; an updated library means the diff is wrong.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Tuple

from world_migrator.core.diff import DiffStatus, ResourceDiff, ResourceType, WorldDiff
from world_migrator.exceptions import DiffError, LibraryUpgradeError
from world_migrator.services.declarer import LabeledArtifact
from world_migrator.services.target import Call
from world_migrator.services.world import WorldContract
from world_migrator.utils.logging import format_felt, log_with_context

CallsClasses = Tuple[List[Call], Dict[int, LabeledArtifact]]


def labeled_artifact(resource: ResourceDiff) -> LabeledArtifact:
    """The local class of ``resource``, labeled with its tag."""
    local = resource.local
    return LabeledArtifact(
        label=resource.tag,
        class_hash=local.class_hash,
        casm_class_hash=local.casm_class_hash,
        artifact=local.artifact,
    )


def namespace_calls(world: WorldContract, diff: WorldDiff) -> list[Call]:
    """Register calls for the namespaces that do not exist remotely yet.

    Namespaces are returned in the order of ``diff.namespaces``; they must
    be sent before any resource registered inside them.
    """
    calls = []
    for selector in diff.namespaces:
        resource = diff.namespace_resource(selector)
        if resource.status == DiffStatus.CREATED:
            log_with_context(
                logging.DEBUG, "Registering namespace.", resource_name=resource.local.name
            )
            calls.append(world.register_namespace_getcall(resource.local.name))
    return calls


def _register_or_upgrade(
    resource: ResourceDiff,
    register: Callable[[ResourceDiff], Call],
    upgrade: Callable[[ResourceDiff], Call],
) -> CallsClasses:
    if resource.status == DiffStatus.SYNCED:
        return [], {}

    kind = resource.resource_type.value
    if resource.status == DiffStatus.CREATED:
        action, build = "Registering", register
    elif resource.status == DiffStatus.UPDATED:
        action, build = "Upgrading", upgrade
    else:
        raise DiffError(f"Unknown diff status {resource.status!r} for {resource.tag}")

    log_with_context(
        logging.DEBUG,
        f"{action} {kind}.",
        namespace=resource.namespace,
        resource_name=resource.local.name,
        class_hash=format_felt(resource.local.class_hash),
    )

    artifact = labeled_artifact(resource)
    return [build(resource)], {artifact.casm_class_hash: artifact}


def contract_calls_classes(world: WorldContract, resource: ResourceDiff) -> CallsClasses:
    return _register_or_upgrade(
        resource,
        lambda r: world.register_contract_getcall(
            r.selector, r.namespace, r.local.class_hash, tag=r.tag
        ),
        lambda r: world.upgrade_contract_getcall(
            r.namespace, r.local.class_hash, tag=r.tag
        ),
    )


def library_calls_classes(world: WorldContract, resource: ResourceDiff) -> CallsClasses:
    """Libraries are registered with their name and version, never upgraded.

    Raises:
        LibraryUpgradeError: If the diff reports an updated library.
    """
    if resource.status == DiffStatus.UPDATED:
        raise LibraryUpgradeError(
            f"Library {resource.tag} cannot be upgraded; "
            "a new version must be declared as a new library"
        )

    def register(r: ResourceDiff) -> Call:
        return world.register_library_getcall(
            r.namespace,
            r.local.class_hash,
            r.local.name,
            r.local.version or "",
            tag=r.tag,
        )

    return _register_or_upgrade(resource, register, register)


def model_calls_classes(world: WorldContract, resource: ResourceDiff) -> CallsClasses:
    return _register_or_upgrade(
        resource,
        lambda r: world.register_model_getcall(r.namespace, r.local.class_hash, tag=r.tag),
        lambda r: world.upgrade_model_getcall(r.namespace, r.local.class_hash, tag=r.tag),
    )


def event_calls_classes(world: WorldContract, resource: ResourceDiff) -> CallsClasses:
    return _register_or_upgrade(
        resource,
        lambda r: world.register_event_getcall(r.namespace, r.local.class_hash, tag=r.tag),
        lambda r: world.upgrade_event_getcall(r.namespace, r.local.class_hash, tag=r.tag),
    )


_SYNCERS: dict[ResourceType, Callable[[WorldContract, ResourceDiff], CallsClasses]] = {
    ResourceType.CONTRACT: contract_calls_classes,
    ResourceType.LIBRARY: library_calls_classes,
    ResourceType.MODEL: model_calls_classes,
    ResourceType.EVENT: event_calls_classes,
}


def resource_calls_classes(world: WorldContract, resource: ResourceDiff) -> CallsClasses:
    """Dispatch ``resource`` to the function handling its kind.

    Namespaces are not handled here, see ``namespace_calls``.
    """
    try:
        syncer = _SYNCERS[resource.resource_type]
    except KeyError:
        raise DiffError(
            f"No synchronizer for {resource.resource_type.value} resource {resource.tag}"
        ) from None
    return syncer(world, resource)
