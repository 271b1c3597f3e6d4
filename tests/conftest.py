"""Shared test fixtures for the world_migrator test suite."""

from __future__ import annotations

import hashlib
from typing import Any

import pytest

from world_migrator.core.config import ProfileConfig
from world_migrator.core.diff import (
    DiffStatus,
    PermissionDiff,
    PermissionDiffs,
    PermissionStatus,
    ResourceDiff,
    ResourceLocal,
    ResourceRemote,
    ResourceType,
    WorldDiff,
    WorldInfo,
    WorldStatus,
    make_tag,
)
from world_migrator.services.dry_run import deployment_address
from world_migrator.utils.calldata import world_salt

WORLD_CLASS_HASH = 0xC1A55
# Where the world lands when deployed with the "test_world" seed.
WORLD_ADDRESS = deployment_address(WORLD_CLASS_HASH, world_salt("test_world"), [WORLD_CLASS_HASH])


def felt_of(text: str) -> int:
    """Stable fake felt derived from ``text``."""
    return int(hashlib.sha256(text.encode()).hexdigest()[:12], 16)


# ---------------------------------------------------------------------------
# Data builders
# ---------------------------------------------------------------------------


def build_resource(
    resource_type: ResourceType | str,
    name: str,
    namespace: str = "ns",
    status: DiffStatus | str = DiffStatus.CREATED,
    is_initialized: bool = False,
    metadata_hash: int = 0,
    **overrides: Any,
) -> ResourceDiff:
    """Build a resource diff with felts derived from the resource tag."""
    resource_type = ResourceType(resource_type)
    status = DiffStatus(status)
    if resource_type == ResourceType.NAMESPACE:
        namespace, tag = "", name
    else:
        tag = make_tag(namespace, name)

    local_fields: dict[str, Any] = {
        "resource_type": resource_type,
        "name": name,
        "selector": felt_of(f"selector:{tag}"),
        "namespace": namespace,
        "class_hash": felt_of(f"class:{tag}") if resource_type != ResourceType.NAMESPACE else 0,
        "casm_class_hash": felt_of(f"casm:{tag}") if resource_type != ResourceType.NAMESPACE else 0,
        "artifact": {"tag": tag},
    }
    local_fields.update(overrides)
    local = ResourceLocal(**local_fields)

    if status == DiffStatus.CREATED:
        return ResourceDiff.created(local)

    remote = ResourceRemote(
        resource_type=resource_type,
        name=name,
        selector=local.selector,
        namespace=namespace,
        class_hash=local.class_hash if status == DiffStatus.SYNCED else felt_of(f"old:{tag}"),
        address=felt_of(f"address:{tag}"),
        is_initialized=is_initialized,
        metadata_hash=metadata_hash,
    )
    if status == DiffStatus.UPDATED:
        return ResourceDiff.updated(local, remote)
    return ResourceDiff.synced(local, remote)


def build_permissions(
    entries: dict[int, list[tuple[int, PermissionStatus | str]]] | None,
) -> dict[int, PermissionDiffs]:
    return {
        selector: PermissionDiffs(
            tuple(PermissionDiff(address, PermissionStatus(status)) for address, status in items)
        )
        for selector, items in (entries or {}).items()
    }


def build_diff(
    resources: list[ResourceDiff] | None = None,
    world_status: WorldStatus | str = WorldStatus.SYNCED,
    writers: dict[int, list[tuple[int, Any]]] | None = None,
    owners: dict[int, list[tuple[int, Any]]] | None = None,
    **overrides: Any,
) -> WorldDiff:
    """Build a world diff; namespace resources are listed in the given order."""
    resources = resources or []
    world_info = WorldInfo(
        status=WorldStatus(world_status),
        class_hash=WORLD_CLASS_HASH,
        casm_class_hash=WORLD_CLASS_HASH + 1,
        address=WORLD_ADDRESS,
        artifact={"tag": "world"},
    )
    fields: dict[str, Any] = {
        "world_info": world_info,
        "namespaces": tuple(
            r.selector for r in resources if r.resource_type == ResourceType.NAMESPACE
        ),
        "resources": {r.selector: r for r in resources},
        "writers": build_permissions(writers),
        "owners": build_permissions(owners),
    }
    fields.update(overrides)
    return WorldDiff(**fields)


@pytest.fixture()
def make_resource():
    """Factory fixture building resource diffs.

    Usage in tests::

        def test_something(make_resource):
            contract = make_resource("contract", "actions", status="updated")
    """
    return build_resource


@pytest.fixture()
def make_diff():
    """Factory fixture building world diffs from resource diffs."""
    return build_diff


@pytest.fixture()
def profile() -> ProfileConfig:
    """Profile with a world seed and nothing else configured."""
    return ProfileConfig.from_dict({"world": {"name": "test", "seed": "test_world"}})
