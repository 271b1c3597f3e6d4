"""Manifest rendering of a world diff.

The manifest is a read-only projection of the diff, built once at the end of
a migration run and persisted for audit.  It lists the world and every
declared resource with the permissions that the local project grants.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from world_migrator.core.diff import (
    PermissionDiffs,
    PermissionStatus,
    ResourceDiff,
    ResourceType,
    WorldDiff,
)
from world_migrator.types import (
    ManifestExternalContract,
    ManifestResource,
    ManifestWorld,
)
from world_migrator.utils.logging import format_felt, log_with_context

_SECTIONS = {
    ResourceType.CONTRACT: "contracts",
    ResourceType.LIBRARY: "libraries",
    ResourceType.MODEL: "models",
    ResourceType.EVENT: "events",
}


def _declared_grantees(permissions: PermissionDiffs) -> list[str]:
    # Remote-only grants are not part of the local declaration.
    return [
        format_felt(p.address)
        for p in permissions
        if p.status != PermissionStatus.REMOTE_ONLY
    ]


def _resource_entry(diff: WorldDiff, resource: ResourceDiff) -> ManifestResource:
    local = resource.local
    entry = ManifestResource(
        tag=resource.tag,
        selector=format_felt(resource.selector),
        class_hash=format_felt(local.class_hash),
        address=format_felt(resource.remote.address if resource.remote else 0),
        writers=_declared_grantees(diff.get_writers(resource.selector)),
        owners=_declared_grantees(diff.get_owners(resource.selector)),
    )
    if local.version is not None:
        entry["version"] = local.version
    return entry


@dataclass(frozen=True)
class Manifest:
    """Serializable, read-only projection of a world diff."""

    world: ManifestWorld
    namespaces: tuple[str, ...]
    contracts: tuple[ManifestResource, ...]
    libraries: tuple[ManifestResource, ...]
    models: tuple[ManifestResource, ...]
    events: tuple[ManifestResource, ...]
    external_contracts: tuple[ManifestExternalContract, ...]

    @classmethod
    def from_diff(cls, diff: WorldDiff) -> Manifest:
        sections: dict[str, list[ManifestResource]] = {
            name: [] for name in _SECTIONS.values()
        }
        namespaces = []

        for _, resource in diff.sorted_resources():
            if resource.resource_type == ResourceType.NAMESPACE:
                namespaces.append(resource.local.name)
                continue
            sections[_SECTIONS[resource.resource_type]].append(
                _resource_entry(diff, resource)
            )

        external = [
            ManifestExternalContract(
                instance_name=c.local.instance_name,
                contract_name=c.local.contract_name,
                class_hash=format_felt(c.local.class_hash),
                address=format_felt(c.local.address),
                constructor_calldata=[
                    format_felt(v) for v in c.local.raw_constructor_data
                ],
            )
            for _, c in sorted(diff.external_contracts.items())
        ]

        world_info = diff.world_info
        return cls(
            world=ManifestWorld(
                class_hash=format_felt(world_info.class_hash),
                address=format_felt(world_info.address),
                status=world_info.status.value,
            ),
            namespaces=tuple(namespaces),
            contracts=tuple(sections["contracts"]),
            libraries=tuple(sections["libraries"]),
            models=tuple(sections["models"]),
            events=tuple(sections["events"]),
            external_contracts=tuple(external),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "world": dict(self.world),
            "namespaces": list(self.namespaces),
            "contracts": [dict(c) for c in self.contracts],
            "libraries": [dict(c) for c in self.libraries],
            "models": [dict(c) for c in self.models],
            "events": [dict(c) for c in self.events],
            "external_contracts": [dict(c) for c in self.external_contracts],
        }

    def write(self, path: Path) -> None:
        """Atomically write the manifest as JSON (write .tmp + rename)."""
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(self.to_dict(), indent=2) + "\n")
        tmp.replace(path)
        log_with_context(logging.INFO, f"Manifest written to {path}")

