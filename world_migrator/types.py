"""Shared type definitions for the world migration tool.

Provides TypedDicts for structured data leaving the migration engine: the
per-run change summary and the serialized manifest.
"""

from __future__ import annotations

from typing import TypedDict

# ---------------------------------------------------------------------------
# Internal tracking types
# ---------------------------------------------------------------------------


class MigrationSummary(TypedDict):
    """Aggregate migration counters."""

    world_deployed: bool
    world_upgraded: bool
    namespaces_registered: int
    resources_registered: int
    resources_upgraded: int
    classes_declared: int
    permissions_granted: int
    contracts_initialized: int
    external_contracts_deployed: int
    metadata_updated: int
    skipped_resources: list[str]


def empty_summary() -> MigrationSummary:
    """Return a fresh MigrationSummary with zeroed counters."""
    return MigrationSummary(
        world_deployed=False,
        world_upgraded=False,
        namespaces_registered=0,
        resources_registered=0,
        resources_upgraded=0,
        classes_declared=0,
        permissions_granted=0,
        contracts_initialized=0,
        external_contracts_deployed=0,
        metadata_updated=0,
        skipped_resources=[],
    )


# ---------------------------------------------------------------------------
# Manifest shapes (written to manifest.json)
# ---------------------------------------------------------------------------


class ManifestWorld(TypedDict):
    class_hash: str
    address: str
    status: str


class ManifestResource(TypedDict, total=False):
    """A namespaced resource in the manifest."""

    tag: str
    selector: str
    class_hash: str
    address: str
    version: str
    writers: list[str]
    owners: list[str]


class ManifestExternalContract(TypedDict):
    instance_name: str
    contract_name: str
    class_hash: str
    address: str
    constructor_calldata: list[str]
