"""
World diff data model.

A ``WorldDiff`` compares the locally declared world with the state observed
on chain.  It is produced by an external diff computation (and usually
loaded from JSON with ``load_diff``), then only read during a migration run.

Resource diffs are a closed tagged union: ``DiffStatus`` (created, updated,
synced) crossed with ``ResourceType`` (namespace, contract, library, model,
event).  Synchronizers dispatch on both tags and raise on anything they do
not know, so adding a new kind forces every synchronizer to be revisited.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Mapping

from world_migrator.exceptions import CalldataDecodeError, DiffError
from world_migrator.utils.calldata import parse_felt


class WorldStatus(str, Enum):
    """Whether the world contract must be deployed, upgraded or left alone."""

    NOT_DEPLOYED = "not_deployed"
    SYNCED = "synced"
    NEW_VERSION = "new_version"


class ResourceType(str, Enum):
    NAMESPACE = "namespace"
    CONTRACT = "contract"
    LIBRARY = "library"
    # Data-record types are called models in the world contract.
    MODEL = "model"
    EVENT = "event"


class DiffStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SYNCED = "synced"


class PermissionStatus(str, Enum):
    LOCAL_ONLY = "local_only"
    REMOTE_ONLY = "remote_only"
    SYNCED = "synced"


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


def make_tag(namespace: str, name: str) -> str:
    """Return the human-readable tag ``<namespace>-<name>`` of a resource."""
    return f"{namespace}-{name}"


@dataclass(frozen=True)
class ResourceLocal:
    """A resource as declared in the local project."""

    resource_type: ResourceType
    name: str
    selector: int
    namespace: str = ""
    class_hash: int = 0
    casm_class_hash: int = 0
    artifact: Any = field(default=None, repr=False, compare=False)
    version: str | None = None

    @property
    def tag(self) -> str:
        if self.resource_type == ResourceType.NAMESPACE:
            return self.name
        return make_tag(self.namespace, self.name)


@dataclass(frozen=True)
class ResourceRemote:
    """A resource as observed in the remote world."""

    resource_type: ResourceType
    name: str
    selector: int
    namespace: str = ""
    class_hash: int = 0
    address: int = 0
    is_initialized: bool = False
    metadata_hash: int = 0


@dataclass(frozen=True)
class ResourceDiff:
    """Comparison of one resource between the local and the remote world.

    Build instances with ``created``, ``updated`` or ``synced``.
    """

    status: DiffStatus
    local: ResourceLocal
    remote: ResourceRemote | None = None

    def __post_init__(self) -> None:
        if self.status == DiffStatus.CREATED:
            if self.remote is not None:
                raise DiffError(f"Created resource {self.tag} must not have a remote")
            return

        if self.remote is None:
            raise DiffError(
                f"{self.status.value.capitalize()} resource {self.tag} requires a remote"
            )
        if self.remote.resource_type != self.local.resource_type:
            raise DiffError(
                f"Resource {self.tag} is a {self.local.resource_type.value} locally "
                f"but a {self.remote.resource_type.value} remotely"
            )

    @classmethod
    def created(cls, local: ResourceLocal) -> ResourceDiff:
        return cls(DiffStatus.CREATED, local)

    @classmethod
    def updated(cls, local: ResourceLocal, remote: ResourceRemote) -> ResourceDiff:
        return cls(DiffStatus.UPDATED, local, remote)

    @classmethod
    def synced(cls, local: ResourceLocal, remote: ResourceRemote) -> ResourceDiff:
        return cls(DiffStatus.SYNCED, local, remote)

    @property
    def resource_type(self) -> ResourceType:
        return self.local.resource_type

    @property
    def tag(self) -> str:
        return self.local.tag

    @property
    def namespace(self) -> str:
        return self.local.namespace

    @property
    def selector(self) -> int:
        return self.local.selector

    @property
    def metadata_hash(self) -> int:
        """Metadata hash stored on chain, 0 for resources not registered yet."""
        return self.remote.metadata_hash if self.remote is not None else 0


# ---------------------------------------------------------------------------
# Permissions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PermissionDiff:
    """A writer or owner grant on a resource."""

    address: int
    status: PermissionStatus
    tag: str | None = None


@dataclass(frozen=True)
class PermissionDiffs:
    items: tuple[PermissionDiff, ...] = ()

    def __iter__(self) -> Iterator[PermissionDiff]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def only_local(self) -> list[PermissionDiff]:
        """Grants declared locally but not present on chain."""
        return [p for p in self.items if p.status == PermissionStatus.LOCAL_ONLY]

    def only_remote(self) -> list[PermissionDiff]:
        """Grants present on chain but not declared locally."""
        return [p for p in self.items if p.status == PermissionStatus.REMOTE_ONLY]

    def synced(self) -> list[PermissionDiff]:
        return [p for p in self.items if p.status == PermissionStatus.SYNCED]


# ---------------------------------------------------------------------------
# External contracts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExternalContractClassLocal:
    contract_name: str
    class_hash: int
    casm_class_hash: int
    artifact: Any = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class ExternalContractClassDiff:
    status: DiffStatus
    local: ExternalContractClassLocal

    def __post_init__(self) -> None:
        if self.status == DiffStatus.UPDATED:
            raise DiffError(
                f"External contract class {self.local.contract_name} cannot be updated"
            )


@dataclass(frozen=True)
class ExternalContractLocal:
    contract_name: str
    instance_name: str
    class_hash: int
    salt: int
    raw_constructor_data: tuple[int, ...] = ()
    address: int = 0


@dataclass(frozen=True)
class ExternalContractDiff:
    status: DiffStatus
    local: ExternalContractLocal

    def __post_init__(self) -> None:
        if self.status == DiffStatus.UPDATED:
            raise DiffError(
                f"External contract {self.local.instance_name} cannot be updated"
            )


# ---------------------------------------------------------------------------
# World
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WorldInfo:
    status: WorldStatus
    class_hash: int
    casm_class_hash: int
    address: int = 0
    metadata_hash: int = 0
    artifact: Any = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class WorldDiff:
    """Immutable snapshot of the differences between local and remote worlds."""

    world_info: WorldInfo
    namespaces: tuple[int, ...] = ()
    resources: Mapping[int, ResourceDiff] = field(default_factory=dict)
    external_contracts: Mapping[str, ExternalContractDiff] = field(
        default_factory=dict
    )
    external_contract_classes: Mapping[str, ExternalContractClassDiff] = field(
        default_factory=dict
    )
    writers: Mapping[int, PermissionDiffs] = field(default_factory=dict)
    owners: Mapping[int, PermissionDiffs] = field(default_factory=dict)

    def is_synced(self) -> bool:
        """True when every resource (namespaces included) is synced."""
        return all(r.status == DiffStatus.SYNCED for r in self.resources.values())

    def get_writers(self, selector: int) -> PermissionDiffs:
        return self.writers.get(selector, PermissionDiffs())

    def get_owners(self, selector: int) -> PermissionDiffs:
        return self.owners.get(selector, PermissionDiffs())

    def sorted_resources(self) -> list[tuple[int, ResourceDiff]]:
        """Resources ordered by selector, so every run walks them the same way."""
        return sorted(self.resources.items(), key=lambda item: item[0])

    def namespace_resource(self, selector: int) -> ResourceDiff:
        try:
            return self.resources[selector]
        except KeyError:
            raise DiffError(
                f"Namespace {selector:#x} is not present in the diff resources"
            ) from None

    def validate(self) -> None:
        """Check the structural invariants of the diff.

        Raises:
            DiffError: If a permission references an unknown resource, a
                namespace selector is not a namespace resource, or a resource
                lives in an undeclared namespace.
        """
        for selector, resource in self.resources.items():
            if selector != resource.selector:
                raise DiffError(
                    f"Resource {resource.tag} is indexed under {selector:#x} "
                    f"but its selector is {resource.selector:#x}"
                )

        namespace_names = set()
        for selector in self.namespaces:
            resource = self.namespace_resource(selector)
            if resource.resource_type != ResourceType.NAMESPACE:
                raise DiffError(
                    f"{resource.tag} is listed as a namespace but is a "
                    f"{resource.resource_type.value}"
                )
            namespace_names.add(resource.local.name)

        for resource in self.resources.values():
            if resource.resource_type == ResourceType.NAMESPACE:
                if resource.selector not in self.namespaces:
                    raise DiffError(
                        f"Namespace {resource.tag} is missing from the namespace list"
                    )
            elif resource.namespace not in namespace_names:
                raise DiffError(
                    f"Resource {resource.tag} belongs to undeclared namespace '{resource.namespace}'"
                )

        for kind, permissions in (("writer", self.writers), ("owner", self.owners)):
            for selector in permissions:
                if selector not in self.resources:
                    raise DiffError(
                        f"{kind.capitalize()} permissions reference unknown resource {selector:#x}"
                    )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> WorldDiff:
        """Build a diff from its JSON representation.

        Felts can be given as integers or hex/decimal strings.
        """
        try:
            return _diff_from_dict(data)
        except (KeyError, TypeError, ValueError, CalldataDecodeError) as e:
            raise DiffError(f"Invalid world diff: {e!r}") from e


def load_diff(path: Path) -> WorldDiff:
    """Load and validate a world diff stored as JSON.

    Args:
        path: Path to the JSON file written by the diff computation

    Returns:
        The validated WorldDiff
    """
    try:
        with open(path) as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DiffError(f"Failed to read world diff {path}: {e}") from e

    if not isinstance(raw, dict):
        raise DiffError(f"World diff {path} must contain a JSON object")

    diff = WorldDiff.from_dict(raw)
    diff.validate()
    return diff


# ---------------------------------------------------------------------------
# JSON parsing
# ---------------------------------------------------------------------------


def _felt(data: Mapping[str, Any], key: str, default: int | None = None) -> int:
    if key not in data or data[key] is None:
        if default is None:
            raise KeyError(key)
        return default
    return parse_felt(data[key])


def _resource_local(data: Mapping[str, Any]) -> ResourceLocal:
    return ResourceLocal(
        resource_type=ResourceType(data["type"]),
        name=data["name"],
        selector=_felt(data, "selector"),
        namespace=data.get("namespace", ""),
        class_hash=_felt(data, "class_hash", 0),
        casm_class_hash=_felt(data, "casm_class_hash", 0),
        artifact=data.get("artifact"),
        version=data.get("version"),
    )


def _resource_remote(data: Mapping[str, Any]) -> ResourceRemote:
    return ResourceRemote(
        resource_type=ResourceType(data["type"]),
        name=data["name"],
        selector=_felt(data, "selector"),
        namespace=data.get("namespace", ""),
        class_hash=_felt(data, "class_hash", 0),
        address=_felt(data, "address", 0),
        is_initialized=bool(data.get("is_initialized", False)),
        metadata_hash=_felt(data, "metadata_hash", 0),
    )


def _resource_diff(data: Mapping[str, Any]) -> ResourceDiff:
    remote = data.get("remote")
    return ResourceDiff(
        DiffStatus(data["status"]),
        _resource_local(data["local"]),
        _resource_remote(remote) if remote is not None else None,
    )


def _permissions(data: Mapping[str, Any] | None) -> dict[int, PermissionDiffs]:
    result: dict[int, PermissionDiffs] = {}
    for selector, entries in (data or {}).items():
        result[parse_felt(selector)] = PermissionDiffs(
            tuple(
                PermissionDiff(
                    address=_felt(entry, "address"),
                    status=PermissionStatus(entry["status"]),
                    tag=entry.get("tag"),
                )
                for entry in entries
            )
        )
    return result


def _external_contract(data: Mapping[str, Any]) -> ExternalContractDiff:
    local = data["local"]
    return ExternalContractDiff(
        DiffStatus(data["status"]),
        ExternalContractLocal(
            contract_name=local["contract_name"],
            instance_name=local["instance_name"],
            class_hash=_felt(local, "class_hash"),
            salt=_felt(local, "salt", 0),
            raw_constructor_data=tuple(
                parse_felt(v) for v in local.get("raw_constructor_data", [])
            ),
            address=_felt(local, "address", 0),
        ),
    )


def _external_contract_class(data: Mapping[str, Any]) -> ExternalContractClassDiff:
    local = data["local"]
    return ExternalContractClassDiff(
        DiffStatus(data["status"]),
        ExternalContractClassLocal(
            contract_name=local["contract_name"],
            class_hash=_felt(local, "class_hash"),
            casm_class_hash=_felt(local, "casm_class_hash"),
            artifact=local.get("artifact"),
        ),
    )


def _diff_from_dict(data: Mapping[str, Any]) -> WorldDiff:
    world = data["world"]
    world_info = WorldInfo(
        status=WorldStatus(world["status"]),
        class_hash=_felt(world, "class_hash"),
        casm_class_hash=_felt(world, "casm_class_hash"),
        address=_felt(world, "address", 0),
        metadata_hash=_felt(world, "metadata_hash", 0),
        artifact=world.get("artifact"),
    )

    resources: dict[int, ResourceDiff] = {}
    for entry in data.get("resources", []):
        resource = _resource_diff(entry)
        if resource.selector in resources:
            raise ValueError(f"duplicate resource selector {resource.selector:#x}")
        resources[resource.selector] = resource

    external_contracts = {}
    for entry in data.get("external_contracts", []):
        contract = _external_contract(entry)
        external_contracts[contract.local.instance_name] = contract

    external_contract_classes = {}
    for entry in data.get("external_contract_classes", []):
        contract_class = _external_contract_class(entry)
        external_contract_classes[contract_class.local.contract_name] = contract_class

    return WorldDiff(
        world_info=world_info,
        namespaces=tuple(parse_felt(s) for s in data.get("namespaces", [])),
        resources=resources,
        external_contracts=external_contracts,
        external_contract_classes=external_contract_classes,
        writers=_permissions(data.get("writers")),
        owners=_permissions(data.get("owners")),
    )
