"""
Profile configuration for the world migration tool.

This module loads the profile YAML file (world identity, migration options,
init call arguments and resource metadata) into typed dataclasses, creates a
default profile, and answers the questions the migration asks about it:
which resources are skipped and whether calls are batched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from world_migrator.exceptions import ConfigError
from world_migrator.utils.calldata import parse_felt
from world_migrator.utils.logging import log_with_context


def _as_list(data: dict[str, Any], key: str) -> list[Any]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list, got {type(value).__name__}")
    return value


@dataclass
class WorldConfig:
    """Identity and metadata of the world."""

    name: str = ""
    seed: str = ""
    description: str | None = None
    cover_uri: str | None = None
    icon_uri: str | None = None
    website: str | None = None
    socials: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> WorldConfig:
        if not data:
            return cls()
        return cls(
            name=data.get("name", ""),
            seed=data.get("seed", ""),
            description=data.get("description"),
            cover_uri=data.get("cover_uri"),
            icon_uri=data.get("icon_uri"),
            website=data.get("website"),
            socials=data.get("socials") or {},
        )


@dataclass
class ResourceConfig:
    """Metadata attached to a single resource, identified by its tag."""

    tag: str
    description: str | None = None
    icon_uri: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResourceConfig:
        if "tag" not in data:
            raise ConfigError(f"Resource metadata entry without a tag: {data}")
        return cls(
            tag=data["tag"],
            description=data.get("description"),
            icon_uri=data.get("icon_uri"),
        )


@dataclass
class DeclarerConfig:
    """An extra account used to declare classes in parallel."""

    address: int
    private_key: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeclarerConfig:
        try:
            return cls(
                address=parse_felt(data["address"]),
                private_key=parse_felt(data["private_key"]),
            )
        except KeyError as e:
            raise ConfigError(f"Declarer entry is missing {e}") from e


@dataclass
class MigrationSection:
    """The ``migration`` section of the profile."""

    skip_contracts: list[str] = field(default_factory=list)
    disable_multicall: bool = False
    order_inits: list[str] = field(default_factory=list)
    declarers: list[DeclarerConfig] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> MigrationSection:
        if not data:
            return cls()
        return cls(
            skip_contracts=_as_list(data, "skip_contracts"),
            disable_multicall=bool(data.get("disable_multicall", False)),
            order_inits=_as_list(data, "order_inits"),
            declarers=[DeclarerConfig.from_dict(d) for d in _as_list(data, "declarers")],
        )


@dataclass
class ProfileConfig:
    """Typed profile configuration for a migration.

    All fields have defaults so an empty profile is valid, except that a
    world deployment needs ``world.seed``.
    """

    world: WorldConfig = field(default_factory=WorldConfig)
    migration: MigrationSection = field(default_factory=MigrationSection)

    # tag -> raw calldata strings passed to the contract init
    init_call_args: dict[str, list[str]] = field(default_factory=dict)

    # Resource metadata, uploaded by ``upload_metadata``
    contracts: list[ResourceConfig] = field(default_factory=list)
    libraries: list[ResourceConfig] = field(default_factory=list)
    models: list[ResourceConfig] = field(default_factory=list)
    events: list[ResourceConfig] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProfileConfig:
        """Create a ProfileConfig from a raw config dictionary."""
        if not isinstance(data, dict):
            raise ConfigError("Profile configuration must be a mapping")

        init_call_args = data.get("init_call_args") or {}
        if not isinstance(init_call_args, dict):
            raise ConfigError("'init_call_args' must map tags to argument lists")

        return cls(
            world=WorldConfig.from_dict(data.get("world")),
            migration=MigrationSection.from_dict(data.get("migration")),
            init_call_args=init_call_args,
            contracts=[ResourceConfig.from_dict(d) for d in _as_list(data, "contracts")],
            libraries=[ResourceConfig.from_dict(d) for d in _as_list(data, "libraries")],
            models=[ResourceConfig.from_dict(d) for d in _as_list(data, "models")],
            events=[ResourceConfig.from_dict(d) for d in _as_list(data, "events")],
        )

    def is_skipped(self, tag: str) -> bool:
        """Return True if the resource ``tag`` is excluded from the migration."""
        return tag in self.migration.skip_contracts

    def do_multicall(self) -> bool:
        """Whether calls are sent as one multicall. Enabled by default."""
        return not self.migration.disable_multicall


def load_config(config_path: Path) -> ProfileConfig:
    """
    Load the profile from a YAML file and apply default values.

    A missing or unreadable file is logged as a warning and the defaults are
    used; a readable file with invalid content raises.

    Args:
        config_path: Path to the profile YAML file

    Returns:
        ProfileConfig with all necessary defaults applied

    Raises:
        ConfigError: If the file content does not describe a valid profile.
    """
    raw: dict[str, Any] = {}

    if config_path.exists():
        try:
            with open(config_path) as f:
                loaded_config = yaml.safe_load(f)
                # Handle None result from empty file
                if loaded_config is not None:
                    raw = loaded_config
            log_with_context(logging.INFO, f"Loaded profile from {config_path}")
        except (yaml.YAMLError, OSError) as e:
            log_with_context(
                logging.WARNING, f"Failed to load profile {config_path}: {e}"
            )
    else:
        log_with_context(
            logging.WARNING,
            f"Profile {config_path} not found, using default settings",
        )

    return ProfileConfig.from_dict(raw)


def create_default_config(output_path: Path) -> bool:
    """
    Create a default profile with recommended settings.

    The function will not overwrite an existing file.

    Args:
        output_path: Path where the default profile should be saved

    Returns:
        True if the file was created successfully, False otherwise
    """
    if output_path.exists():
        log_with_context(
            logging.WARNING,
            f"Profile {output_path} already exists, not overwriting",
        )
        return False

    default_config = {
        "world": {
            "name": "My world",
            "seed": "my_world",
            "description": "",
        },
        "migration": {
            "skip_contracts": [],
            "disable_multicall": False,
            "order_inits": [],
        },
        "init_call_args": {
            "ns-actions": ["0x1", "str:hello"],
        },
        "contracts": [
            {"tag": "ns-actions", "description": "Game actions"},
        ],
    }

    try:
        with open(output_path, "w") as f:
            yaml.safe_dump(default_config, f, default_flow_style=False, sort_keys=False)
        log_with_context(logging.INFO, f"Created default profile at {output_path}")
        return True
    except OSError as e:
        log_with_context(logging.ERROR, f"Failed to create default profile: {e}")
        return False
