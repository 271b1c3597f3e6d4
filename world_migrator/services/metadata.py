"""World and resource metadata.

Metadata is serialized to canonical JSON and hashed; the hash stored in the
world tells whether the current metadata was already uploaded.  Only changed
metadata is uploaded, and the returned URI is then recorded in the world with
a ``set_metadata`` call.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, dataclass, field
from typing import Any

from world_migrator.core.config import ResourceConfig, WorldConfig
from world_migrator.services.target import UploadService

# Hashes are stored in a single felt.
METADATA_HASH_MASK = (1 << 251) - 1


def _drop_empty(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value not in (None, "", {})}


class _Metadata:
    def to_dict(self) -> dict[str, Any]:
        return _drop_empty(asdict(self))  # type: ignore[call-overload]

    def to_json(self) -> bytes:
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":")).encode(
            "utf-8"
        )

    def metadata_hash(self) -> int:
        """Hash of the serialized metadata, fitting in one felt."""
        digest = hashlib.sha256(self.to_json()).digest()
        return int.from_bytes(digest, "big") & METADATA_HASH_MASK

    async def upload_if_changed(
        self, service: UploadService, current_hash: int
    ) -> tuple[str, int] | None:
        """Upload the metadata unless ``current_hash`` already matches it.

        Returns:
            The URI and hash of the uploaded metadata, or None if unchanged.
        """
        new_hash = self.metadata_hash()
        if new_hash == current_hash:
            return None
        uri = await service.upload(self.to_json())
        return uri, new_hash


@dataclass(frozen=True)
class WorldMetadata(_Metadata):
    name: str = ""
    seed: str = ""
    description: str | None = None
    cover_uri: str | None = None
    icon_uri: str | None = None
    website: str | None = None
    socials: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: WorldConfig) -> WorldMetadata:
        return cls(
            name=config.name,
            seed=config.seed,
            description=config.description,
            cover_uri=config.cover_uri,
            icon_uri=config.icon_uri,
            website=config.website,
            socials=dict(config.socials),
        )


@dataclass(frozen=True)
class ResourceMetadata(_Metadata):
    name: str
    description: str | None = None
    icon_uri: str | None = None

    @classmethod
    def from_config(cls, config: ResourceConfig) -> ResourceMetadata:
        return cls(
            name=config.tag,
            description=config.description,
            icon_uri=config.icon_uri,
        )
