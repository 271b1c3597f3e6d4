"""Typed builders for calls to the world contract.

Replaces hand-assembled calldata lists with one explicit method per world
entrypoint.  Each method returns a ``Call`` without sending it; strings are
serialized as Cairo ``ByteArray`` values.
"""

from __future__ import annotations

from typing import Sequence

from world_migrator.services.target import Call
from world_migrator.utils.calldata import encode_byte_array


class WorldContract:
    """Call builder for a world deployed at ``address``."""

    def __init__(self, address: int) -> None:
        self.address = address

    def _call(self, entrypoint: str, calldata: Sequence[int], tag: str | None) -> Call:
        return Call(self.address, entrypoint, tuple(calldata), tag=tag)

    # -- Registration ---------------------------------------------------------

    def register_namespace_getcall(self, namespace: str) -> Call:
        return self._call(
            "register_namespace", encode_byte_array(namespace), tag=namespace
        )

    def register_contract_getcall(
        self, selector: int, namespace: str, class_hash: int, tag: str | None = None
    ) -> Call:
        """Register a contract; the selector is used as deployment salt."""
        return self._call(
            "register_contract",
            [selector, *encode_byte_array(namespace), class_hash],
            tag=tag,
        )

    def register_library_getcall(
        self,
        namespace: str,
        class_hash: int,
        name: str,
        version: str,
        tag: str | None = None,
    ) -> Call:
        return self._call(
            "register_library",
            [
                *encode_byte_array(namespace),
                class_hash,
                *encode_byte_array(name),
                *encode_byte_array(version),
            ],
            tag=tag,
        )

    def register_model_getcall(
        self, namespace: str, class_hash: int, tag: str | None = None
    ) -> Call:
        return self._call(
            "register_model", [*encode_byte_array(namespace), class_hash], tag=tag
        )

    def register_event_getcall(
        self, namespace: str, class_hash: int, tag: str | None = None
    ) -> Call:
        return self._call(
            "register_event", [*encode_byte_array(namespace), class_hash], tag=tag
        )

    # -- Upgrades -------------------------------------------------------------

    def upgrade_contract_getcall(
        self, namespace: str, class_hash: int, tag: str | None = None
    ) -> Call:
        return self._call(
            "upgrade_contract", [*encode_byte_array(namespace), class_hash], tag=tag
        )

    def upgrade_model_getcall(
        self, namespace: str, class_hash: int, tag: str | None = None
    ) -> Call:
        return self._call(
            "upgrade_model", [*encode_byte_array(namespace), class_hash], tag=tag
        )

    def upgrade_event_getcall(
        self, namespace: str, class_hash: int, tag: str | None = None
    ) -> Call:
        return self._call(
            "upgrade_event", [*encode_byte_array(namespace), class_hash], tag=tag
        )

    def upgrade_getcall(self, class_hash: int) -> Call:
        """Upgrade the world itself to ``class_hash``."""
        return self._call("upgrade", [class_hash], tag="world")

    # -- Permissions ----------------------------------------------------------

    def grant_writer_getcall(
        self, selector: int, grantee: int, tag: str | None = None
    ) -> Call:
        return self._call("grant_writer", [selector, grantee], tag=tag)

    def grant_owner_getcall(
        self, selector: int, grantee: int, tag: str | None = None
    ) -> Call:
        return self._call("grant_owner", [selector, grantee], tag=tag)

    # -- Initialization and metadata ------------------------------------------

    def init_contract_getcall(
        self, selector: int, init_calldata: Sequence[int], tag: str | None = None
    ) -> Call:
        return self._call(
            "init_contract",
            [selector, len(init_calldata), *init_calldata],
            tag=tag,
        )

    def set_metadata_getcall(
        self,
        resource_id: int,
        metadata_uri: str,
        metadata_hash: int,
        tag: str | None = None,
    ) -> Call:
        return self._call(
            "set_metadata",
            [resource_id, *encode_byte_array(metadata_uri), metadata_hash],
            tag=tag,
        )
