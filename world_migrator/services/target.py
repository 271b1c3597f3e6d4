"""Interfaces to the remote execution target.

The migration engine never builds or signs transactions itself.  It talks to
an ``Account`` (a signing identity connected to a node) and, for metadata, to
an ``UploadService``.  Concrete implementations live outside this package,
except for the in-memory one in ``world_migrator.services.dry_run``.

Account implementations report a rejected transaction by raising
``TransactionError`` and a failure to observe chain state by raising
``ProviderError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Protocol, Sequence

if TYPE_CHECKING:
    from world_migrator.services.declarer import LabeledArtifact


@dataclass(frozen=True)
class Call:
    """A single contract invocation.

    ``tag`` names the resource the call acts on; it is only used to describe
    failures and is not sent to the target.
    """

    to: int
    entrypoint: str
    calldata: tuple[int, ...] = ()
    tag: str | None = field(default=None, compare=False)


@dataclass(frozen=True)
class TxnConfig:
    """How transactions are sent and awaited."""

    wait: bool = False
    receipt: bool = False
    fee_estimate_multiplier: float | None = None


@dataclass(frozen=True)
class Receipt:
    """Transaction receipt. ``block_number`` is None while the block is pending."""

    transaction_hash: int
    block_number: int | None = None
    contract_address: int | None = None


@dataclass(frozen=True)
class TransactionResult:
    """Outcome of sending (or not sending) a transaction."""

    transaction_hash: int | None = None
    receipt: Receipt | None = None

    @classmethod
    def noop(cls) -> TransactionResult:
        return cls()

    @property
    def is_noop(self) -> bool:
        return self.transaction_hash is None


class Account(Protocol):
    """A signing identity able to send transactions to the target."""

    address: int

    async def declare(self, artifact: LabeledArtifact) -> int:
        """Publish a class artifact. Returns the transaction hash."""
        ...

    async def is_declared(self, class_hash: int) -> bool:
        ...

    async def execute(
        self, calls: Sequence[Call], txn_config: TxnConfig
    ) -> int:
        """Send ``calls`` in one transaction. Returns the transaction hash."""
        ...

    async def wait_for_receipt(self, transaction_hash: int) -> Receipt:
        ...

    async def block_number(self) -> int:
        ...

    async def deploy_getcall(
        self,
        class_hash: int,
        salt: int,
        constructor_calldata: Sequence[int],
        unique: bool,
    ) -> tuple[int, Call] | None:
        """Build the deterministic deployment call.

        Returns the future contract address and the call, or None when a
        contract already exists at that address.
        """
        ...


class UploadService(Protocol):
    """Content-addressed storage for metadata (IPFS or similar)."""

    async def upload(self, data: bytes) -> str:
        """Store ``data`` and return its URI."""
        ...


# Builds an account from (address, private key), used for extra declarers.
AccountFactory = Callable[[int, int], Account]


@dataclass
class Target:
    """Everything a migration needs from the remote side."""

    account: Account
    account_factory: AccountFactory | None = None
    upload_service: UploadService | None = None
