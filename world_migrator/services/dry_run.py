"""In-memory remote target for dry-run mode.

Implements the ``Account`` and ``UploadService`` interfaces without any
network access.  Every transaction is recorded in a shared ``DryRunNetwork``
so a dry run reports exactly what a real migration would send, and the
network remembers declared classes and deployed addresses so that a second
declaration or deployment behaves the way a real node answers it.

Injected in place of the real target when ``--dry_run`` is given.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Sequence

from world_migrator.constants import CLASS_ALREADY_DECLARED
from world_migrator.exceptions import TransactionError
from world_migrator.services.declarer import LabeledArtifact
from world_migrator.services.target import Call, Receipt, Target, TxnConfig
from world_migrator.utils.logging import format_felt, log_with_context

# Address of the universal deployer contract.
UDC_ADDRESS = 0x041A78E741E5AF2FEC34B695679BC6891742439F7AFB8484ECD7766661AD02BF

DRY_RUN_ACCOUNT_ADDRESS = 0x1


def _felt_hash(*values: object) -> int:
    digest = hashlib.sha256(repr(values).encode("utf-8")).digest()
    return int.from_bytes(digest, "big") & ((1 << 251) - 1)


# ---------------------------------------------------------------------------
# Shared network state
# ---------------------------------------------------------------------------


@dataclass
class DryRunTransaction:
    """A transaction the dry run would have sent."""

    kind: str
    sender: int
    transaction_hash: int
    calls: list[Call] = field(default_factory=list)
    label: str | None = None


@dataclass
class DryRunNetwork:
    """State shared by every dry-run account of a run."""

    transactions: list[DryRunTransaction] = field(default_factory=list)
    declared: set[int] = field(default_factory=set)
    deployed: set[int] = field(default_factory=set)
    block: int = 0

    def record(self, transaction: DryRunTransaction) -> int:
        self.transactions.append(transaction)
        self.block += 1
        return transaction.transaction_hash

    def declarations(self) -> list[DryRunTransaction]:
        return [t for t in self.transactions if t.kind == "declare"]

    def invocations(self) -> list[DryRunTransaction]:
        return [t for t in self.transactions if t.kind == "invoke"]

    def calls(self) -> list[Call]:
        """Every call sent, in order, flattened across transactions."""
        return [call for t in self.invocations() for call in t.calls]


def deployment_address(
    class_hash: int,
    salt: int,
    constructor_calldata: Sequence[int],
    deployer_address: int = 0,
) -> int:
    """Deterministic address of a contract deployed through the UDC."""
    return _felt_hash("udc", class_hash, salt, tuple(constructor_calldata), deployer_address)


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------


class DryRunAccount:
    """Account that records transactions in a ``DryRunNetwork``."""

    def __init__(self, network: DryRunNetwork, address: int) -> None:
        self.network = network
        self.address = address
        self._nonce = 0

    def _next_hash(self, kind: str) -> int:
        self._nonce += 1
        return _felt_hash(kind, self.address, self._nonce)

    async def declare(self, artifact: LabeledArtifact) -> int:
        if artifact.class_hash in self.network.declared:
            raise TransactionError(
                f"{CLASS_ALREADY_DECLARED}: {format_felt(artifact.class_hash)}",
                tag=artifact.label,
                entrypoint="declare",
            )
        self.network.declared.add(artifact.class_hash)
        log_with_context(
            logging.DEBUG,
            f"[DRY RUN] Would declare class {artifact.label}",
            class_hash=format_felt(artifact.class_hash),
        )
        return self.network.record(
            DryRunTransaction(
                kind="declare",
                sender=self.address,
                transaction_hash=self._next_hash("declare"),
                label=artifact.label,
            )
        )

    async def is_declared(self, class_hash: int) -> bool:
        return class_hash in self.network.declared

    async def execute(self, calls: Sequence[Call], txn_config: TxnConfig) -> int:
        for call in calls:
            if call.to == UDC_ADDRESS and call.entrypoint == "deployContract":
                self.network.deployed.add(self._address_from_deploy_call(call))
            log_with_context(
                logging.DEBUG,
                f"[DRY RUN] Would call {call.entrypoint}",
                tag=call.tag,
                to=format_felt(call.to),
            )
        return self.network.record(
            DryRunTransaction(
                kind="invoke",
                sender=self.address,
                transaction_hash=self._next_hash("invoke"),
                calls=list(calls),
            )
        )

    async def wait_for_receipt(self, transaction_hash: int) -> Receipt:
        return Receipt(transaction_hash, block_number=self.network.block)

    async def block_number(self) -> int:
        return self.network.block

    async def deploy_getcall(
        self,
        class_hash: int,
        salt: int,
        constructor_calldata: Sequence[int],
        unique: bool,
    ) -> tuple[int, Call] | None:
        deployer_address = self.address if unique else 0
        address = deployment_address(class_hash, salt, constructor_calldata, deployer_address)
        if address in self.network.deployed:
            return None

        calldata = (class_hash, salt, int(unique), len(constructor_calldata), *constructor_calldata)
        return address, Call(UDC_ADDRESS, "deployContract", calldata)

    def _address_from_deploy_call(self, call: Call) -> int:
        class_hash, salt, unique, n_args = call.calldata[:4]
        constructor_calldata = call.calldata[4 : 4 + n_args]
        deployer_address = self.address if unique else 0
        return deployment_address(class_hash, salt, constructor_calldata, deployer_address)


# ---------------------------------------------------------------------------
# Metadata storage
# ---------------------------------------------------------------------------


class DryRunUploadService:
    """Upload service that keeps the uploaded content in memory."""

    def __init__(self) -> None:
        self.uploads: dict[str, bytes] = {}

    async def upload(self, data: bytes) -> str:
        uri = f"ipfs://dry-run-{hashlib.sha256(data).hexdigest()[:32]}"
        self.uploads[uri] = data
        log_with_context(logging.DEBUG, f"[DRY RUN] Would upload {len(data)} bytes to {uri}")
        return uri


def build_dry_run_target(
    network: DryRunNetwork | None = None,
    address: int = DRY_RUN_ACCOUNT_ADDRESS,
) -> Target:
    """Target whose accounts and upload service all share ``network``."""
    network = network if network is not None else DryRunNetwork()
    return Target(
        account=DryRunAccount(network, address),
        account_factory=lambda addr, _private_key: DryRunAccount(network, addr),
        upload_service=DryRunUploadService(),
    )
