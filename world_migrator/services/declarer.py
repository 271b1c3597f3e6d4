"""Publication of class artifacts.

Classes are content-addressed: the same compiled code always has the same
CASM class hash, so a ``Declarer`` keeps at most one artifact per hash and a
class already present on chain is never an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from world_migrator.constants import CLASS_ALREADY_DECLARED
from world_migrator.exceptions import DeclareError, TransactionError
from world_migrator.services.target import Account, TransactionResult, TxnConfig
from world_migrator.utils.logging import format_felt, log_with_context


@dataclass(frozen=True)
class LabeledArtifact:
    """A class artifact with the tag of the resource that uses it."""

    label: str
    class_hash: int
    casm_class_hash: int
    artifact: Any = field(default=None, repr=False, compare=False)


def is_already_declared_error(error: BaseException) -> bool:
    """True for the error the target returns when a class hash is declared twice."""
    return CLASS_ALREADY_DECLARED.lower() in str(error).lower()


class Declarer:
    """Set of unique artifacts declared with a single account."""

    def __init__(self, account: Account, txn_config: TxnConfig) -> None:
        self.account = account
        self.txn_config = txn_config
        self.classes: dict[int, LabeledArtifact] = {}

    def add_class(self, labeled_class: LabeledArtifact) -> None:
        # First label wins when two resources share the same code.
        self.classes.setdefault(labeled_class.casm_class_hash, labeled_class)

    def extend_classes(self, labeled_classes: Iterable[LabeledArtifact]) -> None:
        for labeled_class in labeled_classes:
            self.add_class(labeled_class)

    async def declare_all(self) -> list[TransactionResult]:
        """Declare every pending class, one transaction each.

        Raises:
            DeclareError: If a declaration fails for any reason other than
                the class being declared already.
        """
        results = []
        for casm_class_hash in list(self.classes):
            labeled_class = self.classes[casm_class_hash]
            results.append(
                await Declarer.declare(labeled_class, self.account, self.txn_config)
            )
            del self.classes[casm_class_hash]
        return results

    @staticmethod
    async def declare(
        labeled_class: LabeledArtifact,
        account: Account,
        txn_config: TxnConfig,
    ) -> TransactionResult:
        """Declare one class, returning a noop result if it is already declared."""
        class_hash = format_felt(labeled_class.class_hash)

        if await account.is_declared(labeled_class.class_hash):
            log_with_context(
                logging.DEBUG,
                "Class already declared.",
                label=labeled_class.label,
                class_hash=class_hash,
            )
            return TransactionResult.noop()

        log_with_context(
            logging.DEBUG,
            "Declaring class.",
            label=labeled_class.label,
            class_hash=class_hash,
        )

        try:
            transaction_hash = await account.declare(labeled_class)
        except TransactionError as e:
            if is_already_declared_error(e):
                # Declared meanwhile by another declarer or a previous run.
                log_with_context(
                    logging.DEBUG,
                    "Class declared concurrently.",
                    label=labeled_class.label,
                    class_hash=class_hash,
                )
                return TransactionResult.noop()
            raise DeclareError(
                f"Failed to declare class {labeled_class.label} ({class_hash}): {e}",
                tag=labeled_class.label,
                entrypoint="declare",
            ) from e

        # Classes must be declared before anything references them.
        receipt = await account.wait_for_receipt(transaction_hash)
        if txn_config.receipt:
            return TransactionResult(transaction_hash, receipt)
        return TransactionResult(transaction_hash)
