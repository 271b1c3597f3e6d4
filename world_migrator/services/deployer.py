"""Deterministic contract deployment through the universal deployer."""

from __future__ import annotations

import logging
from typing import Sequence

from world_migrator.exceptions import DiffError
from world_migrator.services.invoker import send_transaction
from world_migrator.services.target import Account, Call, TransactionResult, TxnConfig
from world_migrator.utils.logging import format_felt, log_with_context


class Deployer:
    """Deploys contracts at addresses derived from class hash, salt and calldata."""

    def __init__(self, account: Account, txn_config: TxnConfig) -> None:
        self.account = account
        self.txn_config = txn_config

    async def deploy_via_udc_getcall(
        self,
        class_hash: int,
        salt: int,
        constructor_calldata: Sequence[int],
        unique: bool = False,
    ) -> tuple[int, Call] | None:
        """Return the deployment call, or None if the address is already deployed."""
        result = await self.account.deploy_getcall(
            class_hash, salt, list(constructor_calldata), unique
        )
        if result is None:
            log_with_context(
                logging.DEBUG,
                "Contract already deployed.",
                class_hash=format_felt(class_hash),
                salt=format_felt(salt),
            )
        return result

    async def deploy_via_udc(
        self,
        class_hash: int,
        salt: int,
        constructor_calldata: Sequence[int],
        unique: bool = False,
        expected_address: int | None = None,
    ) -> tuple[int, TransactionResult]:
        """Deploy a contract unless it already exists.

        Returns:
            The contract address (0 when unknown because the contract already
            exists) and the transaction result, a noop one in that case.

        Raises:
            DiffError: If ``expected_address`` is given and the contract would
                be deployed elsewhere. Nothing is sent in that case.
        """
        getcall = await self.deploy_via_udc_getcall(
            class_hash, salt, constructor_calldata, unique
        )
        if getcall is None:
            return 0, TransactionResult.noop()

        address, call = getcall
        if expected_address is not None and address != expected_address:
            raise DiffError(
                f"Contract would be deployed at {format_felt(address)} "
                f"but {format_felt(expected_address)} was expected"
            )
        log_with_context(
            logging.DEBUG,
            "Deploying contract.",
            class_hash=format_felt(class_hash),
            address=format_felt(address),
        )
        return address, await send_transaction(self.account, [call], self.txn_config)
