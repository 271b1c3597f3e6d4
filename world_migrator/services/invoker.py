"""Accumulates calls and sends them to the target.

An ``Invoker`` owns one account for its whole life, so the nonce sequence of
that account is never shared with another sender.  Calls are flushed either
as a single multicall transaction or one transaction per call; in both cases
the pending list is emptied once it has been sent.
"""

from __future__ import annotations

import logging
from typing import Iterable

from world_migrator.exceptions import TransactionError
from world_migrator.services.target import (
    Account,
    Call,
    Receipt,
    TransactionResult,
    TxnConfig,
)
from world_migrator.utils.logging import format_felt, log_with_context


async def send_transaction(
    account: Account, calls: list[Call], txn_config: TxnConfig
) -> TransactionResult:
    """Send ``calls`` as one transaction and wait for it if configured to."""
    transaction_hash = await account.execute(calls, txn_config)
    log_with_context(
        logging.DEBUG,
        "Transaction sent.",
        transaction_hash=format_felt(transaction_hash),
        n_calls=len(calls),
    )

    if not (txn_config.wait or txn_config.receipt):
        return TransactionResult(transaction_hash)

    receipt: Receipt = await account.wait_for_receipt(transaction_hash)
    if txn_config.receipt:
        return TransactionResult(transaction_hash, receipt)
    return TransactionResult(transaction_hash)


class Invoker:
    """Ordered batch of pending calls sent with a single account."""

    def __init__(self, account: Account, txn_config: TxnConfig) -> None:
        self.account = account
        self.txn_config = txn_config
        self.calls: list[Call] = []

    def add_call(self, call: Call) -> None:
        self.calls.append(call)

    def extend_calls(self, calls: Iterable[Call]) -> None:
        self.calls.extend(calls)

    async def multicall(self) -> TransactionResult:
        """Send every pending call in one transaction.

        Returns a noop result without contacting the target when nothing is
        pending.

        Raises:
            TransactionError: If the transaction is rejected.
        """
        if not self.calls:
            return TransactionResult.noop()

        calls, self.calls = self.calls, []
        log_with_context(logging.DEBUG, f"Sending multicall with {len(calls)} calls.")

        try:
            return await send_transaction(self.account, calls, self.txn_config)
        except TransactionError as e:
            entrypoints = sorted({c.entrypoint for c in calls})
            raise TransactionError(
                f"Multicall of {len(calls)} calls ({', '.join(entrypoints)}) failed: {e}",
                tag=calls[0].tag if len(calls) == 1 else e.tag,
                entrypoint=calls[0].entrypoint if len(calls) == 1 else e.entrypoint,
            ) from e

    async def invoke_all_sequentially(self) -> list[TransactionResult]:
        """Send every pending call in its own transaction, in order.

        Stops at the first failing call; calls after it stay pending.

        Raises:
            TransactionError: Naming the resource tag and entrypoint of the
                failed call.
        """
        results = []
        while self.calls:
            call = self.calls[0]
            try:
                results.append(
                    await send_transaction(self.account, [call], self.txn_config)
                )
            except TransactionError as e:
                raise TransactionError(
                    f"Call {call.entrypoint} failed for {call.tag or format_felt(call.to)}: {e}",
                    tag=call.tag,
                    entrypoint=call.entrypoint,
                ) from e
            self.calls.pop(0)
        return results

    async def flush(self, multicall: bool) -> list[TransactionResult]:
        """Send pending calls batched or sequentially."""
        if multicall:
            result = await self.multicall()
            return [] if result.is_noop else [result]
        return await self.invoke_all_sequentially()
