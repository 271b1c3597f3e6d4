"""Unit test configuration and shared fixtures."""

from __future__ import annotations

import itertools
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from world_migrator.core.config import ProfileConfig
from world_migrator.core.diff import WorldDiff
from world_migrator.core.migrator import Migration
from world_migrator.services.dry_run import DryRunNetwork, build_dry_run_target
from world_migrator.services.target import Receipt, TxnConfig
from world_migrator.services.world import WorldContract
from world_migrator.utils.ui import MigrationUi

# ---------------------------------------------------------------------------
# Shared mock account factory
# ---------------------------------------------------------------------------


def _build_mock_account(address: int = 0xACC, **kwargs: Any) -> MagicMock:
    """Build a MagicMock that behaves like an ``Account``.

    Comes pre-wired with:
    - ``declare`` / ``execute`` returning increasing transaction hashes
    - ``is_declared`` = False
    - ``wait_for_receipt`` returning a receipt at block 10
    - ``block_number`` = 10
    - ``deploy_getcall`` = None (already deployed)

    Keyword arguments override attributes on the mock.
    """
    hashes = itertools.count(0x1000)
    m = MagicMock()
    m.address = address
    m.declare = AsyncMock(side_effect=lambda artifact: next(hashes))
    m.execute = AsyncMock(side_effect=lambda calls, cfg: next(hashes))
    m.is_declared = AsyncMock(return_value=False)
    m.wait_for_receipt = AsyncMock(
        side_effect=lambda tx: Receipt(transaction_hash=tx, block_number=10)
    )
    m.block_number = AsyncMock(return_value=10)
    m.deploy_getcall = AsyncMock(return_value=None)

    for key, value in kwargs.items():
        setattr(m, key, value)
    return m


@pytest.fixture()
def make_mock_account():
    """Factory fixture, call with kwargs to get a configured mock account.

    Usage in tests::

        def test_something(make_mock_account):
            account = make_mock_account(is_declared=AsyncMock(return_value=True))
    """
    return _build_mock_account


@pytest.fixture()
def network() -> DryRunNetwork:
    return DryRunNetwork()


@pytest.fixture()
def silent_ui() -> MigrationUi:
    return MigrationUi(silent=True)


@pytest.fixture()
def make_migration(network: DryRunNetwork, profile: ProfileConfig):
    """Factory fixture building a ``Migration`` on the dry-run network.

    Extra declarers default to none so no node lookup happens.
    """

    def _make(
        diff: WorldDiff,
        profile_config: ProfileConfig | None = None,
        **kwargs: Any,
    ) -> Migration:
        target = build_dry_run_target(network)
        kwargs.setdefault("declarers", [])
        return Migration(
            diff,
            WorldContract(diff.world_info.address),
            target.account,
            kwargs.pop("txn_config", TxnConfig()),
            profile_config if profile_config is not None else profile,
            account_factory=target.account_factory,
            **kwargs,
        )

    return _make
