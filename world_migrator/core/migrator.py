"""
Migration orchestrator.

``Migration`` applies a ``WorldDiff`` to the remote world in strictly ordered
steps: the world itself, namespaced resources, permissions, contract
initialization and external contracts.  Each step collects the artifacts to
declare and the calls to send, declares first, then flushes its calls.

A failure aborts the remaining steps.  Every step only acts on what the diff
reports as missing, so a run interrupted half way is resumed by computing a
new diff and migrating again.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from world_migrator.constants import WORLD_LABEL, WORLD_RESOURCE_ID
from world_migrator.core.config import ProfileConfig, ResourceConfig
from world_migrator.core.diff import DiffStatus, ResourceType, WorldDiff, WorldStatus
from world_migrator.core.manifest import Manifest
from world_migrator.exceptions import DeclareError
from world_migrator.services.accounts import get_predeployed_accounts
from world_migrator.services.declarer import (
    Declarer,
    LabeledArtifact,
    is_already_declared_error,
)
from world_migrator.services.deployer import Deployer
from world_migrator.services.external import (
    external_contract_classes,
    external_deploy_calls,
)
from world_migrator.services.initializer import init_calls
from world_migrator.services.invoker import Invoker
from world_migrator.services.metadata import ResourceMetadata, WorldMetadata
from world_migrator.services.permissions import permission_calls
from world_migrator.services.resources import namespace_calls, resource_calls_classes
from world_migrator.services.target import (
    Account,
    AccountFactory,
    Call,
    TransactionResult,
    TxnConfig,
    UploadService,
)
from world_migrator.services.world import WorldContract
from world_migrator.types import MigrationSummary, empty_summary
from world_migrator.utils.calldata import world_salt
from world_migrator.utils.logging import format_felt, log_with_context
from world_migrator.utils.ui import MigrationUi


@dataclass(frozen=True)
class MigrationResult:
    """Outcome of a migration run."""

    has_changes: bool
    manifest: Manifest
    summary: MigrationSummary


class Migration:
    """Applies one world diff with the migrator account."""

    def __init__(
        self,
        diff: WorldDiff,
        world: WorldContract,
        account: Account,
        txn_config: TxnConfig,
        profile_config: ProfileConfig,
        rpc_url: str | None = None,
        guest: bool = False,
        declarers: Sequence[Account] | None = None,
        account_factory: AccountFactory | None = None,
    ) -> None:
        """
        Args:
            diff: The diff to apply, only read by the migration
            world: Call builder for the world contract
            account: The migrator account, used for every invoke
            txn_config: How transactions are sent and awaited
            profile_config: The profile of the project
            rpc_url: Node URL, used to look up pre-funded declarer accounts
            guest: Migrate resources into a world owned by someone else;
                the world itself is never deployed or upgraded
            declarers: Extra accounts to declare classes with, overriding
                the profile and the pre-funded accounts
            account_factory: Builds accounts from (address, private key)
        """
        self.diff = diff
        self.world = world
        self.account = account
        self.txn_config = txn_config
        self.profile_config = profile_config
        self.rpc_url = rpc_url
        self.guest = guest
        self.declarers = list(declarers) if declarers is not None else None
        self.account_factory = account_factory
        self.summary = empty_summary()

    async def migrate(self, ui: MigrationUi) -> MigrationResult:
        """Run every migration step in order.

        Returns:
            Whether anything was sent, the manifest of the diff and the
            per-step summary.
        """
        world_has_changed = await self.ensure_world(ui) if not self.guest else False

        resources_have_changed = (
            await self.sync_resources(ui) if not self.diff.is_synced() else False
        )

        permissions_have_changed = await self.sync_permissions(ui)

        contracts_have_changed = await self.initialize_contracts(ui)

        external_contracts_have_changed = await self.sync_external_contracts(ui)

        return MigrationResult(
            has_changes=(
                world_has_changed
                or resources_have_changed
                or permissions_have_changed
                or contracts_have_changed
                or external_contracts_have_changed
            ),
            manifest=Manifest.from_diff(self.diff),
            summary=self.summary,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def do_multicall(self) -> bool:
        return self.profile_config.do_multicall()

    async def _flush(
        self, ui: MigrationUi, invoker: Invoker, text: str
    ) -> list[TransactionResult]:
        """Send the pending calls of ``invoker``, announcing ``text`` first."""
        if not invoker.calls:
            return []

        if self.do_multicall():
            ui.update_text_boxed(f"{text}...")
            return await invoker.flush(multicall=True)

        ui.update_text_boxed(f"{text} (sequentially)...")
        return await invoker.flush(multicall=False)

    def _invoker(self, calls: Iterable[Call] = ()) -> Invoker:
        invoker = Invoker(self.account, self.txn_config)
        invoker.extend_calls(calls)
        return invoker

    # -------------------------------------------------------------------------
    # World
    # -------------------------------------------------------------------------

    def _world_class(self) -> LabeledArtifact:
        world_info = self.diff.world_info
        return LabeledArtifact(
            label=WORLD_LABEL,
            class_hash=world_info.class_hash,
            casm_class_hash=world_info.casm_class_hash,
            artifact=world_info.artifact,
        )

    async def _declare_world(self) -> bool:
        result = await Declarer.declare(
            self._world_class(), self.account, self.txn_config
        )
        self._count_declared([result])
        return not result.is_noop

    async def ensure_world(self, ui: MigrationUi) -> bool:
        """Deploy or upgrade the world when the diff requires it.

        Returns:
            True if the world had to be deployed or upgraded.

        Raises:
            ProviderError: If the deployment block is pending and the latest
                block number cannot be fetched.
            DiffError: If the world would be deployed at another address than
                the one the diff targets.
        """
        status = self.diff.world_info.status

        if status == WorldStatus.SYNCED:
            return False

        if status == WorldStatus.NOT_DEPLOYED:
            ui.update_text("Deploying the world...")
            log_with_context(logging.DEBUG, "Deploying the first world.")

            declared = await self._declare_world()

            # The receipt gives the block the world is deployed at.
            deploy_config = replace(self.txn_config, wait=True, receipt=True)
            deployer = Deployer(self.account, deploy_config)

            class_hash = self.diff.world_info.class_hash
            address, result = await deployer.deploy_via_udc(
                class_hash,
                world_salt(self.profile_config.world.seed),
                [class_hash],
                False,
                expected_address=self.world.address,
            )

            if result.is_noop:
                log_with_context(
                    logging.INFO,
                    "World already deployed at its deterministic address.",
                    class_hash=format_felt(class_hash),
                )
                ui.update_text("World already deployed, continuing...")
                return declared

            block_msg = await self._deployment_block(result)
            ui.stop_and_persist_boxed(
                "🌍",
                f"World deployed at block {block_msg} with txn hash: "
                f"{format_felt(result.transaction_hash or 0)}",
            )
            ui.restart("World deployed, continuing...")

            log_with_context(
                logging.INFO, "World deployed.", address=format_felt(address)
            )
            self.summary["world_deployed"] = True
            return True

        if status == WorldStatus.NEW_VERSION:
            log_with_context(logging.DEBUG, "Upgrading the world.")
            ui.update_text("Upgrading the world...")

            await self._declare_world()

            invoker = self._invoker(
                [self.world.upgrade_getcall(self.diff.world_info.class_hash)]
            )
            await invoker.multicall()

            self.summary["world_upgraded"] = True
            return True

        raise ValueError(f"Unknown world status {status!r}")

    async def _deployment_block(self, result: TransactionResult) -> str:
        receipt = result.receipt
        if receipt is not None and receipt.block_number is not None:
            return str(receipt.block_number)

        # Pending block: report the latest block of the chain instead.
        latest = await self.account.block_number()
        return f"pending ({latest})"

    # -------------------------------------------------------------------------
    # Declarations
    # -------------------------------------------------------------------------

    async def get_accounts(self) -> list[Account]:
        """Extra accounts used to declare classes in parallel.

        Explicit declarers win, then the ``migration.declarers`` of the
        profile, then the pre-funded accounts of a development node.  An empty
        list means the migrator account declares everything.
        """
        if self.declarers is not None:
            return list(self.declarers)

        if self.account_factory is None:
            return []

        configured = self.profile_config.migration.declarers
        if configured:
            return [self.account_factory(d.address, d.private_key) for d in configured]

        if not self.rpc_url:
            return []

        return await asyncio.to_thread(
            get_predeployed_accounts, self.rpc_url, self.account_factory
        )

    async def declare_classes(
        self, ui: MigrationUi, classes: dict[int, LabeledArtifact]
    ) -> None:
        """Declare ``classes``, sharded across the extra accounts if any.

        Every shard runs to completion before errors are reported.  A shard
        failing because a class is already declared is not an error.

        Raises:
            DeclareError: If a shard failed for any other reason.
        """
        if not classes:
            return

        accounts = await self.get_accounts()
        n_classes = len(classes)

        if not accounts:
            log_with_context(logging.DEBUG, "Declaring classes with migrator account.")
            declarer = Declarer(self.account, self.txn_config)
            declarer.extend_classes(classes.values())

            ui.update_text_boxed(f"Declaring {n_classes} classes...")
            results = await declarer.declare_all()
            self._count_declared(results)
            return

        log_with_context(
            logging.DEBUG, f"Declaring classes with {len(accounts)} accounts."
        )
        declarers = [Declarer(account, self.txn_config) for account in accounts]
        for idx, labeled_class in enumerate(classes.values()):
            declarers[idx % len(declarers)].add_class(labeled_class)

        ui.update_text_boxed(
            f"Declaring {n_classes} classes with {len(declarers)} accounts..."
        )

        shard_results = await asyncio.gather(
            *(declarer.declare_all() for declarer in declarers),
            return_exceptions=True,
        )

        errors = []
        for shard_result in shard_results:
            if isinstance(shard_result, BaseException):
                if not isinstance(shard_result, Exception):
                    raise shard_result
                if is_already_declared_error(shard_result):
                    log_with_context(
                        logging.DEBUG, f"Shard skipped a declared class: {shard_result}"
                    )
                    continue
                errors.append(shard_result)
            else:
                self._count_declared(shard_result)

        if errors:
            first = errors[0]
            raise DeclareError(
                f"Failed to declare classes with {len(errors)} of "
                f"{len(declarers)} accounts: {first}",
                tag=getattr(first, "tag", None),
                entrypoint="declare",
            ) from first

    def _count_declared(self, results: list[TransactionResult]) -> None:
        self.summary["classes_declared"] += sum(1 for r in results if not r.is_noop)

    # -------------------------------------------------------------------------
    # Resources
    # -------------------------------------------------------------------------

    async def sync_resources(self, ui: MigrationUi) -> bool:
        """Register namespaces, then register or upgrade every other resource.

        Returns:
            True if at least one class or call had to be sent.
        """
        ui.update_text("Syncing resources...")

        invoker = self._invoker()

        # Resources are registered inside their namespace.
        ns_calls = namespace_calls(self.world, self.diff)
        invoker.extend_calls(ns_calls)
        self.summary["namespaces_registered"] += len(ns_calls)

        classes: dict[int, LabeledArtifact] = {}
        n_resources = 0

        for _, resource in self.diff.sorted_resources():
            if resource.resource_type == ResourceType.NAMESPACE:
                continue

            if self.profile_config.is_skipped(resource.tag):
                log_with_context(
                    logging.DEBUG, "Sync skipping resource.", tag=resource.tag
                )
                if resource.tag not in self.summary["skipped_resources"]:
                    self.summary["skipped_resources"].append(resource.tag)
                continue

            calls, resource_classes = resource_calls_classes(self.world, resource)
            if calls:
                n_resources += 1
                if resource.status == DiffStatus.CREATED:
                    self.summary["resources_registered"] += 1
                else:
                    self.summary["resources_upgraded"] += 1

            invoker.extend_calls(calls)
            for casm_class_hash, labeled_class in resource_classes.items():
                classes.setdefault(casm_class_hash, labeled_class)

        has_changed = bool(classes) or bool(invoker.calls)

        await self.declare_classes(ui, classes)
        await self._flush(ui, invoker, f"Registering {n_resources} resources")

        return has_changed

    # -------------------------------------------------------------------------
    # Permissions
    # -------------------------------------------------------------------------

    async def sync_permissions(self, ui: MigrationUi) -> bool:
        """Apply the writer and owner grants missing on chain.

        Grants only present on chain are never revoked.

        Returns:
            True if at least one permission was granted.
        """
        ui.update_text("Syncing permissions...")

        invoker = self._invoker(permission_calls(self.world, self.diff, self.profile_config))
        has_changed = bool(invoker.calls)
        self.summary["permissions_granted"] += len(invoker.calls)

        await self._flush(ui, invoker, f"Syncing {len(invoker.calls)} permissions")
        return has_changed

    # -------------------------------------------------------------------------
    # Initialization
    # -------------------------------------------------------------------------

    async def initialize_contracts(self, ui: MigrationUi) -> bool:
        """Initialize every contract that is not initialized yet.

        Returns:
            True if at least one contract was initialized.

        Raises:
            InitCallArgsError: If the init arguments of a contract are malformed.
        """
        ui.update_text("Initializing contracts...")

        invoker = self._invoker(init_calls(self.world, self.diff, self.profile_config))
        has_changed = bool(invoker.calls)
        self.summary["contracts_initialized"] += len(invoker.calls)

        await self._flush(ui, invoker, f"Initializing {len(invoker.calls)} contracts")
        return has_changed

    # -------------------------------------------------------------------------
    # External contracts
    # -------------------------------------------------------------------------

    async def sync_external_contracts(self, ui: MigrationUi) -> bool:
        """Declare external contract classes and deploy new instances.

        Returns:
            True if at least one class was declared or instance deployed.
        """
        ui.update_text_boxed(
            f"Syncing {len(self.diff.external_contracts)} external contracts..."
        )

        classes = external_contract_classes(self.diff)
        if classes:
            ui.update_text_boxed(
                f"Declaring {len(classes)} external contract classes..."
            )
        await self.declare_classes(ui, classes)

        deployer = Deployer(self.account, self.txn_config)
        invoker = self._invoker(await external_deploy_calls(deployer, self.diff))
        has_changed = bool(classes) or bool(invoker.calls)
        self.summary["external_contracts_deployed"] += len(invoker.calls)

        await self._flush(ui, invoker, f"Deploying {len(invoker.calls)} external contracts")
        return has_changed

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------

    async def upload_metadata(self, ui: MigrationUi, service: UploadService) -> bool:
        """Upload changed world and resource metadata and record it in the world.

        Returns:
            True if at least one metadata entry was updated.
        """
        ui.update_text("Uploading metadata...")

        invoker = self._invoker()

        world_metadata = WorldMetadata.from_config(self.profile_config.world)
        uploaded = await world_metadata.upload_if_changed(
            service, self.diff.world_info.metadata_hash
        )
        if uploaded is not None:
            new_uri, new_hash = uploaded
            log_with_context(
                logging.DEBUG,
                "World metadata updated.",
                new_uri=new_uri,
                new_hash=format_felt(new_hash),
            )
            invoker.add_call(
                self.world.set_metadata_getcall(
                    WORLD_RESOURCE_ID, new_uri, new_hash, tag=WORLD_LABEL
                )
            )

        config = self.profile_config
        for configs in (config.contracts, config.libraries, config.models, config.events):
            invoker.extend_calls(await self._resource_metadata_calls(service, configs))

        has_changed = bool(invoker.calls)
        self.summary["metadata_updated"] += len(invoker.calls)

        await self._flush(ui, invoker, f"Uploading {len(invoker.calls)} metadata")
        return has_changed

    async def _resource_metadata_calls(
        self, service: UploadService, configs: list[ResourceConfig]
    ) -> list[Call]:
        by_tag = {resource.tag: resource for resource in self.diff.resources.values()}

        calls = []
        for item in configs:
            resource = by_tag.get(item.tag)
            if resource is None:
                log_with_context(
                    logging.WARNING,
                    "Metadata configured for a resource missing from the world diff.",
                    tag=item.tag,
                )
                continue

            uploaded = await ResourceMetadata.from_config(item).upload_if_changed(
                service, resource.metadata_hash
            )
            if uploaded is None:
                continue

            new_uri, new_hash = uploaded
            log_with_context(
                logging.DEBUG,
                "Resource metadata updated.",
                tag=item.tag,
                new_uri=new_uri,
                new_hash=format_felt(new_hash),
            )
            calls.append(
                self.world.set_metadata_getcall(
                    resource.selector, new_uri, new_hash, tag=item.tag
                )
            )
        return calls
