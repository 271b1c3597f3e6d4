"""Classes and deployments of external contracts.

External contracts are tracked by the migration but not registered in the
world: their classes are declared, and new instances are deployed through
the universal deployer with the salt and raw constructor data found in the
diff.  The constructor data is passed through untouched.
"""

from __future__ import annotations

import logging

from world_migrator.core.diff import (
    DiffStatus,
    ExternalContractClassDiff,
    WorldDiff,
)
from world_migrator.services.declarer import LabeledArtifact
from world_migrator.services.deployer import Deployer
from world_migrator.services.target import Call
from world_migrator.utils.logging import format_felt, log_with_context


def external_contract_class(
    contract_class: ExternalContractClassDiff,
) -> LabeledArtifact | None:
    """The artifact to declare for ``contract_class``, None if already declared."""
    if contract_class.status != DiffStatus.CREATED:
        return None
    local = contract_class.local
    return LabeledArtifact(
        label=local.contract_name,
        class_hash=local.class_hash,
        casm_class_hash=local.casm_class_hash,
        artifact=local.artifact,
    )


def external_contract_classes(diff: WorldDiff) -> dict[int, LabeledArtifact]:
    classes = {}
    for _, contract_class in sorted(diff.external_contract_classes.items()):
        labeled_class = external_contract_class(contract_class)
        if labeled_class is not None:
            classes[labeled_class.casm_class_hash] = labeled_class
    return classes


async def external_deploy_calls(deployer: Deployer, diff: WorldDiff) -> list[Call]:
    """Deployment calls for every created external contract.

    Instances already deployed at their deterministic address are skipped.
    """
    calls = []
    for instance_name, contract in sorted(diff.external_contracts.items()):
        if contract.status != DiffStatus.CREATED:
            continue

        local = contract.local
        result = await deployer.deploy_via_udc_getcall(
            local.class_hash, local.salt, local.raw_constructor_data, False
        )
        if result is None:
            continue

        address, call = result
        log_with_context(
            logging.DEBUG,
            "Deploying external contract.",
            instance_name=instance_name,
            contract_name=local.contract_name,
            address=format_felt(address),
        )
        calls.append(Call(call.to, call.entrypoint, call.calldata, tag=instance_name))
    return calls
