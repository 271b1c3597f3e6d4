"""Unit tests for resource registration and upgrade calls."""

import pytest

from world_migrator.core.diff import ResourceType
from world_migrator.exceptions import DiffError, LibraryUpgradeError
from world_migrator.services.resources import (
    labeled_artifact,
    namespace_calls,
    resource_calls_classes,
)
from world_migrator.services.world import WorldContract


@pytest.fixture()
def world():
    return WorldContract(0x57041D)


class TestNamespaceCalls:
    def test_only_created_namespaces_in_declared_order(self, world, make_diff, make_resource):
        first = make_resource("namespace", "zeta")
        existing = make_resource("namespace", "beta", status="synced")
        last = make_resource("namespace", "alpha")
        diff = make_diff([first, existing, last])

        calls = namespace_calls(world, diff)

        assert [c.tag for c in calls] == ["zeta", "alpha"]
        assert all(c.entrypoint == "register_namespace" for c in calls)

    def test_no_namespace_no_call(self, world, make_diff):
        assert namespace_calls(world, make_diff()) == []


class TestResourceCallsClasses:
    @pytest.mark.parametrize(
        "resource_type, entrypoint",
        [
            ("contract", "register_contract"),
            ("library", "register_library"),
            ("model", "register_model"),
            ("event", "register_event"),
        ],
    )
    def test_created_resources_are_registered(
        self, world, make_resource, resource_type, entrypoint
    ):
        resource = make_resource(resource_type, "thing", version="1_0_0")

        calls, classes = resource_calls_classes(world, resource)

        assert [c.entrypoint for c in calls] == [entrypoint]
        assert calls[0].tag == "ns-thing"
        assert list(classes) == [resource.local.casm_class_hash]
        assert classes[resource.local.casm_class_hash].label == "ns-thing"

    @pytest.mark.parametrize(
        "resource_type, entrypoint",
        [
            ("contract", "upgrade_contract"),
            ("model", "upgrade_model"),
            ("event", "upgrade_event"),
        ],
    )
    def test_updated_resources_are_upgraded(
        self, world, make_resource, resource_type, entrypoint
    ):
        resource = make_resource(resource_type, "thing", status="updated")

        calls, classes = resource_calls_classes(world, resource)

        assert [c.entrypoint for c in calls] == [entrypoint]
        assert calls[0].calldata[-1] == resource.local.class_hash
        assert len(classes) == 1

    @pytest.mark.parametrize("resource_type", ["contract", "library", "model", "event"])
    def test_synced_resources_produce_nothing(self, world, make_resource, resource_type):
        resource = make_resource(resource_type, "thing", status="synced")
        assert resource_calls_classes(world, resource) == ([], {})

    def test_updated_library_is_rejected(self, world, make_resource):
        resource = make_resource("library", "math", status="updated")
        with pytest.raises(LibraryUpgradeError, match="ns-math"):
            resource_calls_classes(world, resource)

    def test_contract_registration_uses_selector(self, world, make_resource):
        resource = make_resource("contract", "actions")
        calls, _ = resource_calls_classes(world, resource)
        assert calls[0].calldata[0] == resource.selector

    def test_namespace_is_not_dispatched(self, world, make_resource):
        with pytest.raises(DiffError, match="No synchronizer"):
            resource_calls_classes(world, make_resource(ResourceType.NAMESPACE, "ns"))


def test_labeled_artifact_carries_local_class(make_resource):
    resource = make_resource("model", "Position")
    artifact = labeled_artifact(resource)

    assert artifact.label == "ns-Position"
    assert artifact.class_hash == resource.local.class_hash
    assert artifact.casm_class_hash == resource.local.casm_class_hash
    assert artifact.artifact == {"tag": "ns-Position"}
