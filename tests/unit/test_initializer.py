"""Unit tests for contract initialization calls."""

import pytest

from world_migrator.core.config import ProfileConfig
from world_migrator.exceptions import DiffError, InitCallArgsError
from world_migrator.services.initializer import init_call_args, init_calls, needs_init
from world_migrator.services.world import WorldContract

WORLD = WorldContract(0x57041D)


class TestNeedsInit:
    def test_created_contract(self, make_resource):
        assert needs_init(make_resource("contract", "a"))

    @pytest.mark.parametrize("status", ["updated", "synced"])
    def test_existing_contract_depends_on_remote_flag(self, make_resource, status):
        assert needs_init(make_resource("contract", "a", status=status))
        assert not needs_init(
            make_resource("contract", "a", status=status, is_initialized=True)
        )

    def test_existing_contract_without_remote_raises(self, make_resource):
        resource = make_resource("contract", "a", status="synced")
        object.__setattr__(resource, "remote", None)
        with pytest.raises(DiffError, match="has no remote state"):
            needs_init(resource)


class TestInitCallArgs:
    def test_missing_entry_means_no_args(self):
        assert init_call_args(ProfileConfig(), "ns-a") == []

    def test_args_are_decoded(self):
        config = ProfileConfig.from_dict({"init_call_args": {"ns-a": ["0x1", "u256:2"]}})
        assert init_call_args(config, "ns-a") == [1, 2, 0]

    def test_invalid_args_name_the_contract(self):
        config = ProfileConfig.from_dict({"init_call_args": {"ns-a": ["bogus:1"]}})
        with pytest.raises(InitCallArgsError) as exc_info:
            init_call_args(config, "ns-a")
        assert exc_info.value.tag == "ns-a"
        assert "ns-a" in str(exc_info.value)

    @pytest.mark.parametrize("raw", [1, "0x1", [1.5], [None]])
    def test_malformed_entries_raise_init_call_args_error(self, raw):
        config = ProfileConfig.from_dict({"init_call_args": {"ns-c": raw}})
        with pytest.raises(InitCallArgsError) as exc_info:
            init_call_args(config, "ns-c")
        assert exc_info.value.tag == "ns-c"


class TestInitCalls:
    def _diff(self, make_diff, make_resource, contracts):
        return make_diff([make_resource("namespace", "ns", status="synced"), *contracts])

    def test_only_contracts_needing_init(self, make_diff, make_resource):
        created = make_resource("contract", "a")
        pending = make_resource("contract", "b", status="synced")
        done = make_resource("contract", "c", status="synced", is_initialized=True)
        model = make_resource("model", "M")
        diff = self._diff(make_diff, make_resource, [created, pending, done, model])

        calls = init_calls(WORLD, diff, ProfileConfig())

        assert sorted(c.tag for c in calls) == ["ns-a", "ns-b"]
        assert all(c.entrypoint == "init_contract" for c in calls)

    def test_calldata_comes_from_profile(self, make_diff, make_resource):
        contract = make_resource("contract", "a")
        diff = self._diff(make_diff, make_resource, [contract])
        config = ProfileConfig.from_dict({"init_call_args": {"ns-a": ["0x7", "0x8"]}})

        (call,) = init_calls(WORLD, diff, config)

        assert call.calldata == (contract.selector, 2, 7, 8)

    def test_ordered_inits_come_last_in_listed_order(self, make_diff, make_resource):
        contracts = [make_resource("contract", name) for name in ("a", "b", "c", "d")]
        diff = self._diff(make_diff, make_resource, contracts)
        config = ProfileConfig.from_dict(
            {"migration": {"order_inits": ["ns-c", "ns-unknown", "ns-a"]}}
        )

        tags = [c.tag for c in init_calls(WORLD, diff, config)]

        unordered = sorted(
            (r for r in contracts if r.tag in ("ns-b", "ns-d")), key=lambda r: r.selector
        )
        assert tags == [r.tag for r in unordered] + ["ns-c", "ns-a"]

    def test_skipped_contracts_are_not_initialized(self, make_diff, make_resource):
        diff = self._diff(
            make_diff,
            make_resource,
            [make_resource("contract", "a"), make_resource("contract", "b")],
        )
        config = ProfileConfig.from_dict({"migration": {"skip_contracts": ["ns-a"]}})

        assert [c.tag for c in init_calls(WORLD, diff, config)] == ["ns-b"]

    def test_invalid_args_fail_the_step(self, make_diff, make_resource):
        diff = self._diff(make_diff, make_resource, [make_resource("contract", "a")])
        config = ProfileConfig.from_dict({"init_call_args": {"ns-a": ["nope"]}})

        with pytest.raises(InitCallArgsError):
            init_calls(WORLD, diff, config)
