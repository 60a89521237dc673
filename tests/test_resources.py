"""Fleet builder tests."""

import pytest

from cloud_tiering.core.resources import build_fleet
from cloud_tiering.exceptions import ConfigurationError


def test_host_ids_contiguous_in_creation_order(fleet):
    assert [host.host_id for host in fleet.hosts] == [0, 1]
    assert all(host.cores == 16 for host in fleet.hosts)


def test_vm_ids_grouped_by_tier(fleet):
    assert [vm.vm_id for vm in fleet.vms] == list(range(7))
    assert [vm.tier for vm in fleet.vms] == ["gold"] * 2 + ["silver"] * 3 + ["bronze"] * 2


def test_tier_offsets(fleet):
    layouts = {tier.name: (tier.offset, tier.size) for tier in fleet.tiers}
    assert layouts == {"gold": (0, 2), "silver": (2, 3), "bronze": (5, 2)}
    assert list(fleet.tier("silver").vm_ids) == [2, 3, 4]


def test_multiple_datacenters_multiply_hosts(make_fleet_config):
    config = make_fleet_config(1, 1, 1)
    config.datacenters = 3
    fleet = build_fleet(config)
    assert [host.host_id for host in fleet.hosts] == list(range(6))


def test_zero_count_tier_contributes_no_vms(make_fleet_config):
    fleet = build_fleet(make_fleet_config(2, 0, 2))

    assert fleet.total_vms == 4
    assert fleet.tier("silver").size == 0
    assert fleet.tier("bronze").offset == 2


def test_require_routable_rejects_empty_tier(make_fleet_config):
    fleet = build_fleet(make_fleet_config(2, 0, 2))

    fleet.require_routable(["gold", "bronze"])
    with pytest.raises(ConfigurationError, match="silver"):
        fleet.require_routable(["gold", "silver"])


def test_unknown_tier_is_configuration_error(fleet):
    with pytest.raises(ConfigurationError, match="Unknown tier"):
        fleet.tier("platinum")
