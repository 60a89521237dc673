"""Shared fixtures."""

import pytest

from cloud_tiering.core.resources import build_fleet
from cloud_tiering.scheduling.tiers import TierAssignmentPolicy
from cloud_tiering.scenarios import customer_config, customer_rules
from cloud_tiering.utils.config import (
    FleetConfig,
    HostProfile,
    SimulationConfig,
    TierConfig,
    VmProfile,
)


def _fleet_config(*counts, host_ram=131072):
    profile = VmProfile(cores=1, mips=1000, ram=1024, bw=100, storage=1000)
    return FleetConfig(
        datacenters=1,
        hosts_per_datacenter=2,
        host=HostProfile(cores=16, mips=3000, ram=host_ram, bw=40000, storage=1000000),
        tiers=[
            TierConfig(name=name, count=count, profile=profile)
            for name, count in zip(["gold", "silver", "bronze"], counts)
        ],
    )


@pytest.fixture
def fleet():
    """Fleet with tiers of size 2, 3 and 2."""
    return build_fleet(_fleet_config(2, 3, 2))


@pytest.fixture
def customer_fleet():
    return build_fleet(customer_config().fleet)


@pytest.fixture
def customer_policy(customer_fleet):
    return TierAssignmentPolicy(customer_rules(), "basic", customer_fleet)


@pytest.fixture
def fast_simulation():
    return SimulationConfig(sampling_interval=5.0, cost_rate=0.1, vm_destruction_delay=0.0)


@pytest.fixture
def make_fleet_config():
    """Factory for fleets with tiers gold/silver/bronze of the given sizes."""
    return _fleet_config
