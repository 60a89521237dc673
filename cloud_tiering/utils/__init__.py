"""Utility modules for the tiered cloudlet simulator."""

from .config import (
    HostProfile,
    VmProfile,
    TierConfig,
    FleetConfig,
    SimulationConfig,
    WorkloadConfig,
    ScenarioConfig,
    load_config,
    save_config,
    validate_config,
)

__all__ = [
    "HostProfile",
    "VmProfile",
    "TierConfig",
    "FleetConfig",
    "SimulationConfig",
    "WorkloadConfig",
    "ScenarioConfig",
    "load_config",
    "save_config",
    "validate_config",
]
