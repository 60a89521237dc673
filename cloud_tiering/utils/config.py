"""Configuration management utilities."""

from typing import Dict, Any, List, Literal
from pathlib import Path
import json
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from loguru import logger

from ..exceptions import ConfigurationError


class HostProfile(BaseModel):
    """Capacity of a single physical host."""

    cores: int = Field(gt=0)
    mips: float = Field(gt=0)  # per core
    ram: int = Field(gt=0)  # MB
    bw: int = Field(gt=0)  # Mbps
    storage: int = Field(gt=0)  # MB


class VmProfile(BaseModel):
    """Capacity of one VM of a tier."""

    cores: int = Field(gt=0)
    mips: float = Field(gt=0)
    ram: int = Field(gt=0)
    bw: int = Field(gt=0)
    storage: int = Field(gt=0)


class TierConfig(BaseModel):
    """A named VM tier with its population count."""

    name: str
    count: int = Field(ge=0)
    profile: VmProfile


class FleetConfig(BaseModel):
    """Static host and VM pool."""

    datacenters: int = Field(default=1, gt=0)
    hosts_per_datacenter: int = Field(default=4, gt=0)
    host: HostProfile
    tiers: List[TierConfig]

    @field_validator("tiers")
    @classmethod
    def _unique_tier_names(cls, tiers: List[TierConfig]) -> List[TierConfig]:
        names = [tier.name for tier in tiers]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate tier names: {duplicates}")
        if not tiers:
            raise ValueError("At least one VM tier is required")
        return tiers


class SimulationConfig(BaseModel):
    """Engine timing and cost parameters."""

    sampling_interval: float = Field(default=5.0, gt=0)  # seconds
    cost_rate: float = Field(default=0.1, ge=0)  # cost per second of execution
    tick_interval: float = Field(default=1.0, gt=0)
    vm_startup_delay: float = Field(default=0.0, ge=0)
    vm_destruction_delay: float = Field(default=300.0, ge=0)

    @model_validator(mode="after")
    def _tick_fits_sampling(self) -> "SimulationConfig":
        ratio = self.sampling_interval / self.tick_interval
        if abs(ratio - round(ratio)) > 1e-9:
            raise ValueError(
                "sampling_interval must be a multiple of tick_interval, "
                f"got {self.sampling_interval} and {self.tick_interval}"
            )
        return self


class WorkloadConfig(BaseModel):
    """Workload source settings."""

    number_of_records: int = Field(default=10, gt=0)
    records_path: str = ""  # empty: bundled reference table


class ScenarioConfig(BaseModel):
    """Full configuration of one simulation scenario."""

    name: str
    domain: Literal["customer", "financial"]
    fleet: FleetConfig
    simulation: SimulationConfig = Field(default_factory=SimulationConfig)
    workload: WorkloadConfig = Field(default_factory=WorkloadConfig)


def validate_config(config_data: Dict[str, Any]) -> ScenarioConfig:
    """Validate a raw configuration dictionary.

    Raises:
        ConfigurationError: If the configuration is invalid or incomplete
    """
    if not isinstance(config_data, dict):
        raise ConfigurationError(
            f"Configuration must be a mapping, got {type(config_data).__name__}"
        )
    try:
        return ScenarioConfig.model_validate(config_data)
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def load_config(config_path: Path) -> ScenarioConfig:
    """Load a scenario configuration from a YAML or JSON file."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading configuration from {config_path}")

    with open(config_path, 'r') as f:
        try:
            if config_path.suffix.lower() in ['.yaml', '.yml']:
                config_data = yaml.safe_load(f)
            elif config_path.suffix.lower() == '.json':
                config_data = json.load(f)
            else:
                raise ConfigurationError(
                    f"Unsupported configuration file format: {config_path.suffix}"
                )
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to parse config file {config_path}: {e}") from e

    if config_data is None:
        raise ConfigurationError(f"Config file is empty: {config_path}")

    config = validate_config(config_data)
    logger.info(f"Configuration loaded: scenario '{config.name}' ({config.domain}), "
                f"{len(config.fleet.tiers)} tiers")
    return config


def save_config(config: ScenarioConfig, config_path: Path) -> None:
    """Save a scenario configuration to file."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = config.model_dump()

    with open(config_path, 'w') as f:
        if config_path.suffix.lower() in ['.yaml', '.yml']:
            yaml.safe_dump(config_dict, f, default_flow_style=False, indent=2, sort_keys=False)
        elif config_path.suffix.lower() == '.json':
            json.dump(config_dict, f, indent=2)
        else:
            raise ConfigurationError(
                f"Unsupported configuration file format: {config_path.suffix}"
            )

    logger.info(f"Configuration saved to {config_path}")
